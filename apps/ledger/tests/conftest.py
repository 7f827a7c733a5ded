import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.ledger.services import create_split, deposit


def make_client(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def creator(db):
    """Create and return the user who creates splits."""
    return User.objects.create_user(
        email='creator@example.com',
        password='TestPass123!',
        display_name='Carol Creator',
    )


@pytest.fixture
def alice(db):
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        display_name='Alice',
    )


@pytest.fixture
def bob(db):
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        display_name='Bob',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user who is in no split."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        display_name='Outsider',
    )


@pytest.fixture
def funded(alice, bob):
    """Give alice and bob 100.00 each."""
    deposit(user=alice, amount=Decimal('100.00'))
    deposit(user=bob, amount=Decimal('100.00'))
    return alice, bob


@pytest.fixture
def dinner(creator, alice, bob):
    """90.00 equal split between creator, alice and bob."""
    return create_split(
        name='Dinner',
        total_amount=Decimal('90.00'),
        split_type='equal',
        creator=creator,
        participant_ids=[alice.id, bob.id],
    )


@pytest.fixture
def creator_client(creator):
    return make_client(creator)


@pytest.fixture
def alice_client(alice):
    return make_client(alice)


@pytest.fixture
def outsider_client(outsider):
    return make_client(outsider)
