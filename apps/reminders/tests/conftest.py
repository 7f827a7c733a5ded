import pytest
from decimal import Decimal
from unittest.mock import Mock
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.ledger.services import create_split
from apps.notifications.services import get_dispatcher
from apps.reminders.services import ReminderScheduler


def make_client(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def creator(db):
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
def staff_user(db):
    return User.objects.create_user(
        email='staff@example.com',
        password='TestPass123!',
        is_staff=True,
    )


@pytest.fixture
def splits(creator, alice, bob):
    """Alice owes on Dinner and Cab, Bob owes on Dinner only."""
    dinner = create_split(
        name='Dinner',
        total_amount=Decimal('90.00'),
        split_type='equal',
        creator=creator,
        participant_ids=[alice.id, bob.id],
    )
    cab = create_split(
        name='Cab',
        total_amount=Decimal('20.00'),
        split_type='equal',
        creator=creator,
        participant_ids=[alice.id],
    )
    # Registered afterwards so the invites are not pushed
    alice.push_token = 'ExponentPushToken[alice]'
    alice.save(update_fields=['push_token'])
    return dinner, cab


@pytest.fixture
def push_gateway():
    """Push gateway double that accepts every message."""
    gateway = Mock()
    gateway.send.return_value = {'status': 'ok'}
    return gateway


@pytest.fixture
def scheduler(push_gateway):
    return ReminderScheduler(dispatcher=get_dispatcher(), push_gateway=push_gateway, reminder_hour=9)
