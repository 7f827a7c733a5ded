import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.notifications.models import Notification, NotificationType


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
def user(db):
    """Create and return a test user."""
    return User.objects.create_user(
        email='testuser@example.com',
        password='TestPass123!',
        display_name='Test User',
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        display_name='Other User',
    )


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        email='staff@example.com',
        password='TestPass123!',
        is_staff=True,
    )


@pytest.fixture
def authenticated_client(user):
    """Return API client authenticated as user."""
    return make_client(user)


@pytest.fixture
def notifications(user):
    """Two unread and one read notification for user."""
    return [
        Notification.objects.create(
            user=user, type=NotificationType.SPLIT_INVITE, title='New Split Request', message='one',
        ),
        Notification.objects.create(
            user=user, type=NotificationType.SPLIT_PAID, title='Payment Received', message='two',
        ),
        Notification.objects.create(
            user=user, type=NotificationType.SPLIT_ACCEPTED, title='Split Accepted', message='three', read=True,
        ),
    ]
