"""
Push token management.

A user holds at most one push token (their current device). The reminder
job and the ledger read it to mirror in-app notifications to the device.
"""

from typing import Optional
from uuid import UUID

import structlog
from django.db import transaction

from apps.accounts.models import User

from .exceptions import InvalidPushTokenError, UserNotFoundError

logger = structlog.get_logger(__name__)

PUSH_TOKEN_PREFIXES = ('ExponentPushToken[', 'ExpoPushToken[')


@transaction.atomic
def register_push_token(*, user: User, push_token: str) -> User:
    """
    Store the device push token for a user, replacing any previous one.

    Raises:
        InvalidPushTokenError: If the token is not an Expo push token
    """
    push_token = push_token.strip()
    if not push_token.startswith(PUSH_TOKEN_PREFIXES) or not push_token.endswith(']'):
        raise InvalidPushTokenError('Push token must be an Expo push token')

    user.push_token = push_token
    user.save(update_fields=['push_token'])
    logger.info('push_token_registered', user_id=str(user.id))
    return user


def remove_push_token(*, user: User) -> None:
    """Forget the user's push token (logout, permission revoked)."""
    User.objects.filter(id=user.id).update(push_token=None)
    user.push_token = None
    logger.info('push_token_removed', user_id=str(user.id))


def get_push_token(*, user_id: UUID) -> Optional[str]:
    """
    Return the push token registered for ``user_id`` (None if not registered).

    Raises:
        UserNotFoundError: If the user does not exist
    """
    try:
        return User.objects.values_list('push_token', flat=True).get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User with ID {user_id} not found")
