"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserNotFoundError,
    InvalidPushTokenError,
)
from .push_tokens import register_push_token, remove_push_token, get_push_token

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserNotFoundError',
    'InvalidPushTokenError',

    # Push tokens
    'register_push_token',
    'remove_push_token',
    'get_push_token',
]
