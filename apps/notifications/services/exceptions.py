"""
Domain-specific exceptions for the notifications app.

Delivery failures are not exceptions: the dispatcher reports them as
values (see ``delivery.ErrorKind``). These cover the inbox operations and
the authorisation policy used by the direct-insert tier.
"""


class NotificationsServiceError(Exception):
    """Base exception for all notifications service errors."""
    pass


class NotificationNotFoundError(NotificationsServiceError):
    """Raised when a notification does not exist or belongs to another user."""
    pass


class UnauthorizedNotificationWrite(NotificationsServiceError):
    """Raised when the caller may not write a notification for the recipient."""
    pass


class PushDeliveryError(NotificationsServiceError):
    """Raised when the push gateway rejects or cannot receive a message."""
    pass
