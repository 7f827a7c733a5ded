"""
Notifications app services layer.

Delivery goes through ``NotificationDispatcher`` (tiered fallback, never
raises); push mirroring through ``ExpoPushGateway``.
"""

from .exceptions import (
    NotificationsServiceError,
    NotificationNotFoundError,
    UnauthorizedNotificationWrite,
    PushDeliveryError,
)

from .delivery import (
    ErrorKind,
    Tier,
    NotificationPayload,
    TierOutcome,
    DeliveryResult,
    BackendEndpointTier,
    RemoteProcedureTier,
    DirectInsertTier,
    NotificationDispatcher,
    get_dispatcher,
    resolve_backend_url,
)

from .procedures import (
    create_notification_v2,
    authorize_notification_write,
    insert_notification_as,
)

from .push import (
    PushMessage,
    ExpoPushGateway,
    push_to_user,
)

from .sending import send_notification

from .inbox import (
    list_notifications,
    mark_read,
    mark_all_read,
    delete_notification,
    get_unread_count,
    delete_split_notifications,
)


__all__ = [
    # Exceptions
    'NotificationsServiceError',
    'NotificationNotFoundError',
    'UnauthorizedNotificationWrite',
    'PushDeliveryError',

    # Delivery
    'ErrorKind',
    'Tier',
    'NotificationPayload',
    'TierOutcome',
    'DeliveryResult',
    'BackendEndpointTier',
    'RemoteProcedureTier',
    'DirectInsertTier',
    'NotificationDispatcher',
    'get_dispatcher',
    'resolve_backend_url',

    # Procedures
    'create_notification_v2',
    'authorize_notification_write',
    'insert_notification_as',

    # Push
    'PushMessage',
    'ExpoPushGateway',
    'push_to_user',
    'send_notification',

    # Inbox
    'list_notifications',
    'mark_read',
    'mark_all_read',
    'delete_notification',
    'get_unread_count',
    'delete_split_notifications',
]
