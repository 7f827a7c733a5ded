"""
Privileged notification writes.

``create_notification_v2`` is the server-side procedure behind the
secondary delivery tier and the creation endpoint: it inserts on behalf of
any recipient and reports the outcome as a ``{success, notification?,
error?}`` dict instead of raising. ``insert_notification_as`` is the
caller-credentialed insert used by the tertiary tier; it enforces
``authorize_notification_write`` first.
"""

from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.db import transaction, DatabaseError

from apps.accounts.models import User
from apps.ledger.models import SplitEvent
from apps.notifications.models import Notification

from .exceptions import UnauthorizedNotificationWrite

logger = structlog.get_logger(__name__)


def _insert(
    *,
    user_id: UUID,
    type: str,
    title: str,
    message: str,
    metadata: Optional[Dict[str, Any]] = None,
    split_event_id: Optional[UUID] = None,
    friendship_id: Optional[UUID] = None,
) -> Notification:
    with transaction.atomic():
        return Notification.objects.create(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            metadata=metadata or {},
            split_event_id=split_event_id,
            friendship_id=friendship_id,
            read=False,
        )


def create_notification_v2(
    p_user_id: UUID,
    p_type: str,
    p_title: str,
    p_message: str,
    p_metadata: Optional[Dict[str, Any]] = None,
    p_split_event_id: Optional[UUID] = None,
    p_friendship_id: Optional[UUID] = None,
) -> Dict[str, Any]:
    """
    Insert a notification with service privilege.

    Returns:
        ``{'success': True, 'notification': {...}}`` or
        ``{'success': False, 'error': '...'}``
    """
    from apps.notifications.serializers import NotificationSerializer

    if not all([p_user_id, p_type, p_title, p_message]):
        return {'success': False, 'error': 'Missing required fields'}

    if not User.objects.filter(id=p_user_id).exists():
        return {'success': False, 'error': f'User {p_user_id} not found'}

    if p_split_event_id and not SplitEvent.objects.filter(id=p_split_event_id).exists():
        return {'success': False, 'error': f'Split event {p_split_event_id} not found'}

    try:
        notification = _insert(
            user_id=p_user_id,
            type=p_type,
            title=p_title,
            message=p_message,
            metadata=p_metadata,
            split_event_id=p_split_event_id,
            friendship_id=p_friendship_id,
        )
    except DatabaseError as e:
        logger.error('notification_procedure_failed', user_id=str(p_user_id), error=str(e))
        return {'success': False, 'error': str(e)}

    return {'success': True, 'notification': NotificationSerializer(notification).data}


def authorize_notification_write(*, actor: Optional[User], user_id: UUID) -> None:
    """
    Row-level policy for caller-credentialed inserts.

    A user may write notifications only for themselves; staff may write
    for anyone.

    Raises:
        UnauthorizedNotificationWrite: If the actor may not write for user_id
    """
    if actor is None or not actor.is_authenticated:
        raise UnauthorizedNotificationWrite('Anonymous callers cannot write notifications')
    if actor.is_staff:
        return
    if str(actor.pk) != str(user_id):
        raise UnauthorizedNotificationWrite(
            f"User {actor.pk} may not write notifications for user {user_id}"
        )


def insert_notification_as(
    *,
    actor: Optional[User],
    user_id: UUID,
    type: str,
    title: str,
    message: str,
    metadata: Optional[Dict[str, Any]] = None,
    split_event_id: Optional[UUID] = None,
    friendship_id: Optional[UUID] = None,
) -> Notification:
    """
    Insert a notification using the caller's own credentials.

    Raises:
        UnauthorizedNotificationWrite: If the policy rejects the write
    """
    authorize_notification_write(actor=actor, user_id=user_id)
    return _insert(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        metadata=metadata,
        split_event_id=split_event_id,
        friendship_id=friendship_id,
    )
