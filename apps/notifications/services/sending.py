"""
One-call notification helper used by the ledger.

Delivers the in-app notification through the tier chain and mirrors it to
the recipient's device. Both halves are best effort and independent.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from apps.accounts.models import User

from .delivery import DeliveryResult, NotificationPayload, get_dispatcher
from .push import push_to_user


def send_notification(
    *,
    user_id: UUID,
    type: str,
    title: str,
    message: str,
    metadata: Optional[Dict[str, Any]] = None,
    split_event_id: Optional[UUID] = None,
    friendship_id: Optional[UUID] = None,
    actor: Optional[User] = None,
    push: bool = True,
    push_body: Optional[str] = None,
    push_data: Optional[Dict[str, Any]] = None,
) -> DeliveryResult:
    """
    Deliver a notification and optionally push it. Never raises.

    Args:
        actor: User whose action triggered the notification; used by the
            direct-insert tier's authorisation policy
        push: Mirror to the recipient's push token when one is registered
        push_body: Device text when it should differ from the in-app message
        push_data: Extra keys for the push ``data`` object (``type`` is always set)
    """
    payload = NotificationPayload(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        metadata=metadata or {},
        split_event_id=split_event_id,
        friendship_id=friendship_id,
    )
    result = get_dispatcher().deliver(payload, actor=actor)

    if push:
        data = {'type': type}
        if split_event_id:
            data['splitEventId'] = str(split_event_id)
        data.update(push_data or {})
        push_to_user(user_id=user_id, title=title, body=push_body or message, data=data)

    return result
