"""
Inbox operations: listing, read state and deletion of a user's notifications.
"""

from uuid import UUID

from django.db.models import QuerySet

from apps.accounts.models import User
from apps.notifications.models import Notification

from .exceptions import NotificationNotFoundError


def list_notifications(*, user: User, unread_only: bool = False) -> QuerySet:
    """Return the user's notifications, newest first."""
    queryset = Notification.objects.filter(user=user).order_by('-created_at')
    if unread_only:
        queryset = queryset.filter(read=False)
    return queryset


def _get_own(*, user: User, notification_id: UUID) -> Notification:
    try:
        return Notification.objects.get(id=notification_id, user=user)
    except Notification.DoesNotExist:
        raise NotificationNotFoundError(f"Notification {notification_id} not found")


def mark_read(*, user: User, notification_id: UUID) -> Notification:
    """
    Mark one notification as read.

    Raises:
        NotificationNotFoundError: If it does not exist or belongs to someone else
    """
    notification = _get_own(user=user, notification_id=notification_id)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return notification


def mark_all_read(*, user: User) -> int:
    """Mark every unread notification of the user as read; returns the count."""
    return Notification.objects.filter(user=user, read=False).update(read=True)


def delete_notification(*, user: User, notification_id: UUID) -> None:
    """
    Raises:
        NotificationNotFoundError: If it does not exist or belongs to someone else
    """
    _get_own(user=user, notification_id=notification_id).delete()


def get_unread_count(*, user: User) -> int:
    return Notification.objects.filter(user=user, read=False).count()


def delete_split_notifications(*, split_event_id: UUID) -> int:
    """Remove every notification linked to a split event; returns the count."""
    deleted, _ = Notification.objects.filter(split_event_id=split_event_id).delete()
    return deleted
