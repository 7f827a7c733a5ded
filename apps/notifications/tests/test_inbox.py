import pytest
from decimal import Decimal

from apps.ledger.services import create_split
from apps.notifications.models import Notification, NotificationType
from apps.notifications.services import (
    NotificationNotFoundError,
    delete_notification,
    delete_split_notifications,
    get_unread_count,
    list_notifications,
    mark_read,
)


@pytest.mark.django_db
class TestInboxServices:

    def test_newest_first(self, user, notifications):
        titles = [n.title for n in list_notifications(user=user)]

        assert titles == ['Split Accepted', 'Payment Received', 'New Split Request']

    def test_mark_read_is_idempotent(self, user, notifications):
        mark_read(user=user, notification_id=notifications[0].id)
        mark_read(user=user, notification_id=notifications[0].id)

        assert get_unread_count(user=user) == 1

    def test_cannot_delete_someone_elses(self, other_user, notifications):
        with pytest.raises(NotificationNotFoundError):
            delete_notification(user=other_user, notification_id=notifications[0].id)

    def test_delete_split_notifications(self, user, other_user):
        split_event = create_split(
            name='Dinner',
            total_amount=Decimal('20.00'),
            split_type='equal',
            creator=user,
            participant_ids=[other_user.id],
        )
        Notification.objects.create(
            user=user, type=NotificationType.PAYMENT_REMINDER, title='Payment Reminder', message='unrelated',
        )

        deleted = delete_split_notifications(split_event_id=split_event.id)

        assert deleted == 1
        assert not Notification.objects.filter(split_event=split_event).exists()
        assert Notification.objects.filter(user=user).count() == 1
