from django.db import models
from django.utils import timezone
import uuid


class NotificationType(models.TextChoices):
    SPLIT_INVITE = 'split_invite', 'Split invite'
    SPLIT_ACCEPTED = 'split_accepted', 'Split accepted'
    SPLIT_DECLINED = 'split_declined', 'Split declined'
    SPLIT_PAID = 'split_paid', 'Split paid'
    SPLIT_COMPLETED = 'split_completed', 'Split completed'
    PAYMENT_REMINDER = 'payment_reminder', 'Payment reminder'
    FRIEND_REQUEST = 'friend_request', 'Friend request'
    FRIEND_ACCEPTED = 'friend_accepted', 'Friend accepted'


class Notification(models.Model):
    """
    In-app notification for a single user.

    Rows are terminal once created; only ``read`` changes afterwards.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    type = models.CharField(max_length=50, choices=NotificationType.choices)
    title = models.CharField(max_length=200)
    message = models.TextField()
    metadata = models.JSONField(default=dict, blank=True)

    split_event = models.ForeignKey(
        'ledger.SplitEvent',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications'
    )
    # Friendships live outside this service; keep the reference only
    friendship_id = models.UUIDField(null=True, blank=True)

    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'notifications'
        indexes = [
            models.Index(fields=['user', 'read'], name='notification_user_read_idx'),
            models.Index(fields=['user', 'type', 'created_at'], name='notification_dedup_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.type} for {self.user_id}: {self.title}"
