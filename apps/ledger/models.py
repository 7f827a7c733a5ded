from django.db import models
from django.db.models import Q, Sum
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class SplitType(models.TextChoices):
    EQUAL = 'equal', 'Equal'
    SPECIFIED = 'specified', 'Specified'


class SplitStatus(models.TextChoices):
    IN_PROGRESS = 'in_progress', 'In progress'
    COMPLETED = 'completed', 'Completed'
    BLOCKED_ON_DECLINE = 'blocked_on_decline', 'Blocked on decline'


class ParticipantStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    ACCEPTED = 'accepted', 'Accepted'
    PAID = 'paid', 'Paid'
    DECLINED = 'declined', 'Declined'


# Statuses that still owe money
OUTSTANDING_STATUSES = [ParticipantStatus.PENDING, ParticipantStatus.ACCEPTED]


class TransactionType(models.TextChoices):
    DEPOSIT = 'deposit', 'Deposit'
    WITHDRAWAL = 'withdrawal', 'Withdrawal'
    TRANSFER_IN = 'transfer_in', 'Transfer in'
    TRANSFER_OUT = 'transfer_out', 'Transfer out'
    PAYMENT = 'payment', 'Payment'


class SplitEvent(models.Model):
    """A bill shared between a creator and one or more invitees."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    split_type = models.CharField(max_length=20, choices=SplitType.choices)

    creator = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='created_splits'
    )
    # Reference to an uploaded receipt image (storage key or URL)
    receipt_ref = models.CharField(max_length=500, blank=True)

    status = models.CharField(
        max_length=20,
        choices=SplitStatus.choices,
        default=SplitStatus.IN_PROGRESS
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'split_events'
        indexes = [
            models.Index(fields=['creator', 'status'], name='split_event_creator_idx'),
            models.Index(fields=['status', 'created_at'], name='split_event_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} - {self.total_amount} ({self.status})"

    def get_collected_amount(self):
        """Sum of the shares already paid."""
        return self.participants.filter(
            status=ParticipantStatus.PAID
        ).aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

    def get_outstanding_balance(self):
        """Return unpaid amount."""
        return max(Decimal('0.00'), self.total_amount - self.get_collected_amount())


class Participant(models.Model):
    """One user's obligation within a split event."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    split_event = models.ForeignKey(
        SplitEvent,
        on_delete=models.CASCADE,
        related_name='participants'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='split_participations'
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    status = models.CharField(
        max_length=20,
        choices=ParticipantStatus.choices,
        default=ParticipantStatus.PENDING
    )
    is_creator = models.BooleanField(default=False)

    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'split_participants'
        constraints = [
            models.UniqueConstraint(
                fields=['split_event', 'user'],
                name='unique_participant_per_split',
            ),
            models.UniqueConstraint(
                fields=['split_event'],
                condition=Q(is_creator=True),
                name='one_creator_per_split',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'status'], name='participant_user_status_idx'),
            models.Index(fields=['split_event', 'status'], name='participant_split_status_idx'),
        ]
        ordering = ['-is_creator', 'created_at']

    def __str__(self):
        return f"{self.user.get_display_name()} owes {self.amount} ({self.status})"

    @property
    def is_outstanding(self):
        return not self.is_creator and self.status in OUTSTANDING_STATUSES


class Wallet(models.Model):
    """
    In-app wallet, one per user.

    Balance constraint: must be >= 0.00, enforced by the service layer and
    by a database check constraint.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='wallet'
    )
    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    bank_connected = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'wallets'
        constraints = [
            models.CheckConstraint(
                check=Q(balance__gte=Decimal('0.00')),
                name='wallet_balance_non_negative',
            ),
        ]

    def __str__(self):
        return f"Wallet({self.user.email}: ${self.balance})"


class Transaction(models.Model):
    """
    Immutable ledger entry paired with exactly one balance change.

    Rows are append-only: saving an existing row or deleting one raises
    ImmutableTransactionError.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name='transactions'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='wallet_transactions'
    )
    type = models.CharField(max_length=20, choices=TransactionType.choices)

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    # Signed effect on the wallet balance (+ credit, - debit)
    balance_effect = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)

    description = models.CharField(max_length=255, blank=True)
    split_event = models.ForeignKey(
        SplitEvent,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions'
    )
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'wallet_transactions'
        indexes = [
            models.Index(fields=['user', 'created_at'], name='transaction_user_idx'),
            models.Index(fields=['split_event'], name='transaction_split_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.type} {self.balance_effect} ({self.user.email})"

    def save(self, *args, **kwargs):
        from .services.exceptions import ImmutableTransactionError

        if not self._state.adding:
            raise ImmutableTransactionError("Transactions cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        from .services.exceptions import ImmutableTransactionError

        raise ImmutableTransactionError("Transactions cannot be deleted")
