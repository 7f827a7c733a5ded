"""
Share payment service.

Paying a share moves money from the payer's wallet to the creator's
wallet. The debit, the credit, both Transaction rows, the participant
status and the event completion all commit together or not at all.

Concurrency: the split event row is locked first, then the participant,
then both wallets in primary-key order. A second submission for the same
share waits on those locks and then sees ``paid``, so it raises
AlreadySettledError instead of debiting twice.
"""

from typing import Tuple
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.ledger.models import (
    Participant,
    ParticipantStatus,
    SplitEvent,
    SplitStatus,
    TransactionType,
    Wallet,
)

from .exceptions import (
    AlreadySettledError,
    InsufficientFundsError,
    ParticipantNotFoundError,
)
from .split_notifications import notify_share_paid, notify_split_completed
from .wallet_management import get_wallet, record_entry

logger = structlog.get_logger(__name__)


@transaction.atomic
def _settle_share(*, split_event_id: UUID, user: User) -> Tuple[Participant, bool]:
    try:
        split_event = SplitEvent.objects.select_for_update().get(id=split_event_id)
    except SplitEvent.DoesNotExist:
        raise ParticipantNotFoundError(f"Split event {split_event_id} not found")

    try:
        participant = (
            Participant.objects
            .select_for_update()
            .select_related('user')
            .get(split_event=split_event, user=user)
        )
    except Participant.DoesNotExist:
        raise ParticipantNotFoundError(
            f"User {user.id} is not a participant of split {split_event_id}"
        )

    if participant.status in (ParticipantStatus.PAID, ParticipantStatus.DECLINED):
        raise AlreadySettledError(f"This share is already {participant.status}")

    get_wallet(user=user)
    get_wallet(user=split_event.creator)
    wallets = {
        wallet.user_id: wallet
        for wallet in Wallet.objects.select_for_update()
        .filter(user_id__in=[user.id, split_event.creator_id])
        .order_by('id')
    }
    payer_wallet = wallets[user.id]
    creator_wallet = wallets[split_event.creator_id]

    amount = participant.amount
    if payer_wallet.balance < amount:
        raise InsufficientFundsError(
            f"Insufficient funds: balance {payer_wallet.balance}, required {amount}"
        )

    record_entry(
        wallet=payer_wallet,
        type=TransactionType.PAYMENT,
        amount=amount,
        description=f"Paid share for {split_event.name}",
        split_event=split_event,
        metadata={'participant_id': str(participant.id)},
    )
    record_entry(
        wallet=creator_wallet,
        type=TransactionType.TRANSFER_IN,
        amount=amount,
        description=f"{user.get_display_name()} paid for {split_event.name}",
        split_event=split_event,
        metadata={'participant_id': str(participant.id), 'payer_id': str(user.id)},
    )

    participant.status = ParticipantStatus.PAID
    participant.paid_at = timezone.now()
    participant.save(update_fields=['status', 'paid_at', 'updated_at'])

    completed = False
    all_paid = not split_event.participants.exclude(status=ParticipantStatus.PAID).exists()
    if all_paid and split_event.status == SplitStatus.IN_PROGRESS:
        split_event.status = SplitStatus.COMPLETED
        split_event.save(update_fields=['status', 'updated_at'])
        completed = True

    participant.split_event = split_event
    return participant, completed


def pay_share(*, split_event_id: UUID, user: User) -> Participant:
    """
    Pay the user's share of a split event from their wallet.

    When this was the last unpaid share the event becomes ``completed``.
    The creator is notified with ``split_paid`` and, on completion,
    ``split_completed``.

    Args:
        split_event_id: UUID of the split event
        user: Paying participant

    Returns:
        The updated Participant

    Raises:
        ParticipantNotFoundError: If the user has no share in the event
        AlreadySettledError: If the share is already paid or declined
        InsufficientFundsError: If the wallet balance is below the share
    """
    participant, completed = _settle_share(split_event_id=split_event_id, user=user)
    logger.info(
        'share_paid',
        split_event_id=str(split_event_id),
        user_id=str(user.id),
        amount=str(participant.amount),
        completed=completed,
    )

    notify_share_paid(participant=participant)
    if completed:
        notify_split_completed(split_event=participant.split_event, actor=user)

    return participant
