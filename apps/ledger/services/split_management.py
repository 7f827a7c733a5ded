"""
Split event management service.

Creates split events with cent-precise shares and handles the invitee
responses (accept / decline). Payments live in ``payments``.

Splitting works in integer cents so shares always sum exactly to the
total:

    equal:      total / (invitees + 1) for everyone; the creator's row
                absorbs the leftover cents
    specified:  the creator declares their share; invitees split the rest,
                leftover cents go one each to the first invitees
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import Count, Q, QuerySet, Sum
from django.utils import timezone

from apps.accounts.models import User
from apps.ledger.models import (
    OUTSTANDING_STATUSES,
    Participant,
    ParticipantStatus,
    SplitEvent,
    SplitStatus,
    SplitType,
)

from .exceptions import (
    AlreadySettledError,
    CreatorCannotRespondError,
    InvalidShareError,
    MissingReceiptError,
    NoParticipantsError,
    ParticipantNotFoundError,
    SplitEventNotFoundError,
    UserNotFoundError,
)
from .split_notifications import notify_split_invite, notify_split_response
from .wallet_management import parse_amount

logger = structlog.get_logger(__name__)


def _to_cents(amount: Decimal) -> int:
    return int(amount * 100)


def _from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal('0.01'))


def calculate_equal_split(total: Decimal, invitee_count: int) -> Tuple[Decimal, List[Decimal]]:
    """
    Split ``total`` equally between the creator and ``invitee_count`` invitees.

    Returns:
        (creator_amount, [invitee_amount, ...])

    Raises:
        NoParticipantsError: If there are no invitees
        InvalidShareError: If a share would round down to zero

    Example:
        >>> calculate_equal_split(Decimal('100.00'), 2)
        (Decimal('33.34'), [Decimal('33.33'), Decimal('33.33')])
    """
    if invitee_count < 1:
        raise NoParticipantsError("A split needs at least one other participant")

    total_cents = _to_cents(total)
    people = invitee_count + 1
    base, remainder = divmod(total_cents, people)

    if base == 0:
        raise InvalidShareError(f"{total} is too small to split between {people} people")

    creator_cents = base + remainder
    invitee_cents = [base] * invitee_count

    # Safety check
    if creator_cents + sum(invitee_cents) != total_cents:
        raise InvalidShareError("Split calculation does not add up to the total")

    return _from_cents(creator_cents), [_from_cents(c) for c in invitee_cents]


def calculate_specified_split(
    total: Decimal,
    creator_share: Decimal,
    invitee_count: int,
) -> Tuple[Decimal, List[Decimal]]:
    """
    Invitees split whatever the creator's declared share leaves.

    Raises:
        NoParticipantsError: If there are no invitees
        InvalidShareError: If the creator's share is outside (0, total) or an
            invitee share would round down to zero

    Example:
        >>> calculate_specified_split(Decimal('100.00'), Decimal('40.00'), 1)
        (Decimal('40.00'), [Decimal('60.00')])
    """
    if invitee_count < 1:
        raise NoParticipantsError("A split needs at least one other participant")
    if not (Decimal('0') < creator_share < total):
        raise InvalidShareError(
            f"Your share must be greater than 0 and less than {total}"
        )

    remaining_cents = _to_cents(total) - _to_cents(creator_share)
    base, remainder = divmod(remaining_cents, invitee_count)

    if base == 0:
        raise InvalidShareError("Remaining amount is too small to split between invitees")

    invitee_cents = [base + 1 if i < remainder else base for i in range(invitee_count)]

    if _to_cents(creator_share) + sum(invitee_cents) != _to_cents(total):
        raise InvalidShareError("Split calculation does not add up to the total")

    return creator_share, [_from_cents(c) for c in invitee_cents]


def _resolve_invitees(creator: User, participant_ids: Iterable[UUID]) -> List[User]:
    ordered_ids = []
    for user_id in participant_ids:
        if str(user_id) == str(creator.id) or str(user_id) in ordered_ids:
            continue
        ordered_ids.append(str(user_id))

    if not ordered_ids:
        raise NoParticipantsError("A split needs at least one other participant")

    users = {str(u.id): u for u in User.objects.filter(id__in=ordered_ids, is_active=True)}
    missing = [user_id for user_id in ordered_ids if user_id not in users]
    if missing:
        raise UserNotFoundError(f"Users not found: {', '.join(missing)}")

    return [users[user_id] for user_id in ordered_ids]


@transaction.atomic
def _create_split_rows(
    *,
    name: str,
    total_amount: Decimal,
    split_type: str,
    creator: User,
    invitees: List[User],
    creator_amount: Decimal,
    invitee_amounts: List[Decimal],
    receipt_ref: str,
) -> SplitEvent:
    split_event = SplitEvent.objects.create(
        name=name,
        total_amount=total_amount,
        split_type=split_type,
        creator=creator,
        receipt_ref=receipt_ref,
        status=SplitStatus.IN_PROGRESS,
    )

    # The creator funded the pot, so their row starts out paid
    rows = [
        Participant(
            split_event=split_event,
            user=creator,
            amount=creator_amount,
            status=ParticipantStatus.PAID,
            is_creator=True,
            paid_at=timezone.now(),
        )
    ]
    rows.extend(
        Participant(
            split_event=split_event,
            user=user,
            amount=amount,
            status=ParticipantStatus.PENDING,
            is_creator=False,
        )
        for user, amount in zip(invitees, invitee_amounts)
    )
    for row in rows:
        row.save()

    return split_event


def create_split(
    *,
    name: str,
    total_amount,
    split_type: str,
    creator: User,
    participant_ids: Iterable[UUID],
    creator_share=None,
    receipt_ref: str = '',
) -> SplitEvent:
    """
    Create a split event and one participant row per person, atomically.

    Invitees receive a ``split_invite`` notification once the rows are
    committed.

    Args:
        name: Display name of the bill
        total_amount: Bill total (positive, two decimals)
        split_type: ``equal`` or ``specified``
        creator: User creating the split (gets the creator row)
        participant_ids: Invitee user IDs (creator and duplicates are ignored)
        creator_share: Creator's declared share, required for ``specified``
        receipt_ref: Receipt reference, required for ``specified``

    Returns:
        Created SplitEvent

    Raises:
        InvalidAmountError: If total_amount is not a positive two-decimal number
        InvalidShareError: If the creator's share is outside (0, total)
        MissingReceiptError: If a specified split has no receipt
        NoParticipantsError: If nobody besides the creator is invited
        UserNotFoundError: If an invitee does not exist
    """
    total = parse_amount(total_amount, field='total_amount')
    receipt_ref = (receipt_ref or '').strip()
    invitees = _resolve_invitees(creator, participant_ids)

    if split_type == SplitType.SPECIFIED:
        if not receipt_ref:
            raise MissingReceiptError("A receipt is required for specified splits")
        if creator_share is None:
            raise InvalidShareError("Your share is required for specified splits")
        share = parse_amount(creator_share, field='creator_share')
        creator_amount, invitee_amounts = calculate_specified_split(total, share, len(invitees))
    elif split_type == SplitType.EQUAL:
        creator_amount, invitee_amounts = calculate_equal_split(total, len(invitees))
    else:
        raise InvalidShareError(f"Unknown split type: {split_type}")

    split_event = _create_split_rows(
        name=name,
        total_amount=total,
        split_type=split_type,
        creator=creator,
        invitees=invitees,
        creator_amount=creator_amount,
        invitee_amounts=invitee_amounts,
        receipt_ref=receipt_ref,
    )
    logger.info(
        'split_created',
        split_event_id=str(split_event.id),
        creator_id=str(creator.id),
        total_amount=str(total),
        split_type=split_type,
        participants=len(invitees) + 1,
    )

    notify_split_invite(split_event=split_event)
    return split_event


def _lock_participant(*, split_event_id: UUID, user: User) -> Participant:
    try:
        return (
            Participant.objects
            .select_for_update()
            .select_related('split_event', 'user')
            .get(split_event_id=split_event_id, user=user)
        )
    except Participant.DoesNotExist:
        raise ParticipantNotFoundError(
            f"User {user.id} is not a participant of split {split_event_id}"
        )


def _check_can_respond(participant: Participant) -> None:
    if participant.is_creator:
        raise CreatorCannotRespondError("The creator cannot respond to their own split")
    if participant.status in (ParticipantStatus.PAID, ParticipantStatus.DECLINED):
        raise AlreadySettledError(f"This share is already {participant.status}")


@transaction.atomic
def _accept(*, split_event_id: UUID, user: User) -> Tuple[Participant, bool]:
    participant = _lock_participant(split_event_id=split_event_id, user=user)
    _check_can_respond(participant)

    if participant.status == ParticipantStatus.ACCEPTED:
        return participant, False

    participant.status = ParticipantStatus.ACCEPTED
    participant.save(update_fields=['status', 'updated_at'])
    return participant, True


@transaction.atomic
def _decline(*, split_event_id: UUID, user: User) -> Participant:
    # Lock the event first, the same order pay_share uses
    SplitEvent.objects.select_for_update().filter(id=split_event_id).first()
    participant = _lock_participant(split_event_id=split_event_id, user=user)
    _check_can_respond(participant)

    participant.status = ParticipantStatus.DECLINED
    participant.save(update_fields=['status', 'updated_at'])

    split_event = participant.split_event
    if split_event.status == SplitStatus.IN_PROGRESS:
        split_event.status = SplitStatus.BLOCKED_ON_DECLINE
        split_event.save(update_fields=['status', 'updated_at'])

    return participant


def decline_share(*, split_event_id: UUID, user: User) -> Participant:
    """
    Decline a share. No wallet is touched.

    The event can no longer complete and moves to ``blocked_on_decline``.

    Raises:
        ParticipantNotFoundError: If the user has no share in the event
        CreatorCannotRespondError: If the user is the creator
        AlreadySettledError: If the share is already paid or declined
    """
    participant = _decline(split_event_id=split_event_id, user=user)
    logger.info('share_declined', split_event_id=str(split_event_id), user_id=str(user.id))
    notify_split_response(participant=participant)
    return participant


def respond_to_split(*, split_event_id: UUID, user: User, accept: bool) -> Participant:
    """
    Accept or decline an invitation.

    Accepting a share that is already accepted is a no-op (no second
    notification).

    Raises:
        ParticipantNotFoundError: If the user has no share in the event
        CreatorCannotRespondError: If the user is the creator
        AlreadySettledError: If the share is already paid or declined
    """
    if not accept:
        return decline_share(split_event_id=split_event_id, user=user)

    participant, changed = _accept(split_event_id=split_event_id, user=user)
    if changed:
        logger.info('share_accepted', split_event_id=str(split_event_id), user_id=str(user.id))
        notify_split_response(participant=participant)
    return participant


def list_user_splits(*, user: User, status: Optional[str] = None) -> QuerySet:
    """Split events the user takes part in (as creator or invitee), newest first."""
    queryset = (
        SplitEvent.objects
        .filter(participants__user=user)
        .select_related('creator')
        .prefetch_related('participants__user')
        .distinct()
        .order_by('-created_at')
    )
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def get_split_for_user(*, split_event_id: UUID, user: User) -> SplitEvent:
    """
    Raises:
        SplitEventNotFoundError: If the event does not exist or the user is not in it
    """
    try:
        return list_user_splits(user=user).get(id=split_event_id)
    except SplitEvent.DoesNotExist:
        raise SplitEventNotFoundError(f"Split event {split_event_id} not found")


def get_split_summary(*, split_event: SplitEvent) -> dict:
    """
    Payment status overview of a split event.

    Returns:
        dict with split_event, total_amount, collected_amount,
        outstanding_amount, participants_count, paid_count,
        outstanding_count, declined_count, is_completed, participants
    """
    participants = split_event.participants.select_related('user')
    counts = participants.aggregate(
        participants_count=Count('id'),
        paid_count=Count('id', filter=Q(status=ParticipantStatus.PAID)),
        outstanding_count=Count('id', filter=Q(status__in=OUTSTANDING_STATUSES)),
        declined_count=Count('id', filter=Q(status=ParticipantStatus.DECLINED)),
    )
    collected = split_event.get_collected_amount()

    return {
        'split_event': split_event,
        'total_amount': split_event.total_amount,
        'collected_amount': collected,
        'outstanding_amount': split_event.get_outstanding_balance(),
        'is_completed': split_event.status == SplitStatus.COMPLETED,
        'participants': list(participants),
        **counts,
    }


def get_outstanding_obligations() -> QuerySet:
    """
    Every unpaid invitee share across all events.

    Creator rows are never included. Ordered by user so callers can group.
    """
    return (
        Participant.objects
        .filter(status__in=OUTSTANDING_STATUSES, is_creator=False)
        .select_related('user', 'split_event')
        .order_by('user_id', 'created_at')
    )


def get_user_outstanding(*, user: User) -> dict:
    """
    The user's own unpaid shares.

    Returns:
        dict with total_outstanding, count, shares
    """
    shares = get_outstanding_obligations().filter(user=user)
    total = shares.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    return {
        'total_outstanding': total,
        'count': shares.count(),
        'shares': list(shares),
    }
