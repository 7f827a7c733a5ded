"""
Notifications emitted by ledger state transitions.

Called after the ledger transaction has committed. Delivery is best effort:
``send_notification`` never raises, so nothing here can undo a payment.
"""

import structlog

from apps.ledger.models import Participant, ParticipantStatus, SplitEvent
from apps.notifications.models import Notification, NotificationType
from apps.notifications.services import send_notification

logger = structlog.get_logger(__name__)


def notify_split_invite(*, split_event: SplitEvent) -> None:
    """Send ``split_invite`` to every invitee of a new split."""
    creator = split_event.creator
    creator_name = creator.get_display_name()

    invitees = split_event.participants.filter(is_creator=False).select_related('user')
    for participant in invitees:
        send_notification(
            user_id=participant.user_id,
            type=NotificationType.SPLIT_INVITE,
            title='New Split Request',
            message=f"{creator_name} wants to split {split_event.name}",
            metadata={
                'split_type': split_event.split_type,
                'amount': str(participant.amount),
                'creator_name': creator_name,
            },
            split_event_id=split_event.id,
            actor=creator,
            push_body=(
                f"{creator_name} invited you to split ${participant.amount:.2f} "
                f"for {split_event.name}"
            ),
        )


def notify_split_response(*, participant: Participant) -> None:
    """Tell the creator an invitee accepted or declined."""
    split_event = participant.split_event
    is_accept = participant.status == ParticipantStatus.ACCEPTED
    response = 'accepted' if is_accept else 'declined'

    send_notification(
        user_id=split_event.creator_id,
        type=NotificationType.SPLIT_ACCEPTED if is_accept else NotificationType.SPLIT_DECLINED,
        title='Split Accepted' if is_accept else 'Split Declined',
        message=f"{participant.user.get_display_name()} {response} your split for {split_event.name}",
        split_event_id=split_event.id,
        actor=participant.user,
        push=False,
    )


def notify_share_paid(*, participant: Participant) -> None:
    """Tell the creator an invitee paid their share."""
    split_event = participant.split_event
    payer_name = participant.user.get_display_name()

    send_notification(
        user_id=split_event.creator_id,
        type=NotificationType.SPLIT_PAID,
        title='Payment Received',
        message=f"{payer_name} paid their share for {split_event.name}",
        metadata={'amount': str(participant.amount), 'payer_name': payer_name},
        split_event_id=split_event.id,
        actor=participant.user,
        push_body=f"{payer_name} paid ${participant.amount:.2f} for {split_event.name}",
    )


def notify_split_completed(*, split_event: SplitEvent, actor=None) -> None:
    """
    Tell the creator everyone has paid.

    Sent at most once per split event.
    """
    already_sent = Notification.objects.filter(
        user_id=split_event.creator_id,
        split_event=split_event,
        type=NotificationType.SPLIT_COMPLETED,
    ).exists()
    if already_sent:
        logger.info('split_completed_already_notified', split_event_id=str(split_event.id))
        return

    message = (
        f"Everyone has paid for {split_event.name}. "
        f"You collected ${split_event.total_amount:.2f}!"
    )
    send_notification(
        user_id=split_event.creator_id,
        type=NotificationType.SPLIT_COMPLETED,
        title='Split Complete!',
        message=message,
        metadata={'total_amount': str(split_event.total_amount)},
        split_event_id=split_event.id,
        actor=actor,
    )
