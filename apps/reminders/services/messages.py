"""Reminder wording."""

from decimal import Decimal
from typing import List

REMINDER_TITLE = 'Payment Reminder'


def summarize_event_names(event_names: List[str]) -> str:
    """
    Readable list of at most two names.

    >>> summarize_event_names(['Dinner', 'Cab', 'Rent', 'Gas'])
    'Dinner, Cab and 2 more'
    """
    if len(event_names) <= 2:
        return ' and '.join(event_names)
    return f"{', '.join(event_names[:2])} and {len(event_names) - 2} more"


def build_reminder_message(*, user_name: str, total_pending: Decimal, event_count: int, event_names: List[str]) -> str:
    event_list = summarize_event_names(event_names)
    if event_count == 1:
        return (
            f'Hi {user_name}, you have ${total_pending:.2f} pending for '
            f'"{event_list}". Tap to pay now!'
        )
    return (
        f'Hi {user_name}, you have ${total_pending:.2f} pending across '
        f'{event_count} splits ({event_list}). Tap to settle up!'
    )
