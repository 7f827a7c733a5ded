"""Reminders app services layer."""

from .exceptions import RemindersServiceError, PartialBatchFailure
from .messages import REMINDER_TITLE, summarize_event_names, build_reminder_message
from .scheduler import (
    ReminderState,
    UserReminderSummary,
    BatchReport,
    ReminderScheduler,
    collect_outstanding_summaries,
    start_of_day,
)

__all__ = [
    'RemindersServiceError',
    'PartialBatchFailure',
    'REMINDER_TITLE',
    'summarize_event_names',
    'build_reminder_message',
    'ReminderState',
    'UserReminderSummary',
    'BatchReport',
    'ReminderScheduler',
    'collect_outstanding_summaries',
    'start_of_day',
]
