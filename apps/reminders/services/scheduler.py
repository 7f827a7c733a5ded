"""
Daily payment reminder scheduler.

``on_tick`` is called at least once an hour. It runs the batch only during
the reminder hour and only once per calendar day (``ReminderState``). A
batch whose outstanding-share query failed does not count as run.
The per-user "already reminded today" check queries existing
``payment_reminder`` notifications, so it also holds across restarts and
manual runs.

Example::

    scheduler = ReminderScheduler.from_settings()
    report = scheduler.run_batch()
    print(report.to_dict())
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import close_old_connections
from django.utils import timezone

from apps.ledger.services import get_outstanding_obligations
from apps.notifications.models import Notification, NotificationType
from apps.notifications.services import (
    ExpoPushGateway,
    NotificationPayload,
    PushDeliveryError,
    PushMessage,
    get_dispatcher,
)

from .exceptions import PartialBatchFailure
from .messages import REMINDER_TITLE, build_reminder_message

logger = structlog.get_logger(__name__)


@dataclass
class ReminderState:
    """Process-local scheduler state."""

    last_run_date: Optional[date] = None


@dataclass
class UserReminderSummary:
    """Everything one user still owes."""

    user_id: UUID
    user_name: str
    push_token: Optional[str]
    total_pending: Decimal = Decimal('0.00')
    event_count: int = 0
    event_names: List[str] = field(default_factory=list)


@dataclass
class BatchReport:
    """Outcome of one ``run_batch`` call."""

    started_at: datetime
    users_found: int = 0
    reminded: List[UUID] = field(default_factory=list)
    skipped: List[UUID] = field(default_factory=list)
    pushed: List[UUID] = field(default_factory=list)
    failures: List[PartialBatchFailure] = field(default_factory=list)

    @property
    def failed(self) -> List[UUID]:
        return [f.user_id for f in self.failures if f.stage != 'push']

    @property
    def fetch_failed(self) -> bool:
        return any(f.stage == 'fetch' for f in self.failures)

    def to_dict(self) -> Dict:
        return {
            'started_at': self.started_at.isoformat(),
            'users_found': self.users_found,
            'reminded': [str(u) for u in self.reminded],
            'skipped': [str(u) for u in self.skipped],
            'pushed': [str(u) for u in self.pushed],
            'failures': [f.to_dict() for f in self.failures],
        }


def collect_outstanding_summaries() -> List[UserReminderSummary]:
    """Group every unpaid invitee share by user."""
    summaries: Dict[UUID, UserReminderSummary] = {}

    for participant in get_outstanding_obligations():
        summary = summaries.get(participant.user_id)
        if summary is None:
            summary = UserReminderSummary(
                user_id=participant.user_id,
                user_name=participant.user.get_display_name(),
                push_token=participant.user.push_token,
            )
            summaries[participant.user_id] = summary

        summary.total_pending += participant.amount
        summary.event_count += 1
        name = participant.split_event.name
        if name not in summary.event_names:
            summary.event_names.append(name)

    return list(summaries.values())


def start_of_day(now: datetime) -> datetime:
    """Local midnight of ``now``'s calendar day."""
    if timezone.is_aware(now):
        now = timezone.localtime(now)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class ReminderScheduler:
    """
    Args:
        dispatcher: NotificationDispatcher for the in-app reminder
        push_gateway: Push gateway with ``send(PushMessage)``
        clock: Returns the current local datetime
        reminder_hour: Local hour during which the batch runs
        max_workers: Users reminded concurrently (1 = sequential)
        state: Scheduler state, shared across ticks
    """

    def __init__(
        self,
        *,
        dispatcher,
        push_gateway,
        clock: Callable[[], datetime] = timezone.localtime,
        reminder_hour: int = 9,
        max_workers: int = 1,
        state: Optional[ReminderState] = None,
    ):
        self.dispatcher = dispatcher
        self.push_gateway = push_gateway
        self.clock = clock
        self.reminder_hour = reminder_hour
        self.max_workers = max(1, max_workers)
        self.state = state or ReminderState()
        self._stop_event = threading.Event()

    @classmethod
    def from_settings(cls, **overrides):
        options = {
            'dispatcher': get_dispatcher(),
            'push_gateway': ExpoPushGateway.from_settings(),
            'reminder_hour': settings.REMINDER_HOUR,
            'max_workers': settings.REMINDER_MAX_WORKERS,
        }
        options.update(overrides)
        return cls(**options)

    # ------------------------------------------------------------------
    # Triggering
    # ------------------------------------------------------------------

    def on_tick(self, now: Optional[datetime] = None) -> Optional[BatchReport]:
        """Run the batch if it is reminder time and it has not run today."""
        now = now or self.clock()
        today = now.date()

        if now.hour != self.reminder_hour or self.state.last_run_date == today:
            return None

        logger.info('reminder_batch_triggered', date=today.isoformat())
        report = self.run_batch(now=now)
        if report.fetch_failed:
            # Leave the day open so a later tick in the reminder hour retries
            logger.warning('reminder_batch_retry_pending', date=today.isoformat())
            return report
        self.state.last_run_date = today
        return report

    def start(self, *, tick_seconds: float) -> None:
        """Tick now and then every ``tick_seconds`` until ``stop()``. Blocks."""
        self._stop_event.clear()
        logger.info('reminder_scheduler_started', tick_seconds=tick_seconds, hour=self.reminder_hour)
        while not self._stop_event.is_set():
            self.on_tick()
            self._stop_event.wait(tick_seconds)
        logger.info('reminder_scheduler_stopped')

    def stop(self) -> None:
        self._stop_event.set()

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def run_batch(self, now: Optional[datetime] = None) -> BatchReport:
        """
        Remind every user with unpaid shares, at most once per day each.

        Failures are isolated per user and collected in the report.
        """
        now = now or self.clock()
        report = BatchReport(started_at=now)

        try:
            summaries = collect_outstanding_summaries()
        except Exception as e:
            logger.error('reminder_fetch_failed', error=str(e))
            report.failures.append(PartialBatchFailure(user_id=None, stage='fetch', error=str(e)))
            return report

        report.users_found = len(summaries)
        if not summaries:
            logger.info('reminder_batch_empty')
            return report

        midnight = start_of_day(now)

        if self.max_workers == 1:
            for summary in summaries:
                self._remind_safely(summary, midnight, report)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                for summary in summaries:
                    executor.submit(self._remind_in_worker, summary, midnight, report)

        logger.info(
            'reminder_batch_finished',
            users_found=report.users_found,
            reminded=len(report.reminded),
            skipped=len(report.skipped),
            failures=len(report.failures),
        )
        return report

    def _remind_in_worker(self, summary, midnight, report):
        try:
            self._remind_safely(summary, midnight, report)
        finally:
            close_old_connections()

    def _remind_safely(self, summary: UserReminderSummary, midnight: datetime, report: BatchReport) -> None:
        try:
            self.remind_user(summary, midnight=midnight, report=report)
        except Exception as e:
            logger.error('reminder_failed', user_id=str(summary.user_id), error=str(e))
            report.failures.append(PartialBatchFailure(user_id=summary.user_id, stage='reminder', error=str(e)))

    def already_reminded(self, user_id: UUID, midnight: datetime) -> bool:
        return Notification.objects.filter(
            user_id=user_id,
            type=NotificationType.PAYMENT_REMINDER,
            created_at__gte=midnight,
        ).exists()

    def remind_user(self, summary: UserReminderSummary, *, midnight: datetime, report: BatchReport) -> None:
        """Dedup check, in-app reminder, then push. Push failure is recorded, not raised."""
        if self.already_reminded(summary.user_id, midnight):
            logger.info('reminder_skipped_duplicate', user_id=str(summary.user_id))
            report.skipped.append(summary.user_id)
            return

        message = build_reminder_message(
            user_name=summary.user_name,
            total_pending=summary.total_pending,
            event_count=summary.event_count,
            event_names=summary.event_names,
        )

        result = self.dispatcher.deliver(NotificationPayload(
            user_id=summary.user_id,
            type=NotificationType.PAYMENT_REMINDER,
            title=REMINDER_TITLE,
            message=message,
            metadata={
                'total_amount': str(summary.total_pending),
                'event_count': summary.event_count,
                'event_names': summary.event_names,
            },
        ))
        if result.succeeded:
            report.reminded.append(summary.user_id)
        else:
            report.failures.append(PartialBatchFailure(
                user_id=summary.user_id,
                stage='notification',
                error=result.error.value if result.error else 'unknown',
            ))

        if not summary.push_token:
            return

        try:
            self.push_gateway.send(PushMessage(
                to=summary.push_token,
                title=REMINDER_TITLE,
                body=message,
                data={
                    'type': NotificationType.PAYMENT_REMINDER.value,
                    'totalAmount': float(summary.total_pending),
                    'eventCount': summary.event_count,
                },
                badge=summary.event_count,
            ))
        except PushDeliveryError as e:
            logger.warning('reminder_push_failed', user_id=str(summary.user_id), error=str(e))
            report.failures.append(PartialBatchFailure(user_id=summary.user_id, stage='push', error=str(e)))
            return

        report.pushed.append(summary.user_id)
