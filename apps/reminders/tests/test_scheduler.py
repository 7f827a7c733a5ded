import threading
import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import Mock, patch
from uuid import uuid4

from django.core.management import call_command
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.accounts.models import User
from apps.ledger.services import create_split
from apps.notifications.models import Notification, NotificationType
from apps.notifications.services import DeliveryResult, ErrorKind, PushDeliveryError, Tier
from apps.reminders.services import (
    BatchReport,
    PartialBatchFailure,
    ReminderScheduler,
    ReminderState,
    build_reminder_message,
    collect_outstanding_summaries,
    start_of_day,
)
from .conftest import make_client


def reminders_for(user):
    return Notification.objects.filter(user=user, type=NotificationType.PAYMENT_REMINDER)


class TestReminderMessage:

    def test_single_event(self):
        message = build_reminder_message(
            user_name='Alice', total_pending=Decimal('30'), event_count=1, event_names=['Dinner'],
        )

        assert message == 'Hi Alice, you have $30.00 pending for "Dinner". Tap to pay now!'

    def test_several_events(self):
        message = build_reminder_message(
            user_name='Alice',
            total_pending=Decimal('75.50'),
            event_count=4,
            event_names=['Dinner', 'Cab', 'Rent', 'Gas'],
        )

        assert message == (
            'Hi Alice, you have $75.50 pending across 4 splits '
            '(Dinner, Cab and 2 more). Tap to settle up!'
        )


@pytest.mark.django_db
class TestCollectSummaries:

    def test_grouped_by_user(self, splits, alice, bob, creator):
        summaries = {s.user_id: s for s in collect_outstanding_summaries()}

        assert set(summaries) == {alice.id, bob.id}
        assert summaries[alice.id].total_pending == Decimal('40.00')
        assert summaries[alice.id].event_count == 2
        assert summaries[alice.id].event_names == ['Dinner', 'Cab']
        assert summaries[bob.id].total_pending == Decimal('30.00')


@pytest.mark.django_db
class TestRunBatch:

    def test_reminds_each_user_once(self, scheduler, splits, alice, bob, push_gateway):
        report = scheduler.run_batch()

        assert report.users_found == 2
        assert set(report.reminded) == {alice.id, bob.id}
        assert reminders_for(alice).count() == 1
        assert reminders_for(bob).count() == 1
        assert reminders_for(alice).get().metadata['event_count'] == 2
        # Only alice has a push token
        assert report.pushed == [alice.id]
        push_gateway.send.assert_called_once()
        message = push_gateway.send.call_args.args[0]
        assert message.badge == 2
        assert message.data['totalAmount'] == 40.0

    def test_second_run_same_day_skips(self, scheduler, splits, alice, bob):
        scheduler.run_batch()
        report = scheduler.run_batch()

        assert set(report.skipped) == {alice.id, bob.id}
        assert reminders_for(alice).count() == 1

    def test_reminder_from_yesterday_does_not_block(self, scheduler, splits, alice):
        scheduler.run_batch()
        yesterday = timezone.now() - timedelta(days=1)
        reminders_for(alice).update(created_at=yesterday)

        report = scheduler.run_batch()

        assert alice.id in report.reminded
        assert reminders_for(alice).count() == 2

    def test_nothing_outstanding(self, scheduler, db):
        report = scheduler.run_batch()

        assert report.users_found == 0
        assert report.reminded == []

    def test_push_failure_does_not_block(self, scheduler, splits, alice, push_gateway):
        push_gateway.send.side_effect = PushDeliveryError('DeviceNotRegistered')

        report = scheduler.run_batch()

        assert alice.id in report.reminded
        assert report.pushed == []
        assert [(f.user_id, f.stage) for f in report.failures] == [(alice.id, 'push')]
        assert report.failed == []

    def test_one_user_failure_is_isolated(self, splits, alice, bob, push_gateway):
        dispatcher = Mock()

        def deliver(payload, actor=None):
            if payload.user_id == alice.id:
                raise RuntimeError('database went away')
            return DeliveryResult(succeeded=True, tier=Tier.SECONDARY)

        dispatcher.deliver.side_effect = deliver
        scheduler = ReminderScheduler(dispatcher=dispatcher, push_gateway=push_gateway)

        report = scheduler.run_batch()

        assert report.reminded == [bob.id]
        assert report.failed == [alice.id]

    def test_undelivered_notification_is_reported(self, splits, bob, push_gateway):
        dispatcher = Mock()
        dispatcher.deliver.return_value = DeliveryResult(
            succeeded=False, tier=Tier.TERTIARY, error=ErrorKind.UNAUTHORIZED,
        )
        scheduler = ReminderScheduler(dispatcher=dispatcher, push_gateway=push_gateway)

        report = scheduler.run_batch()

        assert report.reminded == []
        assert {f.stage for f in report.failures if f.user_id == bob.id} == {'notification'}

    def test_fetch_failure(self, scheduler, db):
        with patch(
            'apps.reminders.services.scheduler.collect_outstanding_summaries',
            side_effect=RuntimeError('timeout'),
        ):
            report = scheduler.run_batch()

        assert [f.stage for f in report.failures] == ['fetch']


class TestOnTick:

    def make_scheduler(self, report=None):
        scheduler = ReminderScheduler(dispatcher=Mock(), push_gateway=Mock(), reminder_hour=9)
        self.report = report or BatchReport(started_at=datetime(2026, 3, 2, 9, 0))
        scheduler.run_batch = Mock(return_value=self.report)
        return scheduler

    def test_runs_during_reminder_hour(self):
        scheduler = self.make_scheduler()

        assert scheduler.on_tick(datetime(2026, 3, 2, 9, 15)) is self.report
        assert scheduler.state.last_run_date == datetime(2026, 3, 2).date()

    def test_outside_reminder_hour(self):
        scheduler = self.make_scheduler()

        assert scheduler.on_tick(datetime(2026, 3, 2, 10, 0)) is None
        scheduler.run_batch.assert_not_called()

    def test_once_per_day(self):
        scheduler = self.make_scheduler()

        scheduler.on_tick(datetime(2026, 3, 2, 9, 0))
        scheduler.on_tick(datetime(2026, 3, 2, 9, 45))
        scheduler.on_tick(datetime(2026, 3, 3, 9, 5))

        assert scheduler.run_batch.call_count == 2

    def test_fetch_failure_retried_on_next_tick(self):
        failed = BatchReport(started_at=datetime(2026, 3, 2, 9, 0))
        failed.failures.append(PartialBatchFailure(user_id=None, stage='fetch', error='connection refused'))
        scheduler = self.make_scheduler(report=failed)

        scheduler.on_tick(datetime(2026, 3, 2, 9, 0))
        assert scheduler.state.last_run_date is None

        scheduler.run_batch.return_value = BatchReport(started_at=datetime(2026, 3, 2, 9, 30))
        scheduler.on_tick(datetime(2026, 3, 2, 9, 30))
        scheduler.on_tick(datetime(2026, 3, 2, 9, 45))

        assert scheduler.run_batch.call_count == 2
        assert scheduler.state.last_run_date == datetime(2026, 3, 2).date()

    def test_user_failures_still_close_the_day(self):
        partial = BatchReport(started_at=datetime(2026, 3, 2, 9, 0))
        partial.failures.append(PartialBatchFailure(user_id=uuid4(), stage='reminder', error='boom'))
        scheduler = self.make_scheduler(report=partial)

        scheduler.on_tick(datetime(2026, 3, 2, 9, 0))

        assert scheduler.state.last_run_date == datetime(2026, 3, 2).date()

    def test_uses_injected_clock(self):
        scheduler = ReminderScheduler(
            dispatcher=Mock(),
            push_gateway=Mock(),
            clock=lambda: datetime(2026, 3, 2, 9, 30),
            state=ReminderState(),
        )
        report = BatchReport(started_at=datetime(2026, 3, 2, 9, 30))
        scheduler.run_batch = Mock(return_value=report)

        assert scheduler.on_tick() is report

    def test_start_of_day(self):
        assert start_of_day(datetime(2026, 3, 2, 17, 42, 5)) == datetime(2026, 3, 2)


@pytest.mark.django_db(transaction=True)
class TestConcurrentBatch:
    """run_batch with several workers reminding users in parallel."""

    @pytest.fixture
    def dave(self, db):
        return User.objects.create_user(
            email='dave@example.com',
            password='TestPass123!',
            display_name='Dave',
        )

    @pytest.fixture
    def debts(self, splits, creator, dave):
        create_split(
            name='Groceries',
            total_amount=Decimal('30.00'),
            split_type='equal',
            creator=creator,
            participant_ids=[dave.id],
        )

    def make_dispatcher(self, failing_user_id=None):
        lock = threading.Lock()
        delivered = []

        def deliver(payload, actor=None):
            if payload.user_id == failing_user_id:
                raise RuntimeError('database went away')
            with lock:
                delivered.append(payload.user_id)
            return DeliveryResult(succeeded=True, tier=Tier.SECONDARY)

        dispatcher = Mock()
        dispatcher.deliver.side_effect = deliver
        return dispatcher, delivered

    def test_each_user_reminded_once(self, debts, alice, bob, dave, push_gateway):
        dispatcher, delivered = self.make_dispatcher()
        scheduler = ReminderScheduler(dispatcher=dispatcher, push_gateway=push_gateway, max_workers=2)

        report = scheduler.run_batch()

        assert report.users_found == 3
        assert sorted(delivered, key=str) == sorted([alice.id, bob.id, dave.id], key=str)
        assert set(report.reminded) == {alice.id, bob.id, dave.id}
        assert len(report.reminded) == 3
        assert report.failures == []
        assert report.pushed == [alice.id]

    def test_failure_isolated_between_workers(self, debts, alice, bob, dave, push_gateway):
        dispatcher, delivered = self.make_dispatcher(failing_user_id=bob.id)
        scheduler = ReminderScheduler(dispatcher=dispatcher, push_gateway=push_gateway, max_workers=2)

        report = scheduler.run_batch()

        assert set(report.reminded) == {alice.id, dave.id}
        assert report.failed == [bob.id]
        assert [f.stage for f in report.failures] == ['reminder']


@pytest.mark.django_db
class TestRunRemindersCommand:

    def test_force(self, splits, alice):
        out = StringIO()
        with patch('apps.notifications.services.push.requests.post') as post:
            post.return_value.json.return_value = {'data': {'status': 'ok'}}
            call_command('run_reminders', '--force', stdout=out)

        assert 'Users with unpaid shares: 2' in out.getvalue()
        assert reminders_for(alice).count() == 1


@pytest.mark.django_db
class TestRunRemindersApi:
    """Tests for POST /api/reminders/run/"""

    def test_requires_staff(self, alice):
        response = make_client(alice).post(reverse('reminders:run'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_staff_runs_batch(self, staff_user, splits, bob):
        with patch('apps.notifications.services.push.requests.post') as post:
            post.return_value.json.return_value = {'data': {'status': 'ok'}}
            response = make_client(staff_user).post(reverse('reminders:run'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['users_found'] == 2
        assert str(bob.id) in response.data['reminded']
