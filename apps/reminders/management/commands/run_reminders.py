"""
Management command to send daily payment reminders.

Usage:
    python manage.py run_reminders            # one tick now
    python manage.py run_reminders --force    # run the batch immediately
    python manage.py run_reminders --loop     # long-running scheduler
"""

import signal

from django.conf import settings
from django.core.management.base import BaseCommand

from apps.reminders.services import ReminderScheduler


class Command(BaseCommand):
    help = 'Send daily payment reminders to users with unpaid split shares'

    def add_arguments(self, parser):
        parser.add_argument(
            '--loop',
            action='store_true',
            help='Keep running and tick every REMINDER_TICK_SECONDS',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Run the batch now regardless of the hour (dedup still applies)',
        )

    def handle(self, *args, **options):
        scheduler = ReminderScheduler.from_settings()

        if options['force']:
            report = scheduler.run_batch()
            self.write_report(report)
            return

        if options['loop']:
            signal.signal(signal.SIGTERM, lambda *_: scheduler.stop())
            signal.signal(signal.SIGINT, lambda *_: scheduler.stop())
            self.stdout.write(
                f'Reminder scheduler running (hour={scheduler.reminder_hour}, '
                f'tick={settings.REMINDER_TICK_SECONDS}s)'
            )
            scheduler.start(tick_seconds=settings.REMINDER_TICK_SECONDS)
            self.stdout.write('Reminder scheduler stopped')
            return

        report = scheduler.on_tick()
        if report is None:
            self.stdout.write('Not reminder time yet, nothing sent')
        else:
            self.write_report(report)

    def write_report(self, report):
        self.stdout.write(f'Users with unpaid shares: {report.users_found}')
        self.stdout.write(f'  reminded: {len(report.reminded)}')
        self.stdout.write(f'  skipped (already reminded today): {len(report.skipped)}')
        self.stdout.write(f'  pushed: {len(report.pushed)}')
        for failure in report.failures:
            self.stdout.write(self.style.WARNING(f'  failed: {failure}'))
        if not report.failures:
            self.stdout.write(self.style.SUCCESS('Reminders sent successfully!'))
