"""
Registers the daily analytics snapshot with django-celery-beat.

Usage:
    python manage.py setup_analytics_tasks

Safe to run repeatedly.
"""

from django.core.management.base import BaseCommand
from django_celery_beat.models import PeriodicTask, IntervalSchedule

TASK_NAME = 'Daily Event Analytics Snapshot'
TASK_PATH = 'events.snapshot_event_analytics'
TASK_DESCRIPTION = (
    'Stores one analytics history row per published, ongoing or completed '
    'event. Runs once a day and is idempotent per date.'
)


class Command(BaseCommand):
    help = 'Set up the Celery Beat periodic task for daily analytics snapshots'

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING('Setting up analytics tasks...'))

        schedule, created = IntervalSchedule.objects.get_or_create(
            every=1,
            period=IntervalSchedule.DAYS,
        )
        if created:
            self.stdout.write(self.style.SUCCESS('Created interval schedule: every day'))
        else:
            self.stdout.write(self.style.WARNING('Interval schedule already exists: every day'))

        task, created = PeriodicTask.objects.update_or_create(
            name=TASK_NAME,
            defaults={
                'task': TASK_PATH,
                'interval': schedule,
                'enabled': True,
                'description': TASK_DESCRIPTION,
            }
        )
        if created:
            self.stdout.write(self.style.SUCCESS(f'Created periodic task: {TASK_NAME}'))
        else:
            self.stdout.write(self.style.WARNING(f'Updated existing periodic task: {TASK_NAME}'))

        self.stdout.write(self.style.MIGRATE_LABEL('\nTask Configuration:'))
        self.stdout.write(f'  Task Function: {task.task}')
        self.stdout.write(f'  Schedule: Every {schedule.every} {schedule.period}')
        self.stdout.write(f'  Enabled: {task.enabled}')
        self.stdout.write(f'  Last Run: {task.last_run_at or "Never"}')

        self.stdout.write(
            '\nMake sure the Celery worker and beat scheduler are running:\n'
            '  celery -A core worker -l info\n'
            '  celery -A core beat -l info --scheduler django_celery_beat.schedulers:DatabaseScheduler\n'
        )
