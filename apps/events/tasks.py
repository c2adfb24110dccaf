"""
Celery tasks for event analytics.

Tasks:
- snapshot_event_analytics: stores one EventAnalyticsHistory row per
  published/ongoing/completed event for the current day
"""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    name='events.snapshot_event_analytics',
    max_retries=3,
    default_retry_delay=60,
)
def snapshot_event_analytics(self):
    """
    Daily analytics snapshot. Runs once a day (configured in
    django-celery-beat by ``setup_analytics_tasks``) and is idempotent per
    date, so a retry or a second run on the same day creates nothing new.

    Returns:
        int: number of snapshots created
    """
    from apps.events.services.analytics_service import snapshot_all

    try:
        return snapshot_all()
    except Exception as exc:
        logger.error(f"[Analytics] Snapshot failed: {exc}", exc_info=True)
        raise self.retry(exc=exc)
