"""
Every change to an event's analytics counters goes through this module.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.events.exceptions import InvalidState
from apps.events.models import Event, EventAnalytics, EventAnalyticsHistory

logger = logging.getLogger(__name__)

COUNTER_FIELDS = frozenset({
    'total_registrations', 'iiit_registrations', 'external_registrations',
    'merchandise_sales', 'revenue', 'attendance_count', 'cancellation_count',
    'rejection_count', 'page_views',
})

SNAPSHOT_STATUSES = (
    Event.EventStatus.PUBLISHED,
    Event.EventStatus.ONGOING,
    Event.EventStatus.COMPLETED,
)


def apply_delta(event_id, **deltas):
    """
    Add ``deltas`` (field -> signed amount) to the event's counters in one
    UPDATE. Zero deltas are skipped.
    """
    unknown = set(deltas) - COUNTER_FIELDS
    if unknown:
        raise ValueError(f"Unknown analytics counters: {', '.join(sorted(unknown))}")

    changes = {field: F(field) + amount for field, amount in deltas.items() if amount}
    if not changes:
        return 0
    updated = EventAnalytics.objects.filter(event_id=event_id).update(**changes)
    if not updated:
        # events created before analytics rows existed
        EventAnalytics.objects.get_or_create(event_id=event_id)
        updated = EventAnalytics.objects.filter(event_id=event_id).update(**changes)
    return updated


def negate(deltas):
    return {field: -amount for field, amount in deltas.items()}


def registration_delta(participant_type, revenue=Decimal('0'), merchandise_units=0):
    from apps.users.models import Participant

    type_field = (
        'iiit_registrations'
        if participant_type == Participant.ParticipantType.IIIT
        else 'external_registrations'
    )
    deltas = {'total_registrations': 1, type_field: 1, 'revenue': Decimal(revenue)}
    if merchandise_units:
        deltas['merchandise_sales'] = merchandise_units
    return deltas


def reserve_registration(event_id, participant_type, fee):
    """
    Take one seat for a registration. The capacity check and the increment
    happen under a row lock on the analytics row, so concurrent requests
    cannot push total_registrations past the event's limit.

    Returns:
        dict: the delta that was applied (negate it to release the seat)

    Raises:
        InvalidState: the event filled up
    """
    deltas = registration_delta(participant_type, fee)
    EventAnalytics.objects.get_or_create(event_id=event_id)
    with transaction.atomic():
        analytics = EventAnalytics.objects.select_for_update().get(event_id=event_id)
        limit = Event.objects.values_list('registration_limit', flat=True).get(pk=event_id)
        if limit and analytics.total_registrations >= limit:
            raise InvalidState('Registration limit reached for this event.')
        apply_delta(event_id, **deltas)
    return deltas


def release(event_id, deltas):
    apply_delta(event_id, **negate(deltas))


def record_page_view(event_id):
    apply_delta(event_id, page_views=1)


def get_analytics(event):
    analytics, _ = EventAnalytics.objects.get_or_create(event=event)
    return analytics


def snapshot_all(date=None):
    """
    Store today's counters for every published/ongoing/completed event.
    Idempotent per (event, date).

    Returns:
        int: number of snapshots created
    """
    date = date or timezone.localdate()
    created_count = 0
    events = Event.objects.filter(status__in=SNAPSHOT_STATUSES).select_related('analytics')
    for event in events:
        analytics = get_analytics(event)
        _, created = EventAnalyticsHistory.objects.get_or_create(
            event=event,
            date=date,
            defaults={
                'registrations': analytics.total_registrations,
                'revenue': analytics.revenue,
                'attendance': analytics.attendance_count,
                'cancellations': analytics.cancellation_count,
            },
        )
        created_count += int(created)
    logger.info("[Analytics] Stored %d snapshot(s) for %s", created_count, date)
    return created_count

