import datetime
import logging
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from apps.events.exceptions import InvalidState
from apps.events.models import Event, EventAnalytics, EventAnalyticsHistory
from apps.events.services import analytics_service
from apps.events.services.compensation import Step, run_with_compensation
from apps.events.tasks import snapshot_event_analytics
from apps.events.tests.utils import make_event, make_organizer


class ApplyDeltaTests(TestCase):

    def setUp(self):
        self.event = make_event(make_organizer())

    def counters(self):
        return EventAnalytics.objects.get(event=self.event)

    def test_apply_and_release(self):
        deltas = analytics_service.registration_delta('EXTERNAL', Decimal('25.50'), merchandise_units=1)
        analytics_service.apply_delta(self.event.id, **deltas)

        analytics = self.counters()
        self.assertEqual(analytics.total_registrations, 1)
        self.assertEqual(analytics.external_registrations, 1)
        self.assertEqual(analytics.merchandise_sales, 1)
        self.assertEqual(analytics.revenue, Decimal('25.50'))

        analytics_service.release(self.event.id, deltas)
        analytics = self.counters()
        self.assertEqual((analytics.total_registrations, analytics.revenue), (0, Decimal('0.00')))

    def test_unknown_counter(self):
        with self.assertRaises(ValueError):
            analytics_service.apply_delta(self.event.id, likes=1)

    def test_recreates_missing_row(self):
        EventAnalytics.objects.filter(event=self.event).delete()
        analytics_service.record_page_view(self.event.id)
        self.assertEqual(self.counters().page_views, 1)

    def test_reserve_respects_limit(self):
        self.event.registration_limit = 1
        self.event.save()
        analytics_service.reserve_registration(self.event.id, 'IIIT', Decimal('0'))
        with self.assertRaises(InvalidState):
            analytics_service.reserve_registration(self.event.id, 'IIIT', Decimal('0'))
        self.assertEqual(self.counters().total_registrations, 1)

    def test_conversion_rate(self):
        analytics_service.apply_delta(self.event.id, page_views=8, total_registrations=2, iiit_registrations=2)
        self.assertEqual(self.counters().conversion_rate, 25.0)


class SnapshotTests(TestCase):

    def setUp(self):
        organizer = make_organizer()
        self.published = make_event(organizer)
        self.closed = make_event(organizer, status=Event.EventStatus.CLOSED)
        self.draft = make_event(organizer, status=Event.EventStatus.DRAFT)

    def test_snapshot_is_idempotent_per_day(self):
        day = datetime.date(2026, 2, 14)
        analytics_service.apply_delta(self.published.id, total_registrations=3, iiit_registrations=3, revenue=Decimal('150'))

        self.assertEqual(analytics_service.snapshot_all(day), 1)
        self.assertEqual(analytics_service.snapshot_all(day), 0)

        snapshot = EventAnalyticsHistory.objects.get()
        self.assertEqual(snapshot.event, self.published)
        self.assertEqual((snapshot.registrations, snapshot.revenue), (3, Decimal('150.00')))

    def test_celery_task(self):
        self.assertEqual(snapshot_event_analytics.apply().get(), 1)


class CompensationTests(TestCase):

    def test_undoes_completed_steps_in_reverse(self):
        calls = []

        def fail():
            raise RuntimeError('boom')

        with self.assertRaises(RuntimeError):
            run_with_compensation([
                Step('one', lambda: calls.append('do one'), lambda: calls.append('undo one')),
                Step('two', lambda: calls.append('do two'), lambda: calls.append('undo two')),
                Step('three', fail, lambda: calls.append('undo three')),
            ])
        self.assertEqual(calls, ['do one', 'do two', 'undo two', 'undo one'])

    def test_failing_undo_is_logged_and_rest_still_run(self):
        undo_one = mock.Mock()

        def broken_undo():
            raise RuntimeError('cannot undo')

        def fail():
            raise ValueError('original')

        with self.assertLogs('apps.events.services.compensation', level=logging.CRITICAL) as logs:
            with self.assertRaises(ValueError):
                run_with_compensation([
                    Step('one', lambda: None, undo_one),
                    Step('two', lambda: None, broken_undo),
                    Step('three', fail),
                ], context='test saga')
        undo_one.assert_called_once_with()
        self.assertIn('DATA INTEGRITY', logs.output[0])

    def test_returns_results(self):
        self.assertEqual(run_with_compensation([Step('a', lambda: 1), Step('b', lambda: 2)]), [1, 2])
