from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.events.exceptions import Forbidden, InvalidState, ValidationError
from apps.events.models import AttendanceLog, Event, EventAnalytics, MerchandiseVariant, Registration
from apps.events.services import attendance_service, event_service, registration_service
from apps.events.tests.utils import (
    make_event, make_merch_event, make_organizer, make_participant, make_variant,
)
from apps.shop.models import MerchandiseOrder


class EventServiceTests(TestCase):

    def setUp(self):
        self.organizer = make_organizer()

    def test_create_is_always_draft_with_analytics(self):
        event = event_service.create_event(self.organizer, {'name': 'Quiz', 'status': 'published'})
        self.assertEqual(event.status, Event.EventStatus.DRAFT)
        self.assertTrue(EventAnalytics.objects.filter(event=event).exists())

    def test_create_merchandise_with_variants(self):
        event = event_service.create_event(
            self.organizer,
            {'name': 'Hoodies', 'event_type': Event.EventType.MERCHANDISE},
            variants=[{'product': 'Hoodie', 'size': 'L', 'price': '799', 'stock': 20}],
        )
        variant = event.variants.get()
        self.assertEqual((variant.price, variant.stock, variant.sold), (Decimal('799'), 20, 0))

    def test_variants_only_on_merchandise_events(self):
        with self.assertRaises(ValidationError):
            event_service.create_event(self.organizer, {'name': 'Quiz'}, variants=[{'product': 'Cap'}])

    def test_form_schema_is_validated(self):
        with self.assertRaises(ValidationError):
            event_service.create_event(self.organizer, {'name': 'Quiz', 'form_schema': [{'field_type': 'video'}]})

    def test_draft_is_freely_editable(self):
        event = make_event(self.organizer, status=Event.EventStatus.DRAFT)
        event_service.update_event(event, self.organizer, {'name': 'Renamed', 'registration_fee': Decimal('10')})
        event.refresh_from_db()
        self.assertEqual(event.name, 'Renamed')

    def test_published_edit_rules(self):
        event = make_event(self.organizer, registration_limit=10)

        event_service.update_event(event, self.organizer, {'description': 'Now with prizes'})
        with self.assertRaises(InvalidState):
            event_service.update_event(event, self.organizer, {'name': 'Renamed'})
        with self.assertRaises(InvalidState):
            event_service.update_event(
                event, self.organizer,
                {'registration_deadline': event.registration_deadline - timedelta(days=1)},
            )
        event_service.update_event(
            event, self.organizer,
            {'registration_deadline': event.registration_deadline + timedelta(days=1)},
        )
        with self.assertRaises(InvalidState):
            event_service.update_event(event, self.organizer, {'registration_limit': 5})
        event_service.update_event(event, self.organizer, {'registration_limit': 20})
        event.refresh_from_db()
        self.assertEqual(event.registration_limit, 20)

    def test_unchanged_fields_are_not_edits(self):
        event = make_event(self.organizer)
        event_service.update_event(event, self.organizer, {'name': event.name, 'description': 'Updated'})
        event.refresh_from_db()
        self.assertEqual(event.description, 'Updated')

    def test_limit_cannot_drop_below_registrations(self):
        event = make_event(self.organizer)
        registration_service.register_for_event(event.id, make_participant().user)
        registration_service.register_for_event(event.id, make_participant().user)
        with self.assertRaises(InvalidState):
            event_service.update_event(event, self.organizer, {'registration_limit': 1})

    def test_form_locked_after_first_registration(self):
        event = make_event(self.organizer, form_schema=[{'field_type': 'text', 'label': 'Team', 'required': True, 'options': []}])
        registration_service.register_for_event(event.id, make_participant().user)
        event.refresh_from_db()
        with self.assertRaises(InvalidState):
            event_service.update_event(event, self.organizer, {'form_schema': []})

    def test_other_statuses_are_read_only(self):
        event = make_event(self.organizer, status=Event.EventStatus.ONGOING)
        with self.assertRaises(InvalidState):
            event_service.update_event(event, self.organizer, {'description': 'late change'})

    def test_variant_with_sales_cannot_be_removed(self):
        event = make_merch_event(self.organizer)
        sold = make_variant(event, sold=3)
        with self.assertRaises(InvalidState):
            event_service.update_event(event, self.organizer, {}, variants=[])
        self.assertTrue(MerchandiseVariant.objects.filter(pk=sold.pk).exists())

    def test_published_variant_edit_keeps_stock_and_sold(self):
        event = make_merch_event(self.organizer)
        variant = make_variant(event, price='300.00', stock=7, sold=3)

        event_service.update_event(event, self.organizer, {}, variants=[
            {'id': str(variant.id), 'product': 'T-Shirt', 'size': 'L', 'price': '350', 'stock': 7},
        ])

        variant = MerchandiseVariant.objects.get(pk=variant.pk)
        self.assertEqual((variant.size, variant.price), ('L', Decimal('350')))
        self.assertEqual((variant.stock, variant.sold), (7, 3))

    def test_published_variant_stock_cannot_change(self):
        event = make_merch_event(self.organizer)
        variant = make_variant(event, stock=10, sold=3)

        with self.assertRaises(InvalidState):
            event_service.update_event(event, self.organizer, {}, variants=[
                {'id': str(variant.id), 'product': 'T-Shirt', 'stock': 50},
            ])

        variant = MerchandiseVariant.objects.get(pk=variant.pk)
        self.assertEqual(variant.stock + variant.sold, 13)

    def test_published_variant_edit_keeps_concurrent_sale(self):
        event = make_merch_event(self.organizer)
        variant = make_variant(event, stock=7, sold=3)
        real_fields = event_service._variant_fields

        def sell_while_editing(payload):
            # an approval commits between the variant read and the write
            variant.decrement_stock(2)
            return real_fields(payload)

        with mock.patch('apps.events.services.event_service._variant_fields', side_effect=sell_while_editing):
            event_service.update_event(event, self.organizer, {}, variants=[
                {'id': str(variant.id), 'product': 'Fest T-Shirt', 'price': '100'},
            ])

        variant = MerchandiseVariant.objects.get(pk=variant.pk)
        self.assertEqual(variant.product, 'Fest T-Shirt')
        self.assertEqual((variant.stock, variant.sold), (5, 5))

    def test_publish_and_status_transitions(self):
        event = make_event(self.organizer, status=Event.EventStatus.DRAFT)
        with self.assertRaises(InvalidState):
            event_service.change_status(event, self.organizer, Event.EventStatus.ONGOING)

        event_service.publish_event(event, self.organizer)
        with self.assertRaises(InvalidState):
            event_service.publish_event(event, self.organizer)

        event_service.change_status(event, self.organizer, Event.EventStatus.ONGOING)
        event_service.change_status(event, self.organizer, Event.EventStatus.COMPLETED)
        with self.assertRaises(InvalidState):
            event_service.change_status(event, self.organizer, Event.EventStatus.ONGOING)
        event_service.change_status(event, self.organizer, Event.EventStatus.CLOSED)
        self.assertEqual(event.status, Event.EventStatus.CLOSED)

    def test_status_target_must_be_lifecycle_status(self):
        event = make_event(self.organizer)
        with self.assertRaises(ValidationError):
            event_service.change_status(event, self.organizer, Event.EventStatus.DRAFT)

    def test_only_owner_can_change(self):
        event = make_event(self.organizer)
        with self.assertRaises(Forbidden):
            event_service.publish_event(event, make_organizer())

    def test_delete_sweeps_everything(self):
        event = make_event(self.organizer)
        participant = make_participant()
        registration = registration_service.register_for_event(event.id, participant.user)
        attendance_service.scan_ticket(registration.ticket_id, self.organizer)

        event_service.delete_event(event, self.organizer)

        self.assertFalse(Event.objects.filter(pk=event.pk).exists())
        self.assertFalse(Registration.objects.exists())
        self.assertFalse(AttendanceLog.objects.exists())
        self.assertFalse(EventAnalytics.objects.exists())
        self.assertFalse(participant.registered_events.exists())

    def test_delete_sweeps_orders(self):
        event = make_merch_event(self.organizer)
        participant = make_participant()
        MerchandiseOrder.objects.create(event=event, participant=participant, participant_type='IIIT')
        event_service.delete_event(event, self.organizer)
        self.assertFalse(MerchandiseOrder.objects.exists())


class EventApiTests(APITestCase):

    def setUp(self):
        self.organizer = make_organizer(name='Robotics Club')
        self.published = make_event(self.organizer, name='Robo Wars', tags=['robotics', 'tech'])
        self.draft = make_event(self.organizer, name='Secret Draft', status=Event.EventStatus.DRAFT)
        self.external_only = make_event(
            make_organizer(), name='Alumni Meet', eligibility=Event.Eligibility.EXTERNAL, tags=['social'],
        )

    def names(self, response):
        return sorted(event['name'] for event in response.data)

    def test_public_list_hides_drafts(self):
        response = self.client.get('/api/events/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.names(response), ['Alumni Meet', 'Robo Wars'])

    def test_filters(self):
        self.assertEqual(self.names(self.client.get('/api/events/', {'tags': 'tech'})), ['Robo Wars'])
        self.assertEqual(self.names(self.client.get('/api/events/', {'search': 'robo'})), ['Robo Wars'])
        self.assertEqual(self.names(self.client.get('/api/events/', {'eligibility': 'IIIT'})), ['Robo Wars'])
        self.assertEqual(
            self.names(self.client.get('/api/events/', {'organizer': str(self.organizer.id)})), ['Robo Wars']
        )

    def test_retrieve_counts_page_views(self):
        self.client.get(f'/api/events/{self.published.id}/')
        self.client.get(f'/api/events/{self.published.id}/')
        self.assertEqual(EventAnalytics.objects.get(event=self.published).page_views, 2)

    def test_analytics_only_for_owner(self):
        response = self.client.get(f'/api/events/{self.published.id}/')
        self.assertIsNone(response.data['analytics'])

        self.client.force_authenticate(self.organizer.user)
        response = self.client.get(f'/api/events/{self.published.id}/')
        self.assertEqual(response.data['analytics']['page_views'], 2)

    def test_organizer_creates_publishes_and_lists_own_events(self):
        self.client.force_authenticate(self.organizer.user)
        response = self.client.post('/api/events/', {
            'name': 'Coding Sprint',
            'event_type': 'normal',
            'registration_deadline': (timezone.now() + timedelta(days=3)).isoformat(),
            'tags': ['coding'],
            'form_schema': [{'field_type': 'text', 'label': 'GitHub handle', 'required': True}],
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')

        event_id = response.data['id']
        response = self.client.put(f'/api/events/{event_id}/publish/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['event']['status'], 'published')

        response = self.client.put(f'/api/events/{event_id}/status/', {'status': 'ongoing'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get('/api/events/mine/')
        self.assertIn('Secret Draft', self.names(response))
        self.assertIn('Coding Sprint', self.names(response))

    def test_participant_cannot_create(self):
        self.client.force_authenticate(make_participant().user)
        response = self.client.post('/api/events/', {'name': 'Nope'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_published_edit_violation_is_400(self):
        self.client.force_authenticate(self.organizer.user)
        response = self.client.patch(f'/api/events/{self.published.id}/', {'name': 'New name'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_state')

    def test_delete(self):
        self.client.force_authenticate(self.organizer.user)
        response = self.client.delete(f'/api/events/{self.published.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Event.objects.filter(pk=self.published.pk).exists())

    def test_trending(self):
        registration_service.register_for_event(self.published.id, make_participant().user)
        response = self.client.get('/api/events/trending/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['name'], 'Robo Wars')
