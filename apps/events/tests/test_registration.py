from datetime import timedelta
from decimal import Decimal
from smtplib import SMTPException
from unittest import mock

from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.events.exceptions import (
    Conflict, DependencyFailure, EligibilityDenied, InvalidState, NotFound, ValidationError,
)
from apps.events.models import EmailLog, Event, Registration
from apps.events.services import registration_service
from apps.events.tests.utils import make_event, make_organizer, make_participant
from apps.users.models import Participant


class RegisterForEventTests(TestCase):

    def setUp(self):
        self.organizer = make_organizer()
        self.participant = make_participant()
        self.event = make_event(self.organizer, registration_fee=Decimal('50.00'))

    def analytics(self):
        return Event.objects.get(pk=self.event.pk).analytics

    def test_successful_registration_issues_ticket_and_updates_counters(self):
        registration = registration_service.register_for_event(
            self.event.id, self.participant.user, {'Team name': 'Null Pointers'}
        )

        self.assertTrue(registration.ticket_id.startswith('REG-'))
        self.assertTrue(registration.qr_code_url.startswith('data:image/png;base64,'))
        self.assertEqual(registration.participant_type, Participant.ParticipantType.IIIT)
        self.assertEqual(registration.form_responses, {'Team name': 'Null Pointers'})

        analytics = self.analytics()
        self.assertEqual(analytics.total_registrations, 1)
        self.assertEqual(analytics.iiit_registrations, 1)
        self.assertEqual(analytics.external_registrations, 0)
        self.assertEqual(analytics.revenue, Decimal('50.00'))

        self.assertIn(self.event, self.participant.registered_events.all())
        self.assertTrue(Event.objects.get(pk=self.event.pk).form_locked)

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [self.participant.user.email])
        self.assertIn(registration.ticket_id, mail.outbox[0].alternatives[0][0])
        log = EmailLog.objects.get()
        self.assertEqual(log.status, EmailLog.DeliveryStatus.SENT)
        self.assertEqual(log.email_type, EmailLog.EmailType.TICKET)

    def test_unknown_event(self):
        with self.assertRaises(NotFound):
            registration_service.register_for_event('not-a-uuid', self.participant.user)

    def test_event_not_published(self):
        self.event.status = Event.EventStatus.DRAFT
        self.event.save()
        with self.assertRaises(InvalidState):
            registration_service.register_for_event(self.event.id, self.participant.user)

    def test_merchandise_event_rejected(self):
        merch = make_event(self.organizer, event_type=Event.EventType.MERCHANDISE)
        with self.assertRaises(InvalidState):
            registration_service.register_for_event(merch.id, self.participant.user)

    def test_deadline_passed(self):
        self.event.registration_deadline = timezone.now() - timedelta(minutes=1)
        self.event.save()
        with self.assertRaises(InvalidState):
            registration_service.register_for_event(self.event.id, self.participant.user)

    def test_user_without_participant_profile(self):
        with self.assertRaises(NotFound):
            registration_service.register_for_event(self.event.id, self.organizer.user)

    def test_eligibility(self):
        self.event.eligibility = Event.Eligibility.EXTERNAL
        self.event.save()
        with self.assertRaises(EligibilityDenied):
            registration_service.register_for_event(self.event.id, self.participant.user)

    def test_duplicate_registration(self):
        registration_service.register_for_event(self.event.id, self.participant.user)
        with self.assertRaises(InvalidState):
            registration_service.register_for_event(self.event.id, self.participant.user)
        self.assertEqual(Registration.objects.filter(event=self.event).count(), 1)
        self.assertEqual(self.analytics().total_registrations, 1)

    def test_ticket_id_collision_is_not_reported_as_duplicate(self):
        first = registration_service.register_for_event(self.event.id, self.participant.user)
        other = make_participant()

        with mock.patch('apps.events.tickets.generate_ticket_id', return_value=first.ticket_id):
            with self.assertRaises(Conflict):
                registration_service.register_for_event(self.event.id, other.user)

        self.assertFalse(Registration.objects.filter(participant=other).exists())
        self.assertEqual(self.analytics().total_registrations, 1)

    def test_concurrent_duplicate_caught_by_constraint(self):
        registration_service.register_for_event(self.event.id, self.participant.user)
        with mock.patch.object(registration_service, 'check_registration_open', return_value=self.participant):
            with self.assertRaisesMessage(InvalidState, 'already registered'):
                registration_service.register_for_event(self.event.id, self.participant.user)
        self.assertEqual(Registration.objects.filter(event=self.event).count(), 1)

    def test_form_responses_must_be_an_object(self):
        with self.assertRaises(ValidationError):
            registration_service.register_for_event(self.event.id, self.participant.user, ['a'])

    def test_limit_of_one_admits_a_single_participant(self):
        self.event.registration_limit = 1
        self.event.save()
        other = make_participant(Participant.ParticipantType.EXTERNAL)

        registration_service.register_for_event(self.event.id, self.participant.user)
        with self.assertRaises(InvalidState):
            registration_service.register_for_event(self.event.id, other.user)

        analytics = self.analytics()
        self.assertEqual(analytics.total_registrations, 1)
        self.assertEqual(analytics.external_registrations, 0)
        self.assertFalse(Registration.objects.filter(participant=other).exists())

    def test_capacity_lost_after_preconditions_is_rolled_back(self):
        self.event.registration_limit = 1
        self.event.save()
        registration_service.register_for_event(self.event.id, self.participant.user)
        late = make_participant()

        # a concurrent request took the last seat between the check and the reservation
        with mock.patch.object(registration_service, 'check_registration_open', return_value=late):
            with self.assertRaises(InvalidState):
                registration_service.register_for_event(self.event.id, late.user)

        self.assertFalse(Registration.objects.filter(participant=late).exists())
        self.assertFalse(late.registered_events.exists())
        self.assertEqual(self.analytics().total_registrations, 1)

    def test_notifier_failure_leaves_no_trace(self):
        with mock.patch('apps.events.email_utils.EmailMultiAlternatives.send',
                        side_effect=SMTPException('relay down')):
            with self.assertRaises(DependencyFailure):
                registration_service.register_for_event(self.event.id, self.participant.user)

        self.assertEqual(Registration.objects.count(), 0)
        self.assertFalse(self.participant.registered_events.exists())
        analytics = self.analytics()
        self.assertEqual(analytics.total_registrations, 0)
        self.assertEqual(analytics.iiit_registrations, 0)
        self.assertEqual(analytics.revenue, Decimal('0.00'))
        self.assertEqual(EmailLog.objects.get().status, EmailLog.DeliveryStatus.FAILED)
        # the form latch is one-way
        self.assertTrue(Event.objects.get(pk=self.event.pk).form_locked)

    def test_qr_failure_happens_before_any_write(self):
        with mock.patch('apps.events.tickets.generate_qr_code', side_effect=RuntimeError('encoder crashed')):
            with self.assertRaises(DependencyFailure):
                registration_service.register_for_event(self.event.id, self.participant.user)

        self.assertEqual(Registration.objects.count(), 0)
        self.assertFalse(Event.objects.get(pk=self.event.pk).form_locked)
        self.assertEqual(self.analytics().total_registrations, 0)
        self.assertEqual(len(mail.outbox), 0)


class RegistrationApiTests(APITestCase):

    def setUp(self):
        self.organizer = make_organizer()
        self.participant = make_participant()
        self.event = make_event(self.organizer)

    def test_participant_registers(self):
        self.client.force_authenticate(self.participant.user)
        response = self.client.post(
            f'/api/registrations/event/{self.event.id}/',
            {'form_responses': {'T-shirt size': 'M'}},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['registration']['ticket_id'].startswith('REG-'))

    def test_errors_use_message_and_code(self):
        self.event.status = Event.EventStatus.DRAFT
        self.event.save()
        self.client.force_authenticate(self.participant.user)
        response = self.client.post(f'/api/registrations/event/{self.event.id}/', {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_state')
        self.assertEqual(response.data['message'], 'Event is not open for registration.')

    def test_organizer_cannot_register(self):
        self.client.force_authenticate(self.organizer.user)
        response = self.client.post(f'/api/registrations/event/{self.event.id}/', {})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_owner_lists_registrations_with_filters(self):
        registration_service.register_for_event(self.event.id, self.participant.user)
        external = make_participant(Participant.ParticipantType.EXTERNAL)
        registration_service.register_for_event(self.event.id, external.user)

        self.client.force_authenticate(self.organizer.user)
        response = self.client.get(f'/api/registrations/event/{self.event.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        response = self.client.get(f'/api/registrations/event/{self.event.id}/', {'participant_type': 'EXTERNAL'})
        self.assertEqual([row['participant']['email'] for row in response.data], [external.user.email])

    def test_other_organizer_cannot_list(self):
        self.client.force_authenticate(make_organizer().user)
        response = self.client.get(f'/api/registrations/event/{self.event.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_my_tickets(self):
        registration_service.register_for_event(self.event.id, self.participant.user)
        self.client.force_authenticate(self.participant.user)
        response = self.client.get('/api/registrations/my/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['registrations']), 1)
        self.assertEqual(response.data['merchandise_orders'], [])
