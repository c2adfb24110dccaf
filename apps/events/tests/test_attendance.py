import csv
import io
import json
from unittest import mock

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from apps.events.exceptions import (
    AlreadyMarked, NotApproved, TicketNotFound, ValidationError, WrongOrganizer,
)
from apps.events.models import AttendanceLog, Event
from apps.events.services import attendance_service, registration_service
from apps.events.tests.utils import (
    make_event, make_merch_event, make_organizer, make_participant, make_variant,
)
from apps.events.tickets import TicketHolder, find_by_ticket_id
from apps.shop.models import MerchandiseOrder


def attendance_count(event):
    return Event.objects.get(pk=event.pk).analytics.attendance_count


class ParseTicketPayloadTests(TestCase):

    def test_json_envelope(self):
        payload = json.dumps({'ticketId': 'REG-ABC', 'eventId': 'x'})
        self.assertEqual(attendance_service.parse_ticket_payload(payload), 'REG-ABC')

    def test_bare_id(self):
        self.assertEqual(attendance_service.parse_ticket_payload('  MERCH-XYZ '), 'MERCH-XYZ')

    def test_object_payload(self):
        self.assertEqual(attendance_service.parse_ticket_payload({'ticketId': 'REG-1'}), 'REG-1')

    def test_empty(self):
        for payload in (None, '', '{"eventId": "x"}'):
            with self.assertRaises(ValidationError):
                attendance_service.parse_ticket_payload(payload)


class ScanTicketTests(TestCase):

    def setUp(self):
        self.organizer = make_organizer()
        self.participant = make_participant()
        self.event = make_event(self.organizer)
        self.registration = registration_service.register_for_event(self.event.id, self.participant.user)

    def payload(self):
        return json.dumps({'ticketId': self.registration.ticket_id})

    def test_scan_marks_once(self):
        holder = attendance_service.scan_ticket(self.payload(), self.organizer)

        self.assertEqual(holder.kind, TicketHolder.REGISTRATION)
        self.registration.refresh_from_db()
        self.assertTrue(self.registration.attendance_marked)
        self.assertIsNotNone(self.registration.attendance_timestamp)
        self.assertEqual(attendance_count(self.event), 1)
        log = AttendanceLog.objects.get()
        self.assertFalse(log.manual_override)
        self.assertEqual(log.scanned_by, self.organizer)

        with self.assertRaises(AlreadyMarked):
            attendance_service.scan_ticket(self.payload(), self.organizer)
        self.assertEqual(attendance_count(self.event), 1)
        self.assertEqual(AttendanceLog.objects.count(), 1)

    def test_wrong_organizer(self):
        with self.assertRaises(WrongOrganizer):
            attendance_service.scan_ticket(self.payload(), make_organizer())
        self.registration.refresh_from_db()
        self.assertFalse(self.registration.attendance_marked)

    def test_unknown_ticket(self):
        with self.assertRaises(TicketNotFound):
            attendance_service.scan_ticket('REG-DOESNOTEXIST', self.organizer)

    def test_bare_id_without_prefix_falls_back(self):
        self.assertEqual(find_by_ticket_id(self.registration.ticket_id).instance, self.registration)
        with self.assertRaises(TicketNotFound):
            find_by_ticket_id('NOPREFIX-123')

    def test_broadcast_failure_does_not_fail_the_scan(self):
        with mock.patch('apps.events.websocket_utils.async_to_sync', side_effect=RuntimeError('redis down')):
            attendance_service.scan_ticket(self.payload(), self.organizer)
        self.assertEqual(attendance_count(self.event), 1)

    def test_manual_override_logs_every_call_but_counts_once(self):
        holder, newly_marked = attendance_service.manual_override(
            self.registration.ticket_id, 'QR code damaged', self.organizer
        )
        self.assertTrue(newly_marked)
        _, newly_marked = attendance_service.manual_override(
            self.registration.ticket_id, 'Re-entry after break', self.organizer
        )
        self.assertFalse(newly_marked)

        self.assertEqual(attendance_count(self.event), 1)
        logs = AttendanceLog.objects.filter(manual_override=True)
        self.assertEqual(logs.count(), 2)
        self.assertEqual(
            set(logs.values_list('override_reason', flat=True)),
            {'QR code damaged', 'Re-entry after break'},
        )

    def test_manual_override_after_scan(self):
        attendance_service.scan_ticket(self.payload(), self.organizer)
        _, newly_marked = attendance_service.manual_override(
            self.registration.ticket_id, 'Double check', self.organizer
        )
        self.assertFalse(newly_marked)
        self.assertEqual(attendance_count(self.event), 1)
        self.assertEqual(AttendanceLog.objects.count(), 2)

    def test_manual_override_requires_reason(self):
        with self.assertRaises(ValidationError):
            attendance_service.manual_override(self.registration.ticket_id, '  ', self.organizer)
        self.assertEqual(AttendanceLog.objects.count(), 0)

    def test_manual_override_checks_ownership(self):
        with self.assertRaises(WrongOrganizer):
            attendance_service.manual_override(self.registration.ticket_id, 'reason', make_organizer())


class MerchandiseScanTests(TestCase):

    def setUp(self):
        self.organizer = make_organizer()
        self.participant = make_participant()
        self.event = make_merch_event(self.organizer)
        self.variant = make_variant(self.event)

    def make_order(self, **fields):
        defaults = {
            'event': self.event,
            'participant': self.participant,
            'participant_type': self.participant.participant_type,
            'revenue_amount': '100.00',
            'ticket_id': 'MERCH-TEST0001-ABC',
        }
        defaults.update(fields)
        return MerchandiseOrder.objects.create(**defaults)

    def test_pending_order_cannot_be_scanned(self):
        order = self.make_order(approval_status=MerchandiseOrder.ApprovalStatus.PENDING)
        with self.assertRaises(NotApproved):
            attendance_service.scan_ticket(order.ticket_id, self.organizer)

    def test_approved_order_is_marked(self):
        order = self.make_order(approval_status=MerchandiseOrder.ApprovalStatus.APPROVED)
        holder = attendance_service.scan_ticket(json.dumps({'ticketId': order.ticket_id}), self.organizer)
        self.assertEqual(holder.kind, TicketHolder.MERCHANDISE)
        order.refresh_from_db()
        self.assertTrue(order.attendance_marked)
        self.assertEqual(attendance_count(self.event), 1)


class AttendanceApiTests(APITestCase):

    def setUp(self):
        self.organizer = make_organizer()
        self.event = make_event(self.organizer, name='Robo Wars')
        self.first = make_participant(first_name='Kiran', last_name='Das')
        self.second = make_participant(first_name='Meera', last_name='Iyer')
        self.scanned = registration_service.register_for_event(self.event.id, self.first.user)
        registration_service.register_for_event(self.event.id, self.second.user)
        self.client.force_authenticate(self.organizer.user)

    def test_scan_endpoint(self):
        response = self.client.post('/api/attendance/scan/', {'ticket_data': self.scanned.ticket_id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['ticket']['ticket_id'], self.scanned.ticket_id)

        response = self.client.post('/api/attendance/scan/', {'ticket_data': self.scanned.ticket_id})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'already_marked')

    def test_scan_unknown_ticket_is_404(self):
        response = self.client.post('/api/attendance/scan/', {'ticket_data': 'REG-NOPE'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'ticket_not_found')

    def test_participants_cannot_scan(self):
        self.client.force_authenticate(self.first.user)
        response = self.client.post('/api/attendance/scan/', {'ticket_data': self.scanned.ticket_id})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_manual_endpoint(self):
        response = self.client.post(
            '/api/attendance/manual/', {'ticket_id': self.scanned.ticket_id, 'reason': 'Phone died'}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['newly_marked'])

    def test_logs_summary_and_csv(self):
        attendance_service.scan_ticket(self.scanned.ticket_id, self.organizer)

        logs = self.client.get(f'/api/attendance/event/{self.event.id}/')
        self.assertEqual(logs.status_code, status.HTTP_200_OK)
        self.assertEqual(len(logs.data), 1)
        self.assertEqual(logs.data[0]['ticket_id'], self.scanned.ticket_id)

        summary = self.client.get(f'/api/attendance/event/{self.event.id}/all/')
        self.assertEqual(summary.status_code, status.HTTP_200_OK)
        self.assertEqual((summary.data['total'], summary.data['scanned'], summary.data['not_scanned']), (2, 1, 1))

        export = self.client.get(f'/api/attendance/event/{self.event.id}/export-csv/')
        self.assertEqual(export.status_code, status.HTTP_200_OK)
        self.assertEqual(export['Content-Type'], 'text/csv')
        self.assertIn('attendance_Robo_Wars.csv', export['Content-Disposition'])
        rows = list(csv.reader(io.StringIO(export.content.decode())))
        self.assertEqual(rows[0], attendance_service.CSV_HEADER)
        attended = {row[0]: row[4] for row in rows[1:]}
        self.assertEqual(attended[self.scanned.ticket_id], 'Yes')
        self.assertEqual(sorted(attended.values()), ['No', 'Yes'])

    def test_other_organizer_cannot_read_attendance(self):
        self.client.force_authenticate(make_organizer().user)
        response = self.client.get(f'/api/attendance/event/{self.event.id}/all/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
