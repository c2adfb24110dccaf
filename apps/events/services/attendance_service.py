"""
Attendance engine: QR scans, manual overrides and the organizer's attendance
views (logs, summary, CSV export).

A ticket is either unscanned or scanned. The flip is a conditional UPDATE on
``attendance_marked=False``, so of two concurrent scans exactly one wins and
attendance_count is incremented once.
"""
import csv
import io
import json
import logging
import re

from django.utils import timezone

from apps.events.exceptions import AlreadyMarked, NotApproved, ValidationError, WrongOrganizer
from apps.events.models import AttendanceLog, Event, Registration
from apps.events.services import analytics_service
from apps.events.services.lookups import ensure_owner
from apps.events.tickets import TicketHolder, find_by_ticket_id
from apps.events.websocket_utils import (
    convert_to_local_time, serialize_ticket_for_websocket, websocket_notifier,
)

logger = logging.getLogger(__name__)

CSV_HEADER = ['Ticket ID', 'Name', 'Email', 'Participant Type', 'Attended', 'Timestamp']


def parse_ticket_payload(raw_payload):
    """
    Scanner payloads are either the JSON written into the QR code or a bare
    ticket id typed in by hand.
    """
    if raw_payload is None:
        raise ValidationError('Ticket data is required.')
    ticket_id = raw_payload
    if isinstance(raw_payload, str):
        try:
            parsed = json.loads(raw_payload)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            ticket_id = parsed.get('ticketId')
    elif isinstance(raw_payload, dict):
        ticket_id = raw_payload.get('ticketId')

    ticket_id = str(ticket_id).strip() if ticket_id is not None else ''
    if not ticket_id:
        raise ValidationError('Ticket data does not contain a ticket ID.')
    return ticket_id


def _model_for(holder):
    if holder.is_registration:
        return Registration
    from apps.shop.models import MerchandiseOrder
    return MerchandiseOrder


def _check_owner(holder, organizer):
    if not holder.instance.event.is_owned_by(organizer):
        raise WrongOrganizer()


def _claim_mark(holder, now):
    """
    Flip attendance_marked False -> True. Returns True only for the caller
    that performed the flip.
    """
    updated = _model_for(holder).objects.filter(
        pk=holder.instance.pk, attendance_marked=False
    ).update(attendance_marked=True, attendance_timestamp=now)
    if updated:
        holder.instance.attendance_marked = True
        holder.instance.attendance_timestamp = now
    return bool(updated)


def _broadcast(holder, manual_override):
    websocket_notifier.notify_checkin_update(
        holder.instance.event_id,
        serialize_ticket_for_websocket(holder, manual_override=manual_override),
        action='manual_checkin' if manual_override else 'checkin',
    )


def scan_ticket(raw_payload, organizer):
    """
    Mark attendance from a QR scan.

    Returns:
        TicketHolder: the registration or merchandise order that was marked
    """
    ticket_id = parse_ticket_payload(raw_payload)
    holder = find_by_ticket_id(ticket_id)
    instance = holder.instance

    if holder.kind == TicketHolder.MERCHANDISE and instance.approval_status != instance.ApprovalStatus.APPROVED:
        raise NotApproved('This merchandise order is not approved, attendance cannot be marked.')
    if instance.attendance_marked:
        raise AlreadyMarked()
    _check_owner(holder, organizer)

    now = timezone.now()
    if not _claim_mark(holder, now):
        raise AlreadyMarked()

    AttendanceLog.objects.create(
        event_id=instance.event_id,
        participant_id=instance.participant_id,
        ticket_id=instance.ticket_id,
        scanned_at=now,
        scanned_by=organizer,
        manual_override=False,
    )
    analytics_service.apply_delta(instance.event_id, attendance_count=1)
    _broadcast(holder, manual_override=False)

    logger.info("Attendance marked for ticket %s at event %s by organizer %s",
                ticket_id, instance.event_id, organizer.pk)
    return holder


def manual_override(ticket_id, reason, organizer):
    """
    Organizer override: always appends a log entry, counts the attendance
    only if the ticket had not been marked before.

    Returns:
        (TicketHolder, bool): the ticket and whether this call marked it
    """
    ticket_id = (ticket_id or '').strip()
    if not ticket_id:
        raise ValidationError('Ticket ID is required.')
    reason = (reason or '').strip()
    if not reason:
        raise ValidationError('A reason is required for a manual override.')

    holder = find_by_ticket_id(ticket_id)
    instance = holder.instance
    _check_owner(holder, organizer)

    now = timezone.now()
    newly_marked = _claim_mark(holder, now)

    AttendanceLog.objects.create(
        event_id=instance.event_id,
        participant_id=instance.participant_id,
        ticket_id=instance.ticket_id,
        scanned_at=now,
        scanned_by=organizer,
        manual_override=True,
        override_reason=reason,
    )
    if newly_marked:
        analytics_service.apply_delta(instance.event_id, attendance_count=1)
        _broadcast(holder, manual_override=True)

    logger.info("AUDIT: manual attendance override for ticket %s at event %s by organizer %s (newly marked: %s). Reason: %s",
                ticket_id, instance.event_id, organizer.pk, newly_marked, reason)
    return holder, newly_marked


def list_logs(event, organizer):
    ensure_owner(event, organizer)
    return (
        AttendanceLog.objects.filter(event=event)
        .select_related('participant__user', 'scanned_by')
        .order_by('-scanned_at')
    )


def _ticket_queryset(event):
    if event.event_type == Event.EventType.MERCHANDISE:
        from apps.shop.models import MerchandiseOrder
        return MerchandiseOrder.objects.filter(
            event=event, approval_status=MerchandiseOrder.ApprovalStatus.APPROVED
        ).select_related('participant__user').order_by('created_at')
    return Registration.objects.filter(event=event).select_related('participant__user').order_by('created_at')


def attendance_rows(event, organizer):
    """
    One row per ticket: registrations, or approved orders for merchandise events.
    """
    ensure_owner(event, organizer)
    rows = []
    for ticket in _ticket_queryset(event):
        participant = ticket.participant
        rows.append({
            'id': str(ticket.id),
            'ticket_id': ticket.ticket_id or '',
            'name': participant.get_full_name(),
            'email': participant.user.email,
            'participant_type': ticket.participant_type,
            'attendance_marked': ticket.attendance_marked,
            'attendance_timestamp': ticket.attendance_timestamp,
        })
    return rows


def attendance_summary(event, organizer):
    rows = attendance_rows(event, organizer)
    scanned = sum(1 for row in rows if row['attendance_marked'])
    return {
        'total': len(rows),
        'scanned': scanned,
        'not_scanned': len(rows) - scanned,
        'participants': rows,
    }


def export_csv(event, organizer):
    """
    Returns (filename, csv text) for the attendance sheet.
    """
    rows = attendance_rows(event, organizer)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(CSV_HEADER)
    for row in rows:
        marked_at = convert_to_local_time(row['attendance_timestamp'])
        writer.writerow([
            row['ticket_id'],
            row['name'],
            row['email'],
            row['participant_type'],
            'Yes' if row['attendance_marked'] else 'No',
            marked_at.strftime('%Y-%m-%d %H:%M:%S') if marked_at else '',
        ])
    safe_name = re.sub(r'[^A-Za-z0-9]', '_', event.name)
    return f'attendance_{safe_name}.csv', buffer.getvalue()
