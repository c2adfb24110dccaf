"""
Registration engine for normal events.

Preconditions are checked in a fixed order so each failure is distinct. The
writes that follow (registration row, participant's registered events,
analytics seat, ticket email) are run as compensated steps: if any of them
fails the earlier ones are undone and the original error propagates.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.events import email_utils
from apps.events.exceptions import Conflict, EligibilityDenied, InvalidState, ValidationError
from apps.events.models import Event, Registration
from apps.events.services import analytics_service
from apps.events.services.compensation import Step, run_with_compensation
from apps.events.services.lookups import get_event_or_404, get_participant_or_404
from apps.events.tickets import REGISTRATION_PREFIX, issue_ticket

logger = logging.getLogger(__name__)


def check_registration_open(event, participant_user):
    """
    Preconditions 2-8. Returns the participant profile.
    """
    if event.status != Event.EventStatus.PUBLISHED:
        raise InvalidState('Event is not open for registration.')
    if event.event_type != Event.EventType.NORMAL:
        raise InvalidState('This is a merchandise event, place an order instead.')
    if event.registration_deadline and timezone.now() > event.registration_deadline:
        raise InvalidState('Registration deadline has passed.')

    participant = get_participant_or_404(participant_user)

    if not event.allows_participant_type(participant.participant_type):
        raise EligibilityDenied(f'This event is only open to {event.eligibility} participants.')

    analytics = analytics_service.get_analytics(event)
    if event.registration_limit and analytics.total_registrations >= event.registration_limit:
        raise InvalidState('Registration limit reached for this event.')

    if Registration.objects.filter(event=event, participant=participant).exists():
        raise InvalidState('You are already registered for this event.')

    return participant


def register_for_event(event_id, participant_user, form_responses=None):
    """
    Register ``participant_user`` for the event and email them their ticket.

    Returns:
        Registration: the persisted registration with ticket and QR code
    """
    if form_responses is None:
        form_responses = {}
    if not isinstance(form_responses, dict):
        raise ValidationError('form_responses must be an object.')

    event = get_event_or_404(event_id, Event.objects.select_related('organizer'))
    participant = check_registration_open(event, participant_user)

    ticket_id, qr_code_url = issue_ticket(REGISTRATION_PREFIX, event.id, participant.id)

    event.lock_form()

    registration = Registration(
        event=event,
        participant=participant,
        participant_type=participant.participant_type,
        ticket_id=ticket_id,
        qr_code_url=qr_code_url,
        form_responses=form_responses,
    )
    seat = {}

    def create_row():
        try:
            with transaction.atomic():
                registration.save(force_insert=True)
        except IntegrityError:
            if Registration.objects.filter(event=event, participant=participant).exists():
                raise InvalidState('You are already registered for this event.')
            logger.error("Ticket id %s collided while registering %s for event %s",
                         ticket_id, participant.pk, event.pk)
            raise Conflict('Ticket could not be issued, please try again.')

    def delete_row():
        Registration.objects.filter(pk=registration.pk).delete()

    def reserve_seat():
        seat.update(analytics_service.reserve_registration(
            event.id, participant.participant_type, event.registration_fee
        ))

    def release_seat():
        analytics_service.release(event.id, seat)

    run_with_compensation([
        Step('create registration', create_row, delete_row),
        Step('add to registered events',
             lambda: participant.registered_events.add(event),
             lambda: participant.registered_events.remove(event)),
        Step('reserve analytics slot', reserve_seat, release_seat),
        Step('send ticket email', lambda: email_utils.send_ticket_email(registration)),
    ], context=f'registration of {participant.pk} for event {event.pk}')

    logger.info("Registered participant %s for event %s with ticket %s",
                participant.pk, event.pk, ticket_id)
    return registration


def list_participant_tickets(participant_user):
    """
    The participant's registrations and merchandise orders, newest first.
    """
    from apps.shop.models import MerchandiseOrder

    participant = get_participant_or_404(participant_user)
    registrations = (
        Registration.objects.filter(participant=participant)
        .select_related('event', 'event__organizer')
    )
    orders = (
        MerchandiseOrder.objects.filter(participant=participant)
        .select_related('event', 'event__organizer')
        .prefetch_related('items__variant')
    )
    return registrations, orders
