"""
Loaders that turn ids and users into model instances or taxonomy errors.
"""
from django.core.exceptions import ValidationError as DjangoValidationError

from apps.events.exceptions import Forbidden, NotFound
from apps.events.models import Event


def get_event_or_404(event_id, queryset=None):
    queryset = queryset if queryset is not None else Event.objects.all()
    try:
        return queryset.get(pk=event_id)
    except (Event.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound('Event not found.')


def get_participant_or_404(user):
    from apps.users.models import Participant

    participant = Participant.objects.select_related('user').filter(user=user).first() if user else None
    if participant is None:
        raise NotFound('Participant profile not found.')
    return participant


def get_organizer_or_403(user):
    from apps.users.models import Organizer

    organizer = Organizer.objects.filter(user=user).first() if user else None
    if organizer is None:
        raise Forbidden('Organizer profile not found.')
    return organizer


def ensure_owner(event, organizer, message='You do not organize this event.'):
    if not event.is_owned_by(organizer):
        raise Forbidden(message)
