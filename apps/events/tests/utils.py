"""
Builders shared by the events and shop test suites.
"""
from datetime import timedelta
from decimal import Decimal
import itertools

from django.utils import timezone

from apps.events.models import Event, MerchandiseVariant
from apps.users.models import FestUser, Participant, Organizer

_counter = itertools.count(1)

PASSWORD = 'Sup3r-secret-pw'


def make_participant(participant_type=Participant.ParticipantType.IIIT, email=None, **extra):
    n = next(_counter)
    user = FestUser.objects.create_user(
        email=email or f'participant{n}@students.iiit.ac.in',
        password=PASSWORD,
        role=FestUser.RoleType.PARTICIPANT,
    )
    return Participant.objects.create(
        user=user,
        first_name=extra.pop('first_name', 'Asha'),
        last_name=extra.pop('last_name', f'Rao{n}'),
        participant_type=participant_type,
        **extra
    )


def make_organizer(name=None):
    n = next(_counter)
    user = FestUser.objects.create_user(
        email=f'club{n}@clubs.iiit.ac.in',
        password=PASSWORD,
        role=FestUser.RoleType.ORGANIZER,
    )
    return Organizer.objects.create(user=user, name=name or f'Club {n}', contact_email=user.email)


def make_event(organizer, **fields):
    defaults = {
        'name': 'Hackathon',
        'description': '24 hour hackathon',
        'event_type': Event.EventType.NORMAL,
        'status': Event.EventStatus.PUBLISHED,
        'registration_deadline': timezone.now() + timedelta(days=7),
        'start_date': timezone.now() + timedelta(days=10),
        'end_date': timezone.now() + timedelta(days=11),
    }
    defaults.update(fields)
    return Event.objects.create(organizer=organizer, **defaults)


def make_merch_event(organizer, **fields):
    fields.setdefault('name', 'Fest T-Shirts')
    fields.setdefault('event_type', Event.EventType.MERCHANDISE)
    return make_event(organizer, **fields)


def make_variant(event, price='100.00', stock=10, **fields):
    return MerchandiseVariant.objects.create(
        event=event,
        product=fields.pop('product', 'T-Shirt'),
        size=fields.pop('size', 'M'),
        color=fields.pop('color', 'Black'),
        price=Decimal(price),
        stock=stock,
        **fields
    )
