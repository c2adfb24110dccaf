"""
Ticket identifiers, QR codes and ticket lookup.

Two ticket namespaces exist: ``REG-`` tickets belong to registrations for
normal events and ``MERCH-`` tickets to approved merchandise orders. Both are
resolved through :func:`find_by_ticket_id`.
"""
import base64
import io
import json
import logging
import uuid
from collections import namedtuple

import qrcode
from django.utils import timezone

from apps.events.exceptions import DependencyFailure, TicketNotFound

logger = logging.getLogger(__name__)

REGISTRATION_PREFIX = 'REG-'
MERCHANDISE_PREFIX = 'MERCH-'

DATA_URL_PREFIX = 'data:image/png;base64,'


class TicketHolder(namedtuple('TicketHolder', ['kind', 'instance'])):
    REGISTRATION = 'registration'
    MERCHANDISE = 'merchandise'
    __slots__ = ()

    @property
    def is_registration(self):
        return self.kind == self.REGISTRATION


def generate_ticket_id(prefix):
    """
    e.g. REG-3F9A1C2B-LQ2Z8K1P: 8 random hex chars + base36 millisecond clock
    """
    millis = int(timezone.now().timestamp() * 1000)
    return f"{prefix}{uuid.uuid4().hex[:8].upper()}-{_base36(millis)}"


def _base36(number):
    digits = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'
    out = ''
    while number:
        number, rem = divmod(number, 36)
        out = digits[rem] + out
    return out or '0'


def build_qr_payload(ticket_id, event_id, participant_id, order_id=None):
    payload = {
        'ticketId': ticket_id,
        'eventId': str(event_id),
        'participantId': str(participant_id),
    }
    if order_id is not None:
        payload['orderId'] = str(order_id)
    return json.dumps(payload)


def generate_qr_code(data):
    """
    Render ``data`` as a PNG QR code.

    Returns:
        io.BytesIO: PNG image bytes
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    img_io = io.BytesIO()
    img.save(img_io, 'PNG')
    img_io.seek(0)
    return img_io


def encode_qr(payload):
    """
    QR encoder used when a ticket is issued. Returns a PNG data URL and raises
    DependencyFailure if the image cannot be produced.
    """
    try:
        png = generate_qr_code(payload).getvalue()
    except Exception as exc:
        logger.error("QR generation failed for payload %s: %s", payload, exc)
        raise DependencyFailure(cause=exc) from exc
    return DATA_URL_PREFIX + base64.b64encode(png).decode('ascii')


def decode_qr_data_url(data_url):
    """
    PNG bytes back out of a data URL (for inline email attachments)
    """
    if not data_url or not data_url.startswith(DATA_URL_PREFIX):
        return None
    return base64.b64decode(data_url[len(DATA_URL_PREFIX):])


def issue_ticket(prefix, event_id, participant_id, order_id=None):
    """
    Returns (ticket_id, qr_code_url). Nothing is persisted here.
    """
    ticket_id = generate_ticket_id(prefix)
    qr_code_url = encode_qr(build_qr_payload(ticket_id, event_id, participant_id, order_id))
    return ticket_id, qr_code_url


def find_by_ticket_id(ticket_id):
    """
    Resolve a ticket id to the Registration or MerchandiseOrder that owns it.

    Prefixed ids go straight to their table; anything else is tried against
    registrations first, then merchandise orders.

    Raises:
        TicketNotFound: no registration or order carries this ticket id
    """
    from apps.events.models import Registration
    from apps.shop.models import MerchandiseOrder

    registrations = Registration.objects.select_related('event', 'participant__user')
    orders = MerchandiseOrder.objects.select_related('event', 'participant__user')

    if ticket_id.startswith(REGISTRATION_PREFIX):
        lookups = [(TicketHolder.REGISTRATION, registrations)]
    elif ticket_id.startswith(MERCHANDISE_PREFIX):
        lookups = [(TicketHolder.MERCHANDISE, orders)]
    else:
        lookups = [(TicketHolder.REGISTRATION, registrations), (TicketHolder.MERCHANDISE, orders)]

    for kind, queryset in lookups:
        instance = queryset.filter(ticket_id=ticket_id).first()
        if instance is not None:
            return TicketHolder(kind, instance)

    raise TicketNotFound(f'No ticket found with ID {ticket_id}.')
