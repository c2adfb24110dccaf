"""
Notifier: transactional emails for tickets and merchandise orders.

Every call to :func:`send_email` writes one EmailLog row (sent or failed).
A failed delivery raises DependencyFailure so the calling engine can roll
back whatever it already committed.
"""
import logging
from email.mime.image import MIMEImage

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags

from apps.events.exceptions import DependencyFailure
from apps.events.models import EmailLog
from apps.events.tickets import decode_qr_data_url

logger = logging.getLogger(__name__)


def send_email(to, subject, html_body, email_type, metadata=None, inline_images=None):
    """
    Send one HTML email.

    Args:
        to (str): recipient address
        subject (str): subject line
        html_body (str): rendered HTML, a plain-text part is derived from it
        email_type (str): one of EmailLog.EmailType
        metadata (dict): stored on the EmailLog row
        inline_images (dict): content-id -> PNG bytes, attached inline

    Returns:
        EmailLog: the log row for the delivered email

    Raises:
        DependencyFailure: the mail backend rejected or failed the send
    """
    metadata = {key: str(value) for key, value in (metadata or {}).items()}
    provider = getattr(settings, 'EMAIL_PROVIDER', 'smtp')

    email = EmailMultiAlternatives(
        subject=subject,
        body=strip_tags(html_body),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
    )
    email.attach_alternative(html_body, "text/html")

    for content_id, png in (inline_images or {}).items():
        image = MIMEImage(png)
        image.add_header('Content-ID', f'<{content_id}>')
        image.add_header('Content-Disposition', 'inline', filename=content_id)
        email.attach(image)

    try:
        email.send(fail_silently=False)
    except Exception as exc:
        logger.error("Failed to send %s email to %s: %s", email_type, to, exc)
        EmailLog.objects.create(
            to=to, subject=subject, email_type=email_type,
            status=EmailLog.DeliveryStatus.FAILED, provider=provider,
            metadata=metadata, error=str(exc),
        )
        raise DependencyFailure(cause=exc) from exc

    logger.info("%s email sent to %s", email_type, to)
    return EmailLog.objects.create(
        to=to, subject=subject, email_type=email_type,
        status=EmailLog.DeliveryStatus.SENT, provider=provider, metadata=metadata,
    )


def _qr_inline(ticket_id, qr_code_url):
    png = decode_qr_data_url(qr_code_url)
    if png is None:
        return 'qr_code.png', {}
    content_id = f'qr_code_{ticket_id}.png'
    return content_id, {content_id: png}


def send_ticket_email(registration):
    """
    Ticket email for a registration, with the QR code embedded inline.
    """
    event = registration.event
    participant = registration.participant
    content_id, images = _qr_inline(registration.ticket_id, registration.qr_code_url)

    context = {
        'participant': participant,
        'event': event,
        'ticket_id': registration.ticket_id,
        'qr_content_id': content_id,
    }
    html_message = render_to_string('emails/ticket.html', context)
    return send_email(
        to=participant.user.email,
        subject=f'Your ticket for {event.name}',
        html_body=html_message,
        email_type=EmailLog.EmailType.TICKET,
        metadata={'eventId': event.id, 'ticketId': registration.ticket_id},
        inline_images=images,
    )


def send_merchandise_confirmation_email(order):
    """
    Confirmation for an approved (or free) merchandise order.
    """
    event = order.event
    participant = order.participant
    content_id, images = _qr_inline(order.ticket_id, order.qr_code_url)

    context = {
        'participant': participant,
        'event': event,
        'order': order,
        'items': list(order.items.select_related('variant')),
        'ticket_id': order.ticket_id,
        'qr_content_id': content_id,
    }
    html_message = render_to_string('emails/merchandise_confirmation.html', context)
    return send_email(
        to=participant.user.email,
        subject=f'Order confirmed - {event.name}',
        html_body=html_message,
        email_type=EmailLog.EmailType.MERCHANDISE_CONFIRMATION,
        metadata={'eventId': event.id, 'orderId': order.id, 'ticketId': order.ticket_id},
        inline_images=images,
    )
