"""
Merchandise order engine.

Paid orders are stored ``pending`` with their payment proof and wait for the
organizer. Free orders, and paid orders once approved, receive a ``MERCH-``
ticket, take stock from their variants, count towards the event's analytics
and trigger a confirmation email. Those writes run as compensated steps so a
failure leaves the order, stock and counters exactly as they were.
"""
import json
import logging
from collections import namedtuple
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from apps.events import email_utils
from apps.events.exceptions import Conflict, InvalidState, NotFound, ValidationError
from apps.events.models import Event
from apps.events.services import analytics_service
from apps.events.services.compensation import Step, run_with_compensation
from apps.events.services.lookups import ensure_owner, get_event_or_404, get_participant_or_404
from apps.events.tickets import MERCHANDISE_PREFIX, issue_ticket
from apps.shop.models import MerchandiseOrder, MerchandiseOrderItem
from apps.shop.storage import delete_payment_proof, store_payment_proof

logger = logging.getLogger(__name__)

OrderLine = namedtuple('OrderLine', ['variant', 'quantity', 'size', 'color'])


def parse_selections(raw_selections, event, default_quantity):
    """
    Turn the submitted variant selections into OrderLines.

    ``raw_selections`` is a list of ``{variantId, qty?, size?, color?}`` or
    the same list JSON-encoded (multipart uploads send it as a string).
    A line without ``qty`` uses the order's top-level quantity.
    """
    if raw_selections in (None, ''):
        return []
    if isinstance(raw_selections, str):
        try:
            raw_selections = json.loads(raw_selections)
        except ValueError:
            raise ValidationError('variants_selected must be valid JSON.')
    if not isinstance(raw_selections, list):
        raise ValidationError('variants_selected must be a list.')

    variants = {str(v.id): v for v in event.variants.all()}
    lines = []
    for selection in raw_selections:
        if not isinstance(selection, dict):
            raise ValidationError('Each selected variant must be an object.')
        variant_id = selection.get('variantId') or selection.get('variant_id')
        variant = variants.get(str(variant_id))
        if variant is None:
            raise ValidationError(f'Unknown merchandise variant: {variant_id}.')
        quantity = _parse_quantity(selection.get('qty'), default_quantity)
        lines.append(OrderLine(
            variant=variant,
            quantity=quantity,
            size=selection.get('size') or variant.size,
            color=selection.get('color') or variant.color,
        ))
    return lines


def _parse_quantity(value, default):
    if value in (None, ''):
        return default
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError('Quantity must be a whole number.')
    if quantity <= 0:
        raise ValidationError('Quantity must be at least 1.')
    return quantity


def order_total(event, lines, quantity):
    """
    Sum of price x quantity over the lines. An order without variant lines
    is charged the event's registration fee per unit.
    """
    if lines:
        return sum((line.variant.price * line.quantity for line in lines), Decimal('0.00'))
    return event.registration_fee * quantity


def _get_order_or_404(order_id):
    try:
        return MerchandiseOrder.objects.select_related(
            'event', 'participant__user'
        ).get(pk=order_id)
    except (MerchandiseOrder.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound('Order not found.')


def _put_back(item):
    if not item.variant.increment_stock(item.quantity):
        logger.critical(
            "DATA INTEGRITY: could only partially return %d unit(s) of %s for order %s",
            item.quantity, item.variant, item.order_id,
        )


def _take_stock(order):
    """
    Move each line's quantity from stock to sold. If one line runs short the
    lines already taken are put back before InvalidState is raised.
    """
    taken = []
    for item in order.items.select_related('variant'):
        if item.variant is None:
            continue
        if not item.variant.decrement_stock(item.quantity):
            for done in taken:
                _put_back(done)
            raise InvalidState(f'Not enough stock left for {item.variant}.')
        taken.append(item)
    return taken


def _return_stock(order):
    for item in order.items.select_related('variant'):
        if item.variant is not None:
            _put_back(item)


def _fulfilment_steps(order):
    """
    Stock, analytics and confirmation email for an order that just became
    approved.
    """
    counted = {}

    def count_sale():
        counted.update(analytics_service.registration_delta(
            order.participant_type, order.revenue_amount, merchandise_units=1
        ))
        analytics_service.apply_delta(order.event_id, **counted)

    return [
        Step('take stock', lambda: _take_stock(order), lambda: _return_stock(order)),
        Step('count sale', count_sale, lambda: analytics_service.release(order.event_id, counted)),
        Step('send confirmation email', lambda: email_utils.send_merchandise_confirmation_email(order)),
    ]


def place_merchandise_order(event_id, participant_user, selections=None, quantity=1, proof_file=None):
    """
    Place an order on a merchandise event.

    Returns:
        MerchandiseOrder: pending for paid orders, approved with ticket for free ones
    """
    event = get_event_or_404(event_id)
    if event.event_type != Event.EventType.MERCHANDISE:
        raise InvalidState('This is not a merchandise event.')
    if event.status != Event.EventStatus.PUBLISHED:
        raise InvalidState('Event is not open for orders.')

    participant = get_participant_or_404(participant_user)

    quantity = _parse_quantity(quantity, 1)
    lines = parse_selections(selections, event, quantity)
    total = order_total(event, lines, quantity)
    is_free = total == 0

    if not is_free and proof_file is None:
        raise ValidationError('Payment proof is required for paid orders.')

    ticket_id = qr_code_url = None
    if is_free:
        ticket_id, qr_code_url = issue_ticket(MERCHANDISE_PREFIX, event.id, participant.id)

    proof_url = store_payment_proof(proof_file) if not is_free else None

    try:
        with transaction.atomic():
            # the event row lock serialises the purchase limit count
            Event.objects.select_for_update().get(pk=event.pk)
            existing = MerchandiseOrder.objects.filter(event=event, participant=participant).count()
            if existing >= (event.purchase_limit or 1):
                raise InvalidState('Purchase limit reached for this event.')

            order = MerchandiseOrder.objects.create(
                event=event,
                participant=participant,
                participant_type=participant.participant_type,
                quantity=quantity,
                revenue_amount=total,
                payment_proof_url=proof_url,
                approval_status=(
                    MerchandiseOrder.ApprovalStatus.APPROVED if is_free
                    else MerchandiseOrder.ApprovalStatus.PENDING
                ),
                ticket_id=ticket_id,
                qr_code_url=qr_code_url,
                resolved_at=timezone.now() if is_free else None,
            )
            MerchandiseOrderItem.objects.bulk_create([
                MerchandiseOrderItem(
                    order=order, variant=line.variant, size=line.size or '',
                    color=line.color or '', quantity=line.quantity, unit_price=line.variant.price,
                )
                for line in lines
            ])
    except Exception:
        delete_payment_proof(proof_url)
        raise

    if not is_free:
        logger.info("Order %s placed for event %s, awaiting approval", order.pk, event.pk)
        return order

    run_with_compensation(
        [Step('record free order', lambda: order, lambda: order.delete())] + _fulfilment_steps(order),
        context=f'free merchandise order {order.pk}',
    )
    logger.info("Free order %s for event %s confirmed with ticket %s", order.pk, event.pk, ticket_id)
    return order


def approve_order(order_id, organizer):
    """
    Approve a pending order: assign its ticket, take stock, count the sale
    and email the participant.

    Raises:
        Forbidden: the organizer does not own the order's event
        Conflict: the order is no longer pending
    """
    order = _get_order_or_404(order_id)
    ensure_owner(order.event, organizer, 'You do not organize this event.')
    if order.approval_status != MerchandiseOrder.ApprovalStatus.PENDING:
        raise Conflict(f'Order is already {order.approval_status}.')

    ticket_id, qr_code_url = issue_ticket(
        MERCHANDISE_PREFIX, order.event_id, order.participant_id, order_id=order.id
    )

    def claim():
        claimed = MerchandiseOrder.objects.filter(
            pk=order.pk, approval_status=MerchandiseOrder.ApprovalStatus.PENDING,
        ).update(
            approval_status=MerchandiseOrder.ApprovalStatus.APPROVED,
            ticket_id=ticket_id,
            qr_code_url=qr_code_url,
            approved_by=organizer,
            resolved_at=timezone.now(),
        )
        if not claimed:
            raise Conflict('Order was already resolved by another request.')
        order.refresh_from_db()

    def unclaim():
        MerchandiseOrder.objects.filter(pk=order.pk).update(
            approval_status=MerchandiseOrder.ApprovalStatus.PENDING,
            ticket_id=None, qr_code_url=None, approved_by=None, resolved_at=None,
        )

    run_with_compensation(
        [Step('claim order', claim, unclaim)] + _fulfilment_steps(order),
        context=f'approval of order {order.pk}',
    )
    logger.info("AUDIT: organizer %s approved order %s (ticket %s)", organizer.pk, order.pk, ticket_id)
    return order


def reject_order(order_id, organizer):
    order = _get_order_or_404(order_id)
    ensure_owner(order.event, organizer, 'You do not organize this event.')

    rejected = MerchandiseOrder.objects.filter(
        pk=order.pk, approval_status=MerchandiseOrder.ApprovalStatus.PENDING,
    ).update(
        approval_status=MerchandiseOrder.ApprovalStatus.REJECTED,
        approved_by=organizer,
        resolved_at=timezone.now(),
    )
    if not rejected:
        order.refresh_from_db(fields=['approval_status'])
        raise Conflict(f'Order is already {order.approval_status}.')

    analytics_service.apply_delta(order.event_id, rejection_count=1)
    order.refresh_from_db()
    logger.info("AUDIT: organizer %s rejected order %s", organizer.pk, order.pk)
    return order


def list_event_orders(event_id, organizer, approval_status=None):
    event = get_event_or_404(event_id)
    ensure_owner(event, organizer, 'You do not organize this event.')
    orders = (
        MerchandiseOrder.objects.filter(event=event)
        .select_related('participant__user')
        .prefetch_related('items__variant')
    )
    if approval_status:
        orders = orders.filter(approval_status=approval_status)
    return event, orders
