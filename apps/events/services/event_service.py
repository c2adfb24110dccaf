"""
Event catalog rules: what an organizer may change at each lifecycle stage,
status transitions and cascading deletion.
"""
import logging
from decimal import Decimal

from django.db import transaction

from apps.events.exceptions import InvalidState, ValidationError
from apps.events.models import AttendanceLog, Event, MerchandiseVariant, Registration
from apps.events.services import analytics_service
from apps.events.services.lookups import ensure_owner

logger = logging.getLogger(__name__)

FORM_FIELD_TYPES = ('text', 'email', 'number', 'select', 'radio', 'checkbox', 'textarea')
PUBLISHED_EDITABLE_FIELDS = ('description', 'tags', 'registration_deadline', 'registration_limit')
# variant columns a published edit may rewrite; stock and sold only move through orders
VARIANT_DESCRIPTION_FIELDS = ('product', 'size', 'color', 'price')
STATUS_ENDPOINT_TARGETS = (
    Event.EventStatus.ONGOING,
    Event.EventStatus.COMPLETED,
    Event.EventStatus.CLOSED,
)


def validate_form_schema(form_schema):
    if not isinstance(form_schema, list):
        raise ValidationError('form_schema must be a list of fields.')
    cleaned = []
    for index, field in enumerate(form_schema):
        if not isinstance(field, dict):
            raise ValidationError(f'form_schema[{index}] must be an object.')
        field_type = field.get('field_type')
        label = (field.get('label') or '').strip()
        if field_type not in FORM_FIELD_TYPES:
            raise ValidationError(f'form_schema[{index}].field_type must be one of {", ".join(FORM_FIELD_TYPES)}.')
        if not label:
            raise ValidationError(f'form_schema[{index}].label is required.')
        options = field.get('options') or []
        if not isinstance(options, list):
            raise ValidationError(f'form_schema[{index}].options must be a list.')
        cleaned.append({
            'field_type': field_type,
            'label': label,
            'required': bool(field.get('required', False)),
            'options': [str(option) for option in options],
        })
    return cleaned


def create_event(organizer, data, variants=None):
    """
    New events always start as drafts; the analytics row is created with them.
    """
    data = dict(data)
    data.pop('status', None)
    data.pop('form_locked', None)
    if 'form_schema' in data:
        data['form_schema'] = validate_form_schema(data['form_schema'])

    with transaction.atomic():
        event = Event.objects.create(organizer=organizer, status=Event.EventStatus.DRAFT, **data)
        if variants:
            if not event.is_merchandise:
                raise ValidationError('Only merchandise events can have variants.')
            _replace_variants(event, variants)

    logger.info("Event %s (%s) created as draft by organizer %s", event.pk, event.name, organizer.pk)
    return event


def update_event(event, organizer, data, variants=None):
    """
    draft: every field is editable.
    published: description and tags; the deadline may only move later; the
    limit may only grow and never below the current registrations; variants
    for merchandise events.
    anything else: no content edits.
    """
    ensure_owner(event, organizer)
    data = dict(data)
    data.pop('status', None)
    data.pop('form_locked', None)

    if 'form_schema' in data and data['form_schema'] != event.form_schema:
        if event.form_locked:
            raise InvalidState('The registration form is locked after the first registration.')
        data['form_schema'] = validate_form_schema(data['form_schema'])

    if event.status == Event.EventStatus.DRAFT:
        with transaction.atomic():
            for field, value in data.items():
                setattr(event, field, value)
            event.save()
            if variants is not None:
                if not event.is_merchandise:
                    raise ValidationError('Only merchandise events can have variants.')
                _replace_variants(event, variants)
        return event

    if event.status != Event.EventStatus.PUBLISHED:
        raise InvalidState(
            f'Events in "{event.status}" status cannot be edited. Only status transitions are allowed.'
        )

    # unchanged values sent back by full-form clients are not edits
    data = {field: value for field, value in data.items() if getattr(event, field) != value}
    not_editable = sorted(set(data) - set(PUBLISHED_EDITABLE_FIELDS))
    if not_editable:
        raise InvalidState(f'Published events cannot change: {", ".join(not_editable)}.')

    if 'registration_deadline' in data:
        new_deadline = data['registration_deadline']
        if new_deadline is None or (event.registration_deadline and new_deadline <= event.registration_deadline):
            raise InvalidState('The registration deadline can only be extended, not shortened.')

    if 'registration_limit' in data:
        new_limit = data['registration_limit'] or 0
        if new_limit:
            current = analytics_service.get_analytics(event).total_registrations
            if new_limit < current:
                raise InvalidState('Cannot set the limit below the current registration count.')
            if event.registration_limit and new_limit < event.registration_limit:
                raise InvalidState('The registration limit can only be increased.')

    with transaction.atomic():
        for field, value in data.items():
            setattr(event, field, value)
        event.save()
        if variants is not None:
            if not event.is_merchandise:
                raise InvalidState('Variants can only be edited on merchandise events.')
            _merge_variants(event, variants)
    return event


def _replace_variants(event, variants):
    event.variants.all().delete()
    for variant in variants:
        MerchandiseVariant.objects.create(event=event, **_variant_fields(variant))


def _merge_variants(event, variants):
    """
    Published merchandise events: update listed variants in place, add new
    ones, drop unlisted ones that never sold.

    Existing variants keep their stock, so sold + stock stays what it was at
    publication. Listed variants are written with a field-scoped UPDATE that
    never touches stock or sold, which leaves concurrent sales intact.
    """
    existing = {str(v.id): v for v in event.variants.all()}
    kept = set()
    for payload in variants:
        variant_id = str(payload.get('id') or '')
        fields = _variant_fields(payload)
        if variant_id and variant_id in existing:
            variant = existing[variant_id]
            if 'stock' in payload and fields['stock'] != variant.stock:
                raise InvalidState(
                    f'Stock of "{variant}" cannot be changed after publishing, add a new variant instead.'
                )
            MerchandiseVariant.objects.filter(pk=variant.pk).update(
                **{field: fields[field] for field in VARIANT_DESCRIPTION_FIELDS}
            )
            kept.add(variant_id)
        elif variant_id:
            raise ValidationError(f'Unknown variant {variant_id}.')
        else:
            MerchandiseVariant.objects.create(event=event, **fields)

    for variant_id, variant in existing.items():
        if variant_id in kept:
            continue
        if variant.sold:
            raise InvalidState(f'Variant "{variant}" has sales and cannot be removed.')
        variant.delete()


def _variant_fields(payload):
    product = (payload.get('product') or '').strip()
    if not product:
        raise ValidationError('Every variant needs a product name.')
    try:
        price = Decimal(str(payload.get('price', 0) or 0))
        stock = int(payload.get('stock', 0) or 0)
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError('Variant price and stock must be numbers.')
    if price < 0 or stock < 0:
        raise ValidationError('Variant price and stock cannot be negative.')
    return {
        'product': product,
        'size': (payload.get('size') or '').strip(),
        'color': (payload.get('color') or '').strip(),
        'price': price,
        'stock': stock,
    }


def publish_event(event, organizer):
    ensure_owner(event, organizer)
    if event.status != Event.EventStatus.DRAFT:
        raise InvalidState('Only draft events can be published.')
    updated = Event.objects.filter(pk=event.pk, status=Event.EventStatus.DRAFT).update(
        status=Event.EventStatus.PUBLISHED
    )
    if not updated:
        raise InvalidState('Only draft events can be published.')
    event.refresh_from_db()
    logger.info("Event %s published by organizer %s", event.pk, organizer.pk)
    return event


def change_status(event, organizer, new_status):
    ensure_owner(event, organizer)
    if new_status not in STATUS_ENDPOINT_TARGETS:
        raise ValidationError(f'Status must be one of {", ".join(STATUS_ENDPOINT_TARGETS)}.')
    if event.status == Event.EventStatus.DRAFT:
        raise InvalidState('Publish the event before changing its status.')
    if not event.can_transition_to(new_status):
        raise InvalidState(f'Cannot move an event from "{event.status}" to "{new_status}".')

    previous = event.status
    updated = Event.objects.filter(pk=event.pk, status=previous).update(status=new_status)
    if not updated:
        raise InvalidState('The event status was changed by another request.')
    event.refresh_from_db()
    logger.info("Event %s moved from %s to %s by organizer %s", event.pk, previous, new_status, organizer.pk)
    return event


def delete_event(event, organizer):
    """
    Remove the event and everything hanging off it.
    """
    from apps.shop.models import MerchandiseOrder

    ensure_owner(event, organizer)
    event_id = event.pk
    with transaction.atomic():
        event.registered_participants.clear()
        Registration.objects.filter(event_id=event_id).delete()
        MerchandiseOrder.objects.filter(event_id=event_id).delete()
        AttendanceLog.objects.filter(event_id=event_id).delete()
        event.delete()
    logger.info("AUDIT: event %s and all related data deleted by organizer %s", event_id, organizer.pk)
