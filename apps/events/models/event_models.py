from decimal import Decimal

from django.db import models, transaction
from django.core import validators
from django.utils.translation import gettext_lazy as _

import uuid


class Event(models.Model):
    '''
    A fest event: either a normal event participants register for, or a
    merchandise event participants order from.
    '''
    class EventType(models.TextChoices):
        NORMAL = "normal", _("Normal")
        MERCHANDISE = "merchandise", _("Merchandise")

    class Eligibility(models.TextChoices):
        ALL = "ALL", _("Everyone")
        IIIT = "IIIT", _("IIIT only")
        EXTERNAL = "EXTERNAL", _("External only")

    class EventStatus(models.TextChoices):
        DRAFT = "draft", _("Draft")
        PUBLISHED = "published", _("Published")
        ONGOING = "ongoing", _("Ongoing")
        COMPLETED = "completed", _("Completed")
        CLOSED = "closed", _("Closed")

    # statuses only ever move to a higher rank
    STATUS_RANK = {
        EventStatus.DRAFT: 0,
        EventStatus.PUBLISHED: 1,
        EventStatus.ONGOING: 2,
        EventStatus.COMPLETED: 3,
        EventStatus.CLOSED: 4,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organizer = models.ForeignKey(
        "users.Organizer", on_delete=models.CASCADE,
        related_name="events", verbose_name=_("organizer")
    )
    name = models.CharField(_("event name"), max_length=200)
    description = models.TextField(_("event description"), blank=True)
    event_type = models.CharField(_("event type"), max_length=20, choices=EventType.choices, default=EventType.NORMAL)
    eligibility = models.CharField(_("eligibility"), max_length=10, choices=Eligibility.choices, default=Eligibility.ALL)
    status = models.CharField(_("event status"), max_length=20, choices=EventStatus.choices, default=EventStatus.DRAFT)

    registration_deadline = models.DateTimeField(_("registration deadline"), blank=True, null=True)
    start_date = models.DateTimeField(_("event start date"), blank=True, null=True)
    end_date = models.DateTimeField(_("event end date"), blank=True, null=True)

    registration_limit = models.PositiveIntegerField(
        _("registration limit"), default=0,
        help_text=_("0 means unlimited")
    )
    registration_fee = models.DecimalField(
        _("registration fee"), max_digits=10, decimal_places=2, default=Decimal("0.00"),
        validators=[validators.MinValueValidator(0)]
    )
    purchase_limit = models.PositiveIntegerField(
        _("purchase limit"), default=1,
        help_text=_("Maximum number of merchandise orders per participant")
    )
    tags = models.JSONField(_("tags"), default=list, blank=True)

    form_schema = models.JSONField(
        _("registration form"), default=list, blank=True,
        help_text=_("List of {field_type, label, required, options}")
    )
    form_locked = models.BooleanField(
        _("form locked"), default=False,
        help_text=_("Set on the first registration, the form can no longer be edited")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("event")
        verbose_name_plural = _("events")
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            EventAnalytics.objects.get_or_create(event=self)

    def __str__(self):
        return f"{self.get_event_type_display()}: {self.name} ({self.get_status_display()})"

    @property
    def is_merchandise(self):
        return self.event_type == self.EventType.MERCHANDISE

    def is_owned_by(self, organizer):
        return organizer is not None and self.organizer_id == organizer.pk

    def allows_participant_type(self, participant_type):
        return self.eligibility in (self.Eligibility.ALL, participant_type)

    def can_transition_to(self, new_status):
        if new_status not in self.STATUS_RANK:
            return False
        return self.STATUS_RANK[new_status] > self.STATUS_RANK[self.status]

    def lock_form(self):
        '''
        One-way latch, only ever flips False -> True
        '''
        if not self.form_locked:
            Event.objects.filter(pk=self.pk, form_locked=False).update(form_locked=True)
            self.form_locked = True


class MerchandiseVariant(models.Model):
    '''
    A purchasable variant of a merchandise event, e.g. T-shirt / M / Black.
    sold + stock stays constant once the event is published.
    '''
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="variants")
    product = models.CharField(_("product"), max_length=200)
    size = models.CharField(_("size"), max_length=20, blank=True)
    color = models.CharField(_("color"), max_length=50, blank=True)
    price = models.DecimalField(
        _("price"), max_digits=10, decimal_places=2, default=Decimal("0.00"),
        validators=[validators.MinValueValidator(0)]
    )
    stock = models.PositiveIntegerField(_("stock"), default=0)
    sold = models.PositiveIntegerField(_("sold"), default=0)

    class Meta:
        verbose_name = _("merchandise variant")
        verbose_name_plural = _("merchandise variants")
        ordering = ["product", "size", "color"]

    def __str__(self):
        parts = [self.product, self.size, self.color]
        return " / ".join(p for p in parts if p)

    def decrement_stock(self, quantity):
        """
        Move ``quantity`` units from stock to sold in a single conditional
        UPDATE. Returns False (and changes nothing) when stock is insufficient.
        """
        updated = MerchandiseVariant.objects.filter(pk=self.pk, stock__gte=quantity).update(
            stock=models.F("stock") - quantity,
            sold=models.F("sold") + quantity,
        )
        return updated == 1

    def increment_stock(self, quantity):
        """
        Reverse of decrement_stock, used when an order is rolled back.
        """
        with transaction.atomic():
            variant = MerchandiseVariant.objects.select_for_update().get(pk=self.pk)
            returned = min(quantity, variant.sold)
            variant.stock = models.F("stock") + returned
            variant.sold = models.F("sold") - returned
            variant.save(update_fields=["stock", "sold"])
        return returned == quantity


class EventAnalytics(models.Model):
    '''
    Running counters for an event, created together with the event.
    total_registrations == iiit_registrations + external_registrations
    '''
    event = models.OneToOneField(Event, on_delete=models.CASCADE, primary_key=True, related_name="analytics")
    total_registrations = models.IntegerField(default=0)
    iiit_registrations = models.IntegerField(default=0)
    external_registrations = models.IntegerField(default=0)
    merchandise_sales = models.IntegerField(default=0)
    revenue = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    attendance_count = models.IntegerField(default=0)
    cancellation_count = models.IntegerField(default=0)
    rejection_count = models.IntegerField(default=0)
    page_views = models.IntegerField(default=0)

    class Meta:
        verbose_name = _("event analytics")
        verbose_name_plural = _("event analytics")

    def __str__(self):
        return f"Analytics for {self.event.name}"

    @property
    def conversion_rate(self):
        if not self.page_views:
            return 0.0
        return round(self.total_registrations / self.page_views * 100, 2)


class EventAnalyticsHistory(models.Model):
    '''
    Daily snapshot of the analytics counters, one row per event per day.
    '''
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="analytics_history")
    date = models.DateField(_("snapshot date"))
    registrations = models.IntegerField(default=0)
    revenue = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    attendance = models.IntegerField(default=0)
    cancellations = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("event analytics snapshot")
        verbose_name_plural = _("event analytics snapshots")
        ordering = ["-date"]
        constraints = [
            models.UniqueConstraint(fields=["event", "date"], name="unique_event_analytics_per_day"),
        ]

    def __str__(self):
        return f"{self.event.name} @ {self.date}"
