from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

import uuid


class MerchandiseOrder(models.Model):
    '''
    A participant's order on a merchandise event. Paid orders wait for the
    organizer to check the payment proof; free orders are approved at once.
    The ticket is assigned exactly once, when the order becomes approved.
    '''
    class ApprovalStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey("events.Event", on_delete=models.CASCADE, related_name="merchandise_orders")
    participant = models.ForeignKey("users.Participant", on_delete=models.CASCADE, related_name="merchandise_orders")
    participant_type = models.CharField(_("participant type at order time"), max_length=10)

    quantity = models.PositiveIntegerField(_("quantity"), default=1)
    revenue_amount = models.DecimalField(
        _("order total"), max_digits=10, decimal_places=2, default=Decimal("0.00"),
        help_text=_("Computed when the order is placed, never changed afterwards")
    )
    payment_proof_url = models.URLField(_("payment proof"), max_length=500, blank=True, null=True)

    approval_status = models.CharField(
        _("approval status"), max_length=10,
        choices=ApprovalStatus.choices, default=ApprovalStatus.PENDING
    )
    approved_by = models.ForeignKey(
        "users.Organizer", on_delete=models.SET_NULL,
        null=True, blank=True, related_name="resolved_orders",
        verbose_name=_("resolved by")
    )
    resolved_at = models.DateTimeField(_("resolved at"), blank=True, null=True)

    ticket_id = models.CharField(_("ticket ID"), max_length=64, unique=True, blank=True, null=True)
    qr_code_url = models.TextField(_("QR code (data URL)"), blank=True, null=True)

    attendance_marked = models.BooleanField(_("attendance marked"), default=False)
    attendance_timestamp = models.DateTimeField(_("attendance timestamp"), blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("merchandise order")
        verbose_name_plural = _("merchandise orders")
        ordering = ["-created_at"]

    def __str__(self):
        return f"Order {self.id} - {self.participant} ({self.get_approval_status_display()})"


class MerchandiseOrderItem(models.Model):
    '''
    One selected variant line of an order
    '''
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(MerchandiseOrder, on_delete=models.CASCADE, related_name="items")
    variant = models.ForeignKey(
        "events.MerchandiseVariant", on_delete=models.SET_NULL,
        null=True, blank=True, related_name="order_items"
    )
    size = models.CharField(_("size"), max_length=20, blank=True)
    color = models.CharField(_("color"), max_length=50, blank=True)
    quantity = models.PositiveIntegerField(_("quantity"), default=1)
    unit_price = models.DecimalField(_("unit price"), max_digits=10, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        verbose_name = _("merchandise order item")
        verbose_name_plural = _("merchandise order items")

    def __str__(self):
        return f"{self.quantity} x {self.variant or 'removed variant'}"

    @property
    def line_total(self):
        return self.unit_price * self.quantity
