from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

import uuid


class EmailLog(models.Model):
    '''
    One row per outgoing email attempt, whether it was delivered or not
    '''
    class EmailType(models.TextChoices):
        TICKET = "ticket", _("Ticket")
        REGISTRATION = "registration", _("Registration")
        MERCHANDISE_CONFIRMATION = "merchandise_confirmation", _("Merchandise confirmation")

    class DeliveryStatus(models.TextChoices):
        SENT = "sent", _("Sent")
        FAILED = "failed", _("Failed")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    to = models.EmailField(_("recipient"))
    subject = models.CharField(_("subject"), max_length=255, blank=True)
    email_type = models.CharField(_("type"), max_length=40, choices=EmailType.choices)
    status = models.CharField(_("status"), max_length=10, choices=DeliveryStatus.choices, default=DeliveryStatus.SENT)
    provider = models.CharField(_("provider"), max_length=50, blank=True)
    metadata = models.JSONField(_("metadata"), default=dict, blank=True)
    error = models.TextField(_("error"), blank=True)
    sent_at = models.DateTimeField(_("sent at"), default=timezone.now)

    class Meta:
        verbose_name = _("email log")
        verbose_name_plural = _("email logs")
        ordering = ["-sent_at"]

    def __str__(self):
        return f"[{self.status}] {self.email_type} -> {self.to}"
