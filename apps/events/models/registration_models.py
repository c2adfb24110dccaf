from django.db import models
from django.utils.translation import gettext_lazy as _

import uuid


class Registration(models.Model):
    '''
    A participant's registration (ticket) for a normal event
    '''
    class RegistrationStatus(models.TextChoices):
        REGISTERED = "registered", _("Registered")
        CANCELLED = "cancelled", _("Cancelled")
        REJECTED = "rejected", _("Rejected")
        COMPLETED = "completed", _("Completed")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey("events.Event", on_delete=models.CASCADE, related_name="registrations")
    participant = models.ForeignKey("users.Participant", on_delete=models.CASCADE, related_name="registrations")
    participant_type = models.CharField(_("participant type at registration"), max_length=10)

    ticket_id = models.CharField(_("ticket ID"), max_length=64, unique=True)
    qr_code_url = models.TextField(_("QR code (data URL)"), blank=True)
    form_responses = models.JSONField(_("form responses"), default=dict, blank=True)
    status = models.CharField(
        _("status"), max_length=20,
        choices=RegistrationStatus.choices, default=RegistrationStatus.REGISTERED
    )

    attendance_marked = models.BooleanField(_("attendance marked"), default=False)
    attendance_timestamp = models.DateTimeField(_("attendance timestamp"), blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("registration")
        verbose_name_plural = _("registrations")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "participant"],
                name="unique_event_participant_registration"
            ),
        ]

    def __str__(self):
        return f"{self.ticket_id} - {self.participant} @ {self.event.name}"
