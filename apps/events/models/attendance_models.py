from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

import uuid


class AttendanceLog(models.Model):
    '''
    Append-only record of every successful scan and every manual override.
    Rows are only removed when their event is deleted.
    '''
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey("events.Event", on_delete=models.CASCADE, related_name="attendance_logs")
    participant = models.ForeignKey("users.Participant", on_delete=models.CASCADE, related_name="attendance_logs")
    ticket_id = models.CharField(_("ticket ID"), max_length=64, db_index=True)
    scanned_at = models.DateTimeField(_("scanned at"), default=timezone.now)
    scanned_by = models.ForeignKey(
        "users.Organizer", on_delete=models.SET_NULL,
        null=True, blank=True, related_name="attendance_scans"
    )
    manual_override = models.BooleanField(_("manual override"), default=False)
    override_reason = models.TextField(_("override reason"), blank=True)

    class Meta:
        verbose_name = _("attendance log")
        verbose_name_plural = _("attendance logs")
        ordering = ["-scanned_at"]

    def __str__(self):
        kind = "override" if self.manual_override else "scan"
        return f"{self.ticket_id} {kind} @ {self.scanned_at:%Y-%m-%d %H:%M}"
