from rest_framework import serializers

from apps.events.models import AttendanceLog


class ScanSerializer(serializers.Serializer):
    ticket_data = serializers.JSONField(help_text="QR payload (JSON string or object) or a bare ticket ID")


class ManualOverrideSerializer(serializers.Serializer):
    ticket_id = serializers.CharField(max_length=64)
    reason = serializers.CharField(allow_blank=True, required=False, default='')


class AttendanceLogSerializer(serializers.ModelSerializer):
    participant_name = serializers.CharField(source="participant.get_full_name", read_only=True)
    participant_email = serializers.EmailField(source="participant.user.email", read_only=True)
    scanned_by_name = serializers.CharField(source="scanned_by.name", read_only=True, default=None)

    class Meta:
        model = AttendanceLog
        fields = (
            "id", "ticket_id", "participant", "participant_name", "participant_email",
            "scanned_at", "scanned_by", "scanned_by_name", "manual_override", "override_reason",
        )
        read_only_fields = fields


class AttendanceRowSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    ticket_id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.EmailField()
    participant_type = serializers.CharField()
    attendance_marked = serializers.BooleanField()
    attendance_timestamp = serializers.DateTimeField(allow_null=True)
