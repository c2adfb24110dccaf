from rest_framework import serializers

from apps.events.models import Registration
from apps.events.api.serializers.event_serializers import EventListSerializer
from apps.users.api.serializers import SimplifiedParticipantSerializer


class RegistrationCreateSerializer(serializers.Serializer):
    form_responses = serializers.DictField(required=False, default=dict)


class RegistrationSerializer(serializers.ModelSerializer):
    '''
    A participant's ticket, as they see it.
    '''
    event = EventListSerializer(read_only=True)

    class Meta:
        model = Registration
        fields = (
            "id", "event", "participant_type", "ticket_id", "qr_code_url", "form_responses",
            "status", "attendance_marked", "attendance_timestamp", "created_at",
        )
        read_only_fields = fields


class EventRegistrationSerializer(serializers.ModelSerializer):
    '''
    A registration as the event's organizer sees it.
    '''
    participant = SimplifiedParticipantSerializer(read_only=True)

    class Meta:
        model = Registration
        fields = (
            "id", "participant", "participant_type", "ticket_id", "form_responses",
            "status", "attendance_marked", "attendance_timestamp", "created_at",
        )
        read_only_fields = fields
