from rest_framework import serializers

from apps.users.models import FestUser, Participant, Organizer


class ParticipantProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Participant
        fields = ("id", "first_name", "last_name", "participant_type", "college_name", "contact_number")
        read_only_fields = fields


class OrganizerProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organizer
        fields = ("id", "name", "organizer_type", "category", "description", "contact_email", "is_active")
        read_only_fields = fields


class FestUserSerializer(serializers.ModelSerializer):
    '''
    Account plus whichever profile matches its role.
    '''
    profile = serializers.SerializerMethodField()

    class Meta:
        model = FestUser
        fields = ("id", "email", "role", "is_active", "date_joined", "profile")
        read_only_fields = fields

    def get_profile(self, obj):
        profile = obj.profile
        if isinstance(profile, Participant):
            return ParticipantProfileSerializer(profile).data
        if isinstance(profile, Organizer):
            return OrganizerProfileSerializer(profile).data
        return None


class SimplifiedParticipantSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Participant
        fields = ("id", "first_name", "last_name", "email", "participant_type", "college_name", "contact_number")
        read_only_fields = fields
