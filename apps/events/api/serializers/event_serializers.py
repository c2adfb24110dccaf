from rest_framework import serializers

from apps.events.models import Event, MerchandiseVariant, EventAnalytics, EventAnalyticsHistory


class MerchandiseVariantSerializer(serializers.ModelSerializer):
    available = serializers.SerializerMethodField()

    class Meta:
        model = MerchandiseVariant
        fields = ("id", "product", "size", "color", "price", "stock", "sold", "available")
        read_only_fields = ("id", "sold", "available")

    def get_available(self, obj):
        return obj.stock > 0


class EventAnalyticsSerializer(serializers.ModelSerializer):
    conversion_rate = serializers.FloatField(read_only=True)

    class Meta:
        model = EventAnalytics
        fields = (
            "total_registrations", "iiit_registrations", "external_registrations",
            "merchandise_sales", "revenue", "attendance_count", "cancellation_count",
            "rejection_count", "page_views", "conversion_rate",
        )
        read_only_fields = fields


class EventAnalyticsHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = EventAnalyticsHistory
        fields = ("date", "registrations", "revenue", "attendance", "cancellations")
        read_only_fields = fields


class EventListSerializer(serializers.ModelSerializer):
    '''
    Compact representation used by browse and "mine" listings.
    '''
    organizer_name = serializers.CharField(source="organizer.name", read_only=True)

    class Meta:
        model = Event
        fields = (
            "id", "name", "event_type", "eligibility", "status", "organizer", "organizer_name",
            "registration_deadline", "start_date", "end_date", "registration_fee", "tags",
        )
        read_only_fields = fields


class EventSerializer(serializers.ModelSerializer):
    """
    Full event. Analytics are only included for the organizer who owns the
    event (passed as ``organizer`` in the serializer context).

    Example write payload:
    {
        "name": "Hackathon",
        "event_type": "normal",
        "eligibility": "ALL",
        "registration_deadline": "2026-01-10T18:00:00+05:30",
        "registration_limit": 200,
        "registration_fee": "0.00",
        "tags": ["tech", "coding"],
        "form_schema": [{"field_type": "text", "label": "Team name", "required": true}],
        "variants": []   // merchandise events only
    }
    """
    organizer_name = serializers.CharField(source="organizer.name", read_only=True)
    variants = MerchandiseVariantSerializer(many=True, read_only=True)
    analytics = serializers.SerializerMethodField()

    # write-only variant payload, handled by the event service
    variant_data = serializers.ListField(
        child=serializers.DictField(), write_only=True, required=False,
        help_text="Merchandise variants: {id?, product, size, color, price, stock}"
    )
    form_schema = serializers.JSONField(required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Event
        fields = (
            "id", "organizer", "organizer_name", "name", "description", "event_type",
            "eligibility", "status", "registration_deadline", "start_date", "end_date",
            "registration_limit", "registration_fee", "purchase_limit", "tags",
            "form_schema", "form_locked", "variants", "variant_data", "analytics",
            "created_at", "updated_at",
        )
        read_only_fields = ("id", "organizer", "status", "form_locked", "created_at", "updated_at")

    def get_analytics(self, obj):
        organizer = self.context.get("organizer")
        if organizer is None or not obj.is_owned_by(organizer):
            return None
        analytics = getattr(obj, "analytics", None)
        return EventAnalyticsSerializer(analytics).data if analytics else None

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if self.instance is not None:
            start = start if "start_date" in attrs else self.instance.start_date
            end = end if "end_date" in attrs else self.instance.end_date
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date cannot be before the start date."})
        return attrs


class EventStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Event.EventStatus.choices)
