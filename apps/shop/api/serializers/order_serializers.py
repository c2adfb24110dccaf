from rest_framework import serializers

from apps.events.api.serializers import EventListSerializer
from apps.shop.models import MerchandiseOrder, MerchandiseOrderItem
from apps.users.api.serializers import SimplifiedParticipantSerializer


class MerchandiseOrderItemSerializer(serializers.ModelSerializer):
    variant_id = serializers.UUIDField(source="variant.id", read_only=True, default=None)
    product = serializers.CharField(source="variant.product", read_only=True, default=None)
    line_total = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = MerchandiseOrderItem
        fields = ("id", "variant_id", "product", "size", "color", "quantity", "unit_price", "line_total")
        read_only_fields = fields


class MerchandiseOrderSerializer(serializers.ModelSerializer):
    '''
    An order as its participant sees it.
    '''
    event = EventListSerializer(read_only=True)
    items = MerchandiseOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = MerchandiseOrder
        fields = (
            "id", "event", "items", "participant_type", "quantity", "revenue_amount",
            "payment_proof_url", "approval_status", "ticket_id", "qr_code_url",
            "attendance_marked", "attendance_timestamp", "resolved_at", "created_at",
        )
        read_only_fields = fields


class EventOrderSerializer(serializers.ModelSerializer):
    '''
    An order as the event's organizer sees it (no QR image).
    '''
    participant = SimplifiedParticipantSerializer(read_only=True)
    items = MerchandiseOrderItemSerializer(many=True, read_only=True)
    approved_by_name = serializers.CharField(source="approved_by.name", read_only=True, default=None)

    class Meta:
        model = MerchandiseOrder
        fields = (
            "id", "participant", "items", "participant_type", "quantity", "revenue_amount",
            "payment_proof_url", "approval_status", "ticket_id", "approved_by_name",
            "resolved_at", "attendance_marked", "created_at",
        )
        read_only_fields = fields


class OrderPlacementSerializer(serializers.Serializer):
    """
    Multipart or JSON body for placing an order.

    {
        "variants_selected": [{"variantId": "<uuid>", "qty": 2, "size": "M", "color": "Black"}],
        "quantity": 1,
        "payment_proof": <file>   // paid orders only
    }

    ``variants_selected`` may arrive as a JSON string from multipart forms,
    it is parsed by the order service.
    """
    variants_selected = serializers.JSONField(required=False)
    quantity = serializers.IntegerField(required=False, default=1, min_value=1)
    payment_proof = serializers.FileField(required=False, allow_null=True)
