from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.response import Response

from apps.events.services.lookups import get_organizer_or_403
from apps.shop.api.serializers import (
    MerchandiseOrderSerializer, EventOrderSerializer, OrderPlacementSerializer,
)
from apps.shop.models import MerchandiseOrder
from apps.shop.services import order_service
from core.permissions import IsOrganizer, IsParticipant

UUID_PATTERN = r'[0-9a-fA-F-]+'


class MerchandiseOrderViewSet(viewsets.GenericViewSet):
    '''
    Merchandise orders.

    POST <event_id>/           participant places an order (multipart with payment_proof)
    GET  event/<event_id>/     organizer lists the event's orders
    PUT  <order_id>/approve/   organizer approves a pending order
    PUT  <order_id>/reject/    organizer rejects a pending order
    '''
    queryset = MerchandiseOrder.objects.select_related("event", "participant__user")
    serializer_class = MerchandiseOrderSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_field = "id"
    lookup_value_regex = UUID_PATTERN

    def get_permissions(self):
        if self.action == "place_order":
            return [permissions.IsAuthenticated(), IsParticipant()]
        return [permissions.IsAuthenticated(), IsOrganizer()]

    @action(detail=False, methods=["post"], url_name="place", url_path=f'(?P<event_id>{UUID_PATTERN})')
    def place_order(self, request, event_id=None):
        serializer = OrderPlacementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = order_service.place_merchandise_order(
            event_id,
            request.user,
            selections=serializer.validated_data.get("variants_selected"),
            quantity=serializer.validated_data.get("quantity", 1),
            proof_file=serializer.validated_data.get("payment_proof"),
        )
        approved = order.approval_status == MerchandiseOrder.ApprovalStatus.APPROVED
        return Response(
            {
                "message": "Free order placed and confirmed!" if approved else "Order placed, awaiting approval",
                "order": MerchandiseOrderSerializer(order).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"], url_name="event_orders", url_path=f'event/(?P<event_id>{UUID_PATTERN})')
    def event_orders(self, request, event_id=None):
        _, orders = order_service.list_event_orders(
            event_id, get_organizer_or_403(request.user),
            approval_status=request.query_params.get("approval_status"),
        )
        return Response(EventOrderSerializer(orders, many=True).data)

    @action(detail=True, methods=["put"], url_name="approve", url_path="approve")
    def approve(self, request, id=None):
        order = order_service.approve_order(id, get_organizer_or_403(request.user))
        return Response({"message": "Order approved", "order": EventOrderSerializer(order).data})

    @action(detail=True, methods=["put"], url_name="reject", url_path="reject")
    def reject(self, request, id=None):
        order = order_service.reject_order(id, get_organizer_or_403(request.user))
        return Response({"message": "Order rejected", "order": EventOrderSerializer(order).data})
