from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.events.models import Registration
from apps.events.api.filters import RegistrationFilter
from apps.events.api.serializers import (
    RegistrationCreateSerializer, RegistrationSerializer, EventRegistrationSerializer,
)
from apps.events.services import registration_service
from apps.events.services.lookups import ensure_owner, get_event_or_404, get_organizer_or_403
from apps.shop.api.serializers import MerchandiseOrderSerializer
from core.permissions import IsOrganizer, IsParticipant

EVENT_ID_PATTERN = r'event/(?P<event_id>[0-9a-fA-F-]+)'


class RegistrationViewSet(viewsets.GenericViewSet):
    '''
    Registrations for normal events.

    POST event/<event_id>/  participant registers
    GET  event/<event_id>/  organizer lists the event's registrations
    GET  my/                participant's registrations and merchandise orders
    '''
    queryset = Registration.objects.select_related("event", "participant__user")
    serializer_class = RegistrationSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = RegistrationFilter

    def get_permissions(self):
        if self.action == "event_registrations" and self.request.method == "GET":
            return [permissions.IsAuthenticated(), IsOrganizer()]
        return [permissions.IsAuthenticated(), IsParticipant()]

    @action(detail=False, methods=["get", "post"], url_name="event", url_path=EVENT_ID_PATTERN)
    def event_registrations(self, request, event_id=None):
        if request.method == "POST":
            return self._register(request, event_id)

        organizer = get_organizer_or_403(request.user)
        event = get_event_or_404(event_id)
        ensure_owner(event, organizer, "Access denied")
        registrations = self.filter_queryset(self.get_queryset().filter(event=event))
        return Response(EventRegistrationSerializer(registrations, many=True).data)

    def _register(self, request, event_id):
        serializer = RegistrationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        registration = registration_service.register_for_event(
            event_id, request.user, serializer.validated_data.get("form_responses")
        )
        return Response(
            {
                "message": "Registered successfully! Check your email for the ticket.",
                "registration": RegistrationSerializer(registration).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"], url_name="my", url_path="my")
    def my_tickets(self, request):
        registrations, orders = registration_service.list_participant_tickets(request.user)
        return Response({
            "registrations": RegistrationSerializer(registrations, many=True).data,
            "merchandise_orders": MerchandiseOrderSerializer(orders, many=True).data,
        })
