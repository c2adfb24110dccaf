from datetime import timedelta

from django.db.models import Q
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.events.models import Event
from apps.events.api.filters import EventFilter
from apps.events.api.serializers import (
    EventSerializer, EventListSerializer, EventStatusSerializer, EventAnalyticsHistorySerializer,
)
from apps.events.services import analytics_service, event_service
from apps.events.services.lookups import ensure_owner
from core.permissions import IsOrganizer

PUBLIC_STATUSES = (
    Event.EventStatus.PUBLISHED,
    Event.EventStatus.ONGOING,
    Event.EventStatus.COMPLETED,
    Event.EventStatus.CLOSED,
)

# models fields the service layer accepts from the write serializer
WRITABLE_FIELDS = (
    "name", "description", "event_type", "eligibility", "registration_deadline",
    "start_date", "end_date", "registration_limit", "registration_fee",
    "purchase_limit", "tags", "form_schema",
)


class EventViewSet(viewsets.ModelViewSet):
    '''
    Event catalog. Anyone can browse published events; organizers create,
    edit, publish and move their own events through the lifecycle.
    '''
    queryset = Event.objects.select_related("organizer", "analytics").prefetch_related("variants")
    serializer_class = EventSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = EventFilter
    ordering_fields = ["created_at", "start_date", "registration_deadline", "name"]
    ordering = ["-created_at"]
    lookup_field = "id"
    lookup_value_regex = "[0-9a-fA-F-]+"
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    def get_permissions(self):
        if self.action in ("list", "retrieve", "trending"):
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated(), IsOrganizer()]

    def get_serializer_class(self):
        if self.action in ("list", "trending", "mine"):
            return EventListSerializer
        return super().get_serializer_class()

    def get_serializer_context(self):
        context = super().get_serializer_context()
        user = self.request.user
        context["organizer"] = getattr(user, "organizer_profile", None) if user.is_authenticated else None
        return context

    def get_queryset(self):
        """
        Drafts are only visible to the organizer who owns them.
        """
        queryset = super().get_queryset()
        organizer = self.get_serializer_context()["organizer"]
        if organizer is not None:
            return queryset.filter(Q(status__in=PUBLIC_STATUSES) | Q(organizer=organizer))
        return queryset.filter(status__in=PUBLIC_STATUSES)

    @staticmethod
    def _event_data(validated_data):
        return {field: validated_data[field] for field in WRITABLE_FIELDS if field in validated_data}

    def retrieve(self, request, *args, **kwargs):
        event = self.get_object()
        analytics_service.record_page_view(event.id)
        # reload so the owner sees the counters including this view
        event = self.get_object()
        return Response(self.get_serializer(event).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = event_service.create_event(
            request.user.organizer_profile,
            self._event_data(serializer.validated_data),
            variants=serializer.validated_data.get("variant_data"),
        )
        return Response(self.get_serializer(event).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        event = self.get_object()
        serializer = self.get_serializer(event, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        event = event_service.update_event(
            event,
            request.user.organizer_profile,
            self._event_data(serializer.validated_data),
            variants=serializer.validated_data.get("variant_data"),
        )
        return Response(self.get_serializer(event).data)

    def destroy(self, request, *args, **kwargs):
        event = self.get_object()
        event_service.delete_event(event, request.user.organizer_profile)
        return Response({"message": "Event deleted"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["put"], url_name="publish", url_path="publish")
    def publish(self, request, id=None):
        event = event_service.publish_event(self.get_object(), request.user.organizer_profile)
        return Response({"message": "Event published", "event": self.get_serializer(event).data})

    @action(detail=True, methods=["put"], url_name="status", url_path="status")
    def change_status(self, request, id=None):
        serializer = EventStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = event_service.change_status(
            self.get_object(), request.user.organizer_profile, serializer.validated_data["status"]
        )
        return Response({"message": f"Event status changed to {event.status}", "event": self.get_serializer(event).data})

    @action(detail=False, methods=["get"], url_name="mine", url_path="mine")
    def mine(self, request):
        events = self.filter_queryset(
            Event.objects.filter(organizer=request.user.organizer_profile).select_related("organizer")
        )
        return Response(self.get_serializer(events, many=True).data)

    @action(detail=False, methods=["get"], url_name="trending", url_path="trending")
    def trending(self, request):
        '''
        Top five published events created in the last 24 hours, by registrations.
        '''
        since = timezone.now() - timedelta(hours=24)
        events = (
            Event.objects.filter(status=Event.EventStatus.PUBLISHED, created_at__gte=since)
            .select_related("organizer", "analytics")
            .order_by("-analytics__total_registrations")[:5]
        )
        return Response(self.get_serializer(events, many=True).data)

    @action(detail=True, methods=["get"], url_name="analytics_history", url_path="analytics-history")
    def analytics_history(self, request, id=None):
        event = self.get_object()
        ensure_owner(event, request.user.organizer_profile)
        serializer = EventAnalyticsHistorySerializer(event.analytics_history.all(), many=True)
        return Response(serializer.data)
