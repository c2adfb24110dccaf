from django.http import HttpResponse
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.events.api.serializers import (
    ScanSerializer, ManualOverrideSerializer, AttendanceLogSerializer, AttendanceRowSerializer,
)
from apps.events.services import attendance_service
from apps.events.services.lookups import get_event_or_404, get_organizer_or_403
from apps.events.websocket_utils import serialize_ticket_for_websocket
from core.permissions import IsOrganizer

EVENT_ID_PATTERN = r'event/(?P<event_id>[0-9a-fA-F-]+)'


class AttendanceViewSet(viewsets.ViewSet):
    '''
    Organizer check-in desk: QR scans, manual overrides, attendance logs,
    summary and CSV export.
    '''
    permission_classes = [permissions.IsAuthenticated, IsOrganizer]

    def _organizer(self, request):
        return get_organizer_or_403(request.user)

    @action(detail=False, methods=["post"], url_name="scan", url_path="scan")
    def scan(self, request):
        serializer = ScanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        holder = attendance_service.scan_ticket(serializer.validated_data["ticket_data"], self._organizer(request))
        return Response({
            "message": "Attendance marked successfully",
            "ticket": serialize_ticket_for_websocket(holder, manual_override=False),
        })

    @action(detail=False, methods=["post"], url_name="manual", url_path="manual")
    def manual(self, request):
        serializer = ManualOverrideSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        holder, newly_marked = attendance_service.manual_override(
            serializer.validated_data["ticket_id"],
            serializer.validated_data["reason"],
            self._organizer(request),
        )
        message = "Attendance manually marked" if newly_marked else "Override logged, attendance was already marked"
        return Response({
            "message": message,
            "newly_marked": newly_marked,
            "ticket": serialize_ticket_for_websocket(holder, manual_override=True),
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_name="event_logs", url_path=EVENT_ID_PATTERN)
    def event_logs(self, request, event_id=None):
        event = get_event_or_404(event_id)
        logs = attendance_service.list_logs(event, self._organizer(request))
        return Response(AttendanceLogSerializer(logs, many=True).data)

    @action(detail=False, methods=["get"], url_name="event_all", url_path=EVENT_ID_PATTERN + r'/all')
    def event_summary(self, request, event_id=None):
        event = get_event_or_404(event_id)
        summary = attendance_service.attendance_summary(event, self._organizer(request))
        summary["participants"] = AttendanceRowSerializer(summary["participants"], many=True).data
        return Response(summary)

    @action(detail=False, methods=["get"], url_name="event_export_csv", url_path=EVENT_ID_PATTERN + r'/export-csv')
    def export_csv(self, request, event_id=None):
        event = get_event_or_404(event_id)
        filename, content = attendance_service.export_csv(event, self._organizer(request))
        response = HttpResponse(content, content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response
