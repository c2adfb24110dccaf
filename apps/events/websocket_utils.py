"""
Pushes successful check-ins to the organizer's live check-in screen over
Django Channels. Broadcasting is best effort: failures are logged and never
reach the scan request.
"""
import logging

import pytz
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


def checkin_group_name(event_id):
    return f'event_checkin_{event_id}'


def convert_to_local_time(dt):
    """Render a datetime in the fest's timezone (settings.TIME_ZONE)"""
    if not dt:
        return None
    if not timezone.is_aware(dt):
        dt = timezone.make_aware(dt, pytz.UTC)
    return dt.astimezone(pytz.timezone(settings.TIME_ZONE))


def serialize_ticket_for_websocket(holder, manual_override=False):
    instance = holder.instance
    participant = instance.participant
    marked_at = convert_to_local_time(instance.attendance_timestamp)
    return {
        'ticket_id': instance.ticket_id,
        'kind': holder.kind,
        'participant': {
            'id': str(participant.id),
            'name': participant.get_full_name(),
            'email': participant.user.email,
            'participant_type': instance.participant_type,
        },
        'attendance_marked': instance.attendance_marked,
        'attendance_timestamp': marked_at.isoformat() if marked_at else None,
        'manual_override': manual_override,
    }


class WebSocketNotifier:
    """
    Sends check-in updates to everyone watching an event's check-in group
    """

    def __init__(self):
        self.channel_layer = get_channel_layer()

    def notify_checkin_update(self, event_id, ticket_data, action='checkin'):
        if not self.channel_layer:
            logger.warning("No channel layer configured, skipping check-in broadcast")
            return False

        message = {
            'type': 'checkin_update',
            'ticket': ticket_data,
            'action': action,
            'timestamp': convert_to_local_time(timezone.now()).isoformat(),
        }
        try:
            async_to_sync(self.channel_layer.group_send)(checkin_group_name(event_id), message)
        except Exception as exc:
            logger.warning("Check-in broadcast for event %s failed: %s", event_id, exc)
            return False
        return True


websocket_notifier = WebSocketNotifier()
