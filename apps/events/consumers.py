import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.core.serializers.json import DjangoJSONEncoder

from apps.events.models import Event
from apps.events.websocket_utils import checkin_group_name

logger = logging.getLogger(__name__)


def safe_json_dumps(data):
    """Serialize data that may contain Decimals, UUIDs or datetimes"""
    return json.dumps(data, cls=DjangoJSONEncoder)


class EventCheckInConsumer(AsyncWebsocketConsumer):
    """
    Live check-in feed for one event. Only the organizer who owns the event
    may subscribe; every successful scan or first manual override is pushed
    as a ``checkin_update`` message.
    """

    async def connect(self):
        self.event_id = self.scope['url_route']['kwargs']['event_id']
        self.event_group_name = checkin_group_name(self.event_id)

        user = self.scope.get("user")
        if user is None or user.is_anonymous:
            logger.info("Check-in socket for event %s refused: anonymous user", self.event_id)
            await self.close()
            return

        if not await self.check_event_permission(user, self.event_id):
            logger.info("Check-in socket for event %s refused for user %s", self.event_id, user.pk)
            await self.close()
            return

        await self.channel_layer.group_add(self.event_group_name, self.channel_name)
        await self.accept()
        await self.send_initial_data()

    async def disconnect(self, close_code):
        if hasattr(self, 'event_group_name'):
            await self.channel_layer.group_discard(self.event_group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        try:
            text_data_json = json.loads(text_data or '')
        except json.JSONDecodeError:
            await self.send(text_data=json.dumps({
                'type': 'error',
                'message': 'Invalid JSON format'
            }))
            return

        message_type = text_data_json.get('type')
        if message_type == 'ping':
            await self.send(text_data=json.dumps({
                'type': 'pong',
                'timestamp': text_data_json.get('timestamp')
            }))
        elif message_type == 'get_summary':
            await self.send_initial_data()

    async def checkin_update(self, event):
        """
        Group message sent by WebSocketNotifier
        """
        await self.send(text_data=safe_json_dumps({
            'type': 'checkin_update',
            'ticket': event['ticket'],
            'action': event['action'],
            'timestamp': event['timestamp'],
        }))

    async def send_initial_data(self):
        summary = await self.get_summary()
        await self.send(text_data=safe_json_dumps({
            'type': 'initial_data',
            **summary,
        }))

    @database_sync_to_async
    def check_event_permission(self, user, event_id):
        organizer = getattr(user, 'organizer_profile', None)
        if organizer is None:
            return False
        return Event.objects.filter(pk=event_id, organizer=organizer).exists()

    @database_sync_to_async
    def get_summary(self):
        from apps.events.services import attendance_service

        event = Event.objects.select_related('organizer').get(pk=self.event_id)
        summary = attendance_service.attendance_summary(event, event.organizer)
        return {
            'event': {'id': str(event.id), 'name': event.name, 'event_type': event.event_type},
            'total': summary['total'],
            'scanned': summary['scanned'],
            'not_scanned': summary['not_scanned'],
        }
