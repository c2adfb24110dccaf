from django.urls import path
from apps.events import consumers

websocket_urlpatterns = [
    path('ws/events/checkin/<uuid:event_id>/', consumers.EventCheckInConsumer.as_asgi()),
]
