"""
ASGI config for the fest backend.

HTTP goes to Django; websockets (live check-in feed) go through the JWT cookie
middleware and an origin validator built from CORS_ALLOWED_ORIGINS.
"""

import os

from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import OriginValidator

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

# AppRegistry must be populated before importing code that touches the ORM
django_asgi_app = get_asgi_application()

from django.conf import settings
from core.middleware import JWTAuthMiddlewareStack
from core.routing import websocket_urlpatterns


def allowed_websocket_hosts():
    hosts = []
    for origin in getattr(settings, 'CORS_ALLOWED_ORIGINS', []):
        if '://' in origin:
            origin = origin.split('://', 1)[1]
        hosts.append(origin.split(':', 1)[0])
    hosts.extend(getattr(settings, 'ALLOWED_HOSTS', []))
    return sorted({h for h in hosts if h and h != '*'})


class CORSOriginValidator(OriginValidator):
    """
    Websocket origin validator fed by CORS_ALLOWED_ORIGINS + ALLOWED_HOSTS, so a
    frontend on another domain can open the check-in feed.
    """
    def __init__(self, application):
        super().__init__(application, allowed_websocket_hosts())


application = ProtocolTypeRouter({
    "http": django_asgi_app,
    "websocket": CORSOriginValidator(
        JWTAuthMiddlewareStack(
            URLRouter(websocket_urlpatterns)
        )
    ),
})
