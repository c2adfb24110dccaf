"""
Websocket JWT authentication from the HTTPOnly ``access_token`` cookie (or a
``?token=`` query parameter for scanner clients without cookies), and a
small HTTP middleware that keeps CORS headers on redirects.
"""

import logging
from http.cookies import SimpleCookie
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


@database_sync_to_async
def get_user_from_token(token_string):
    User = get_user_model()
    try:
        access_token = AccessToken(token_string)
    except (InvalidToken, TokenError) as e:
        logger.warning("Invalid websocket token: %s", e)
        return AnonymousUser()

    user_id = access_token.get(api_settings.USER_ID_CLAIM)
    if not user_id:
        logger.warning("No user id claim found in websocket token")
        return AnonymousUser()

    try:
        return User.objects.get(**{api_settings.USER_ID_FIELD: user_id})
    except User.DoesNotExist:
        logger.warning("Websocket token refers to unknown user %s", user_id)
        return AnonymousUser()


class JWTAuthMiddleware(BaseMiddleware):
    """
    Authenticates websocket connections with the access token cookie and puts
    the user on ``scope['user']`` (AnonymousUser when missing or invalid).
    """

    async def __call__(self, scope, receive, send):
        headers = dict(scope.get('headers', []))
        cookie_header = headers.get(b'cookie', b'').decode('utf-8')

        cookies = SimpleCookie()
        if cookie_header:
            cookies.load(cookie_header)
        morsel = cookies.get('access_token')
        token = morsel.value if morsel is not None else None
        if token is None:
            query = parse_qs(scope.get('query_string', b'').decode('utf-8'))
            token = (query.get('token') or [None])[0]

        if token:
            scope['user'] = await get_user_from_token(token)
        else:
            logger.debug("Websocket connection without access token")
            scope['user'] = AnonymousUser()

        return await super().__call__(scope, receive, send)


def JWTAuthMiddlewareStack(inner):
    return JWTAuthMiddleware(inner)


class ForceRedirectCORSMiddleware:
    """
    Adds Access-Control-Allow-Origin to redirect responses (trailing-slash
    redirects mostly) that django-cors-headers left without one.
    """

    REDIRECT_CODES = (301, 302, 303, 307, 308)

    def __init__(self, get_response):
        from django.conf import settings
        self.get_response = get_response
        self.allowed_origins = set(getattr(settings, 'CORS_ALLOWED_ORIGINS', []))
        self.allow_all = getattr(settings, 'CORS_ALLOW_ALL_ORIGINS', False)

    def __call__(self, request):
        response = self.get_response(request)

        if response.status_code not in self.REDIRECT_CODES:
            return response

        origin = request.headers.get('Origin')
        if not origin or 'Access-Control-Allow-Origin' in response:
            return response

        if self.allow_all or origin in self.allowed_origins:
            response['Access-Control-Allow-Origin'] = origin
            response['Access-Control-Allow-Credentials'] = 'true'
            response['Vary'] = 'Origin'

        return response
