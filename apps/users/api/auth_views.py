"""
Login / refresh / logout with the JWT pair kept in HTTPOnly cookies.
The access token is also returned in the login body for clients (scanner
devices) that send it as an Authorization: Bearer header instead.
"""

import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .serializers import FestUserSerializer

logger = logging.getLogger(__name__)


def _cookie_options(max_age):
    return {
        'max_age': max_age,
        'httponly': True,
        'secure': not settings.DEBUG,
        # 'None' is required for cross-origin requests with credentials
        'samesite': 'None' if not settings.DEBUG else 'Lax',
        'path': '/',
    }


def _access_max_age():
    return int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds())


def _refresh_max_age():
    return int(settings.SIMPLE_JWT['REFRESH_TOKEN_LIFETIME'].total_seconds())


@method_decorator(csrf_exempt, name='dispatch')
class SecureTokenObtainView(APIView):
    """
    Email + password login. Sets ``access_token`` and ``refresh_token`` cookies.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        email = (request.data.get('email') or '').strip().lower()
        password = request.data.get('password')

        if not email or not password:
            return Response({'message': 'Email and password are required', 'code': 'invalid'},
                            status=status.HTTP_400_BAD_REQUEST)

        user = authenticate(request, username=email, password=password)
        if user is None:
            logger.info("Failed login attempt for %s", email)
            return Response({'message': 'Invalid credentials', 'code': 'authentication_failed'},
                            status=status.HTTP_401_UNAUTHORIZED)

        refresh = RefreshToken.for_user(user)
        access_token = str(refresh.access_token)

        response = Response({
            'message': 'Login successful',
            'user': FestUserSerializer(user).data,
            'access': access_token,
        }, status=status.HTTP_200_OK)
        response.set_cookie('access_token', access_token, **_cookie_options(_access_max_age()))
        response.set_cookie('refresh_token', str(refresh), **_cookie_options(_refresh_max_age()))
        return response


@method_decorator(csrf_exempt, name='dispatch')
class SecureTokenRefreshView(APIView):
    """
    Reads the refresh token cookie and sets a fresh access token cookie.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        refresh_token = request.COOKIES.get('refresh_token') or request.data.get('refresh')
        if not refresh_token:
            return Response({'message': 'Refresh token not found', 'code': 'not_authenticated'},
                            status=status.HTTP_401_UNAUTHORIZED)

        try:
            refresh = RefreshToken(refresh_token)
        except TokenError:
            return Response({'message': 'Invalid or expired refresh token', 'code': 'token_not_valid'},
                            status=status.HTTP_401_UNAUTHORIZED)

        access_token = str(refresh.access_token)
        response = Response({'message': 'Token refreshed successfully', 'access': access_token},
                            status=status.HTTP_200_OK)
        response.set_cookie('access_token', access_token, **_cookie_options(_access_max_age()))

        if settings.SIMPLE_JWT.get('ROTATE_REFRESH_TOKENS', False):
            refresh.set_jti()
            refresh.set_exp()
            response.set_cookie('refresh_token', str(refresh), **_cookie_options(_refresh_max_age()))

        return response


@method_decorator(csrf_exempt, name='dispatch')
class SecureLogoutView(APIView):
    """
    Clears the auth cookies. AllowAny so an expired session can still log out.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        response = Response({'message': 'Logout successful'}, status=status.HTTP_200_OK)
        options = _cookie_options(0)
        options['expires'] = 'Thu, 01 Jan 1970 00:00:00 GMT'
        response.set_cookie('access_token', '', **options)
        response.set_cookie('refresh_token', '', **options)
        return response


class CurrentUserView(APIView):
    """
    Current authenticated account with its profile.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'user': FestUserSerializer(request.user).data}, status=status.HTTP_200_OK)
