"""
JWT authentication that reads the access token from the HTTPOnly ``access_token``
cookie and falls back to the ``Authorization: Bearer`` header for API clients
(scanner apps, scripts) that cannot hold cookies.
"""

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, AuthenticationFailed


class JWTCookieAuthentication(JWTAuthentication):
    """
    Cookie first, header second.

    - Returns None when no token is present (anonymous, public endpoints still work)
    - Does not add WWW-Authenticate header (stripped again by the exception handler)
    """

    def authenticate(self, request):
        raw_token = request.COOKIES.get('access_token')

        if raw_token is None:
            header = self.get_header(request)
            if header is None:
                return None
            raw_token = self.get_raw_token(header)
            if raw_token is None:
                return None

        try:
            validated_token = self.get_validated_token(raw_token)
        except (InvalidToken, AuthenticationFailed):
            raise AuthenticationFailed('Invalid or expired token')

        return self.get_user(validated_token), validated_token

    def authenticate_header(self, request):
        return None
