"""
Project-wide DRF exception handler.

Every error leaves the API as ``{"message": ..., "code": ...}`` (validation
errors keep their field map under ``errors``). 401 responses lose their
WWW-Authenticate header so browsers still see the CORS headers. Anything DRF
does not know about is logged with its traceback and turned into a generic 500.
"""

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = 'Something went wrong while processing the request. Please try again.'


def _flatten_message(detail):
    if isinstance(detail, list):
        return _flatten_message(detail[0]) if detail else ''
    if isinstance(detail, dict):
        for key, value in detail.items():
            text = _flatten_message(value)
            if key in ('detail', 'non_field_errors'):
                return text
            return f'{key}: {text}'
        return ''
    return str(detail)


def custom_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(
            "Unhandled error in %s: %s",
            view.__class__.__name__ if view else 'unknown view', exc,
        )
        return Response(
            {'message': GENERIC_SERVER_ERROR, 'code': 'server_error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if response.status_code == 401:
        response.pop('WWW-Authenticate', None)

    if isinstance(exc, Http404):
        code = 'not_found'
    elif isinstance(exc, DjangoPermissionDenied):
        code = 'permission_denied'
    else:
        code = getattr(exc, 'default_code', 'error')
        codes = exc.get_codes() if hasattr(exc, 'get_codes') else None
        if isinstance(codes, str):
            code = codes

    data = response.data
    body = {'message': _flatten_message(data), 'code': code}
    if isinstance(data, dict) and not set(data) <= {'detail'}:
        body['errors'] = data
    elif isinstance(data, list):
        body['errors'] = data
    response.data = body
    return response
