"""
API error types and the REST framework exception handler.

Validation, not-found and permission errors use REST framework's own
exception classes. The classes here cover business-rule conflicts and the
payment gateway.
"""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """A request that is well formed but breaks a marketplace rule."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'This request conflicts with the current state of the resource.'
    default_code = 'conflict'


class InsufficientStock(Conflict):
    default_detail = 'Insufficient stock for this product.'
    default_code = 'insufficient_stock'


class DuplicateBargain(Conflict):
    default_detail = 'You already have an active bargain for this product.'
    default_code = 'duplicate_bargain'


class GatewayError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to create payment order.'
    default_code = 'gateway_error'


class PaymentVerificationFailed(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Payment verification failed.'
    default_code = 'payment_verification_failed'


def _get_code(exc):
    codes = exc.get_codes() if isinstance(exc, APIException) else None
    if isinstance(codes, str):
        return codes
    return getattr(exc, 'default_code', 'error')


def api_exception_handler(exc, context):
    """
    Render every error as JSON.

    - REST framework exceptions keep their status and get a ``code`` key when
      the body is a single ``detail`` message
    - Django model ``ValidationError`` (raised from ``full_clean``) becomes a
      400 with field-level messages
    - anything else is logged and reported as a 500; the message is only
      exposed when DEBUG is on
    """
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'message_dict'):
            exc = ValidationError(detail=exc.message_dict)
        else:
            exc = ValidationError(detail=exc.messages)

    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(response.data, dict) and set(response.data.keys()) == {'detail'}:
            response.data['code'] = _get_code(exc)
        return response

    view = context.get('view')
    logger.exception(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
    )

    data = {
        'detail': 'An unexpected error occurred. Please try again.',
        'code': 'server_error',
    }
    if settings.DEBUG:
        data['error'] = str(exc)

    return Response(data, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
