import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BusinessLogicException(Exception):
    """
    Raised when a domain rule is violated (e.g. 'Order already completed').
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "business_error"

    def __init__(self, message, code=None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class InsufficientStock(BusinessLogicException):
    """
    A line item asks for more than its variant can supply.
    `variant_ids` names the variants that fell short.
    """
    status_code = status.HTTP_409_CONFLICT
    default_code = "insufficient_stock"

    def __init__(self, message, variant_ids=()):
        super().__init__(message)
        self.variant_ids = list(variant_ids)


class ServiceUnavailable(BusinessLogicException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "circuit_open"


def custom_exception_handler(exc, context):
    if isinstance(exc, BusinessLogicException):
        return Response(
            {"error": exc.message, "code": exc.code},
            status=exc.status_code,
        )

    # Model-level validation leaking out of a service
    if isinstance(exc, DjangoValidationError):
        return Response(
            {"error": exc.messages, "code": "invalid"},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.error(
            "Unhandled exception in %s: %s",
            type(view).__name__ if view else "unknown view", exc,
            exc_info=True,
        )
        return Response(
            {"error": "Internal Server Error", "code": "server_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
