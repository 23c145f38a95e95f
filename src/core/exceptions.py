"""Service-layer error taxonomy and the DRF exception handler that renders it.

Services raise the exceptions below with plain messages; the API layer never
builds error payloads by hand. Every error response has the same envelope::

    {"success": false, "error": {"message": "...", "code": "..."}}
"""
import logging

from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.settings import api_settings
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger("salesdash")


class ServiceError(Exception):
    """Base class of every error raised on purpose by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    default_message = "Request could not be processed"

    def __init__(self, message=None, *, code=None, details=None):
        self.message = message or self.default_message
        self.details = details
        if code:
            self.code = code
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Client supplied an invalid value; never retried."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    default_message = "Validation failed"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource conflict"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class InfrastructureError(ServiceError):
    """The store or the enclosing transaction failed; no partial result exists."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"


class QueryError(InfrastructureError):
    default_message = "Failed to execute query"


def _error_response(message, code, status_code, details=None):
    body = {"success": False, "error": {"message": message, "code": code}}
    if details is not None:
        body["error"]["details"] = details
    return Response(body, status=status_code)


def _first_message(detail):
    """Dig the first human readable message out of a DRF error detail."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if key == api_settings.NON_FIELD_ERRORS_KEY:
                return message
            return f"{key}: {message}"
    if isinstance(detail, (list, tuple)) and detail:
        return _first_message(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """DRF ``EXCEPTION_HANDLER`` producing the ``{success, error}`` envelope."""
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    if isinstance(exc, ServiceError):
        set_rollback()
        if exc.status_code >= 500:
            logger.error(
                "Service failure in %s: %s", view_name, exc.message,
                exc_info=exc.__cause__ or exc,
            )
        return _error_response(exc.message, exc.code, exc.status_code, details=exc.details)

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, drf_exceptions.ValidationError):
            return _error_response(
                _first_message(exc.detail), "BAD_REQUEST", response.status_code,
                details=exc.detail,
            )
        code = getattr(exc, "default_code", "error").upper()
        detail = response.data.get("detail", response.data) if isinstance(response.data, dict) else response.data
        resp = _error_response(str(detail), code, response.status_code)
        for header in ("WWW-Authenticate", "Retry-After"):
            if header in response:
                resp[header] = response[header]
        return resp

    set_rollback()
    logger.exception("Unhandled error in %s", view_name, exc_info=exc)
    return _error_response(
        InfrastructureError.default_message,
        InfrastructureError.code,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
