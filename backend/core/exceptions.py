"""
Domain exceptions for the project portfolio backend.

Every error response has the same envelope:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable description",
        "details": {}
    }
}
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base exception for all domain errors."""

    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, code, message, details=None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DomainError):
    """Payload, parameters or field values are invalid."""

    def __init__(self, message, details=None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(DomainError):
    """Requested resource does not exist (or is soft-deleted)."""

    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, message, details=None):
        super().__init__("NOT_FOUND", message, details)


class PermissionDeniedError(DomainError):
    """Authenticated user's role does not allow the operation."""

    http_status = status.HTTP_403_FORBIDDEN

    def __init__(self, message, details=None):
        super().__init__("FORBIDDEN", message, details)


class ConflictError(DomainError):
    """A uniqueness rule was violated by the write."""

    http_status = status.HTTP_409_CONFLICT

    def __init__(self, message, details=None, code="CONFLICT"):
        super().__init__(code, message, details)


class DuplicateProjectCodeError(ConflictError):
    """
    The computed project code was taken between the read and the insert.

    Recoverable: the caller recomputes the code and inserts again, or asks
    the user to retry.
    """

    def __init__(self, project_code):
        self.project_code = project_code
        super().__init__(
            f"Project code {project_code} already exists, please retry",
            {"projectCode": project_code},
            code="DUPLICATE_PROJECT_CODE",
        )


def _error_body(code, message, details=None):
    return {"error": {"code": code, "message": message, "details": details or {}}}


def domain_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER.

    DomainError subclasses carry their own status. DRF exceptions keep theirs,
    with ``detail`` errors keyed by their upper-cased code and field errors
    reported as VALIDATION_ERROR. Anything else is logged and returned as 500.
    """
    if isinstance(exc, DomainError):
        return Response(
            _error_body(exc.code, exc.message, exc.details), status=exc.http_status
        )

    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(response.data, dict) and "detail" in response.data:
            detail = response.data["detail"]
            code = getattr(detail, "code", None)
            response.data = _error_body(
                str(code).upper() if code else "INTERNAL_ERROR", str(detail)
            )
        else:
            response.data = _error_body(
                "VALIDATION_ERROR", "Request validation failed", response.data
            )
        return response

    view = context.get("view")
    logger.exception(
        "unhandled_exception",
        exc_info=exc,
        extra={"view": type(view).__name__ if view else None},
    )
    return Response(
        _error_body("INTERNAL_ERROR", "An internal error occurred"),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
