# worklog_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.db import IntegrityError
from django.http import Http404
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    Throttled,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Honours an incoming X-Request-ID header. Safe to call from middleware
    and the DRF exception handler.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid and request is not None:
        rid = request.META.get("HTTP_X_REQUEST_ID") if hasattr(request, "META") else None
    if not rid:
        rid = uuid.uuid4().hex
    if request is not None:
        setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope. Reusable from Django middleware (JsonResponse)
    and DRF (Response).
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "timestamp": timezone.now().isoformat(),
            "request_id": rid,
        }
    }


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Use when the entity's lifecycle state blocks an action
    (e.g. editing a submitted time entry, deleting a sent batch).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "CONFLICT"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class NotFoundError(NotFound):
    """404 with a domain code such as PROJECT_NOT_FOUND."""
    default_code = "RESOURCE_NOT_FOUND"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or "Resource not found.", code=code or self.default_code)


class UpstreamServiceError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service request failed."
    default_code = "UPSTREAM_ERROR"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


_DEFAULT_CODES: list[tuple[type, str]] = [
    (ValidationError, "VALIDATION_ERROR"),
    (NotAuthenticated, "AUTHENTICATION_REQUIRED"),
    (AuthenticationFailed, "AUTHENTICATION_FAILED"),
    (PermissionDenied, "AUTHORIZATION_DENIED"),
    (DjangoPermissionDenied, "AUTHORIZATION_DENIED"),
    (NotFound, "RESOURCE_NOT_FOUND"),
    (Http404, "RESOURCE_NOT_FOUND"),
    (Throttled, "RATE_LIMIT_EXCEEDED"),
]


def _explicit_code(exc: APIException) -> str | None:
    """
    A code passed at raise time (e.g. code="USER_NOT_FOUND") wins over the
    class default. DRF's own lower-case defaults are ignored.
    """
    if isinstance(exc, ValidationError):
        return None
    codes = exc.get_codes()
    if isinstance(codes, str) and codes.isupper():
        return codes
    return None


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, APIException):
        explicit = _explicit_code(exc)
        if explicit:
            return explicit
    for exc_type, code in _DEFAULT_CODES:
        if isinstance(exc, exc_type):
            return code
    if isinstance(exc, APIException):
        return str(getattr(exc, "default_code", "") or "API_ERROR").upper()
    if http_status >= 500:
        return "INTERNAL_ERROR"
    return "ERROR"


def _translate(exc: Exception) -> Exception:
    """Map ORM exceptions that escape services onto API exceptions."""
    if isinstance(exc, ObjectDoesNotExist):
        return NotFoundError()
    if isinstance(exc, IntegrityError):
        return ConflictError("Resource already exists.", code="DUPLICATE_RESOURCE")
    return exc


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    exc = _translate(exc)
    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        logger.exception(
            "Unhandled API error",
            exc_info=exc,
            extra={"path": getattr(request, "path", None)},
        )
        return Response(
            build_error_envelope(
                request=request,
                code="INTERNAL_ERROR",
                message="Unexpected server error.",
                details=None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)

    # DRF standardizes errors into response.data
    data = response.data

    # 1) {"detail": "..."} -> message=detail, details=None
    # 2) {"detail": "...", ...} -> message=detail, details={...without detail}
    # 3) otherwise (field errors) -> message="Validation failed." / "Request failed.", details=data
    if isinstance(data, dict) and "detail" in data:
        message = str(data.get("detail"))
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None
    elif isinstance(data, list) and len(data) == 1:
        message = str(data[0])
        details = None
    else:
        message = "Validation failed." if code == "VALIDATION_ERROR" else "Request failed."
        details = data

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
