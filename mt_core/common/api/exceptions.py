#base/backend/mt_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Safe to call from middleware and DRF exception handler.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope for MedTracker.
    Reusable from Django middleware (JsonResponse) and DRF (Response).
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": rid,
        }
    }


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Used when a second availability submission arrives while one is in flight.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class ConfigurationError(APIException):
    """
    Identity or storage credentials are missing. Every API flow refuses to run.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "MedTracker is not configured. Set the identity and storage credentials and restart."
    default_code = "configuration_error"

    def __init__(self, detail=None, *, missing: list[str] | None = None):
        super().__init__(detail=detail or self.default_detail, code=self.default_code)
        self.missing = list(missing or [])


class AuthorizationError(PermissionDenied):
    """
    Role/target mismatch on a write. Raised before any write reaches the database.
    """
    default_detail = "You are not allowed to update availability for this hospital."
    default_code = "permission_denied"


class TransientServiceError(APIException):
    """
    Any failure returned by the database, token store or object storage.
    The underlying message is surfaced verbatim; nothing retries it.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The data service failed to complete the request."
    default_code = "service_error"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class ProfileNotFound(NotFound):
    default_detail = "No profile exists for this account. Sign-up provisioning did not complete."
    default_code = "profile_not_found"


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, APIException):
        # Per-instance code (e.g. submission_in_flight) wins over the class default.
        codes = exc.get_codes()
        if isinstance(codes, str) and codes:
            return codes
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        logger.exception("Unhandled error while serving %s", getattr(request, "path", "?"), exc_info=exc)
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                details=None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)

    # DRF standardizes errors into response.data
    data = response.data

    # Message + details rules:
    # 1) If {"detail": "..."} only -> message=detail, details=None
    # 2) If {"detail": "...", ...} -> message=detail, details={...without detail}
    # 3) Otherwise -> message="Request failed.", details=data
    message = "Request failed."
    details = data

    if isinstance(data, dict) and "detail" in data:
        message = str(data.get("detail"))
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None

    # Write-path failures carry the values the operator entered so the form is not lost.
    extra = getattr(exc, "submitted", None)
    if extra is not None:
        if not isinstance(details, dict):
            details = {"errors": details} if details is not None else {}
        details = {**details, "submitted": extra}

    if isinstance(exc, ConfigurationError) and exc.missing:
        details = {"missing": exc.missing}

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
