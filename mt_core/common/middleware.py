from __future__ import annotations

from django.apps import apps
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from mt_core.common.api.exceptions import ConfigurationError, build_error_envelope


class ConfigurationGuardMiddleware(MiddlewareMixin):
    """
    Refuses API requests while identity/storage credentials are missing.

    Behavior:
      - Applies to /api/v1/* and /api/* (alias).
      - Health and docs/schema stay reachable so operators can see what is wrong.
      - Every other API call gets one 503 `configuration_error` envelope listing
        the missing settings, instead of half-working flows.
    """

    ENFORCED_PREFIXES = ("/api/v1/", "/api/")

    PUBLIC_PATH_PREFIXES = (
        "/api/docs/",
        "/api/schema/",
    )

    ALWAYS_ALLOWED_SUFFIXES = (
        "/health/",
    )

    def _starts_with_any(self, path: str, prefixes: tuple[str, ...]) -> bool:
        return any(path.startswith(p) for p in prefixes)

    def _endswith_any(self, path: str, suffixes: tuple[str, ...]) -> bool:
        return any(path.endswith(s) for s in suffixes)

    def process_request(self, request):
        path = getattr(request, "path", "") or ""

        if not self._starts_with_any(path, self.ENFORCED_PREFIXES):
            return None
        if self._starts_with_any(path, self.PUBLIC_PATH_PREFIXES):
            return None
        if self._endswith_any(path, self.ALWAYS_ALLOWED_SUFFIXES):
            return None

        config = apps.get_app_config("common")
        if getattr(config, "backend", None) is not None:
            return None

        error = getattr(config, "configuration_error", None) or ConfigurationError()
        return JsonResponse(
            build_error_envelope(
                request=request,
                code="configuration_error",
                message=str(error.detail),
                details={"missing": error.missing} if error.missing else None,
            ),
            status=error.status_code,
        )
