# backend/mt_core/common/configuration.py
from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.checks import Warning, register

# Values shipped in example env files; treated the same as "unset".
PLACEHOLDER_VALUES = frozenset(
    {
        "",
        "changeme",
        "unsafe-dev-key",
        "your_secret_key_here",
        "your_project_url_here",
        "your_anon_key_here",
    }
)


def _is_missing(value) -> bool:
    if value is None:
        return True
    return str(value).strip() in PLACEHOLDER_VALUES


def missing_settings() -> list[str]:
    """
    Names of the identity/storage settings that are absent.

    Identity: the key that signs access/refresh tokens.
    Storage: where avatar files land and the prefix they are stored under.
    """
    missing: list[str] = []

    jwt_cfg = getattr(settings, "SIMPLE_JWT", {}) or {}
    try:
        signing_key = jwt_cfg.get("SIGNING_KEY") or settings.SECRET_KEY
    except ImproperlyConfigured:
        # Django refuses to hand out an empty SECRET_KEY
        signing_key = None
    if _is_missing(signing_key):
        missing.append("DJANGO_SECRET_KEY")

    if _is_missing(getattr(settings, "MEDIA_ROOT", None)):
        missing.append("MEDTRACKER_MEDIA_ROOT")

    app_cfg = getattr(settings, "MEDTRACKER", {}) or {}
    if _is_missing(app_cfg.get("AVATAR_PREFIX")):
        missing.append("MEDTRACKER_AVATAR_PREFIX")

    return missing


def medtracker_setting(name: str, default=None):
    return (getattr(settings, "MEDTRACKER", {}) or {}).get(name, default)


@register()
def check_credentials(app_configs, **kwargs):
    return [
        Warning(
            f"{name} is not set.",
            hint="Set it in the environment or .env; every API call answers 503 until it is.",
            id="mt_core.W001",
        )
        for name in missing_settings()
    ]
