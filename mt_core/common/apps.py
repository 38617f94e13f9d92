# backend/mt_core/common/apps.py
import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class CommonConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "mt_core.common"
    label = "common"

    backend = None
    configuration_error = None

    def ready(self) -> None:
        # import here so app loading doesn’t break tooling
        from mt_core.common import configuration  # noqa: F401  (registers system check)
        from mt_core.common.api.exceptions import ConfigurationError
        from mt_core.common.backend import build_backend

        try:
            self.backend = build_backend()
            self.configuration_error = None
        except ConfigurationError as exc:
            self.backend = None
            self.configuration_error = exc
            logger.error("MedTracker is not configured; missing: %s", ", ".join(exc.missing))
