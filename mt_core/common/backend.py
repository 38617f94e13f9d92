# backend/mt_core/common/backend.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.apps import apps
from django.core.files.storage import Storage, default_storage

from mt_core.common.api.exceptions import ConfigurationError
from mt_core.common.configuration import missing_settings

if TYPE_CHECKING:
    from mt_core.hospitals.repositories import AvailabilityRepository, HospitalRepository
    from mt_core.iam.repositories import ProfileRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Backend:
    """
    Handle on everything the application reads from or writes to:
    profile rows, hospital rows, availability rows and avatar storage.

    Built once at startup (CommonConfig.ready) and handed to services and
    selectors explicitly. Tests construct their own with fake repositories.
    """

    profiles: "ProfileRepository"
    hospitals: "HospitalRepository"
    availability: "AvailabilityRepository"
    storage: Storage


def build_backend(*, storage: Storage | None = None) -> Backend:
    """
    Raises ConfigurationError when identity/storage credentials are absent.
    """
    missing = missing_settings()
    if missing:
        raise ConfigurationError(missing=missing)

    from mt_core.hospitals.repositories import AvailabilityRepository, HospitalRepository
    from mt_core.iam.repositories import ProfileRepository

    return Backend(
        profiles=ProfileRepository(),
        hospitals=HospitalRepository(),
        availability=AvailabilityRepository(),
        storage=storage or default_storage,
    )


def get_backend() -> Backend:
    """
    Returns the backend built at startup.
    Raises ConfigurationError (503) if startup found credentials missing.
    """
    config = apps.get_app_config("common")
    backend = getattr(config, "backend", None)
    if backend is None:
        error = getattr(config, "configuration_error", None)
        raise error or ConfigurationError()
    return backend
