# backend/mt_core/iam/services/profiles.py
from __future__ import annotations

import logging
from typing import Any

from django.db import DatabaseError
from rest_framework.exceptions import ValidationError

from mt_core.common.api.exceptions import ProfileNotFound, TransientServiceError
from mt_core.common.backend import Backend
from mt_core.iam.actors import Actor, actor_for_profile
from mt_core.iam.models import Profile, Role, Sex

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"name", "age", "sex", "phone_number", "address", "avatar_url", "hospital_name"})

# Set once by provisioning; never through a profile edit.
PROVISIONING_FIELDS = frozenset({"role", "hospital", "hospital_id"})


class ProfileService:
    """
    Reads and edits the single profile row keyed by identity id.

    Notes:
    - A missing profile is an error (ProfileNotFound); nothing is synthesized in its place.
    - hospital_name is editable by patients/admins only; for hospital admins it mirrors
      the hospital and is repaired by backfill_hospital_name.
    """

    def __init__(self, backend: Backend):
        self.backend = backend

    def fetch(self, identity_id: int) -> Profile:
        try:
            profile = self.backend.profiles.fetch(identity_id)
        except DatabaseError as exc:
            raise TransientServiceError(str(exc)) from exc
        if profile is None:
            raise ProfileNotFound()
        return profile

    def actor_for(self, identity_id: int) -> Actor:
        return actor_for_profile(self.fetch(identity_id))

    # -------------------------
    # Update
    # -------------------------
    def _clean(self, profile: Profile, fields: dict[str, Any]) -> dict[str, Any]:
        errors: dict[str, list[str]] = {}
        cleaned: dict[str, Any] = {}

        for key, value in fields.items():
            if key in PROVISIONING_FIELDS:
                errors[key] = ["This field cannot be changed."]
                continue
            if key not in EDITABLE_FIELDS:
                errors[key] = ["Unknown field."]
                continue
            if key == "hospital_name" and profile.role == Role.HOSPITAL_ADMIN:
                errors[key] = ["Hospital admins cannot edit the hospital name."]
                continue

            if key == "age":
                if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
                    errors[key] = ["A whole number is required."]
                    continue
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    errors[key] = ["A whole number is required."]
                    continue
                if value < 0:
                    errors[key] = ["Must be zero or greater."]
                    continue
            elif key == "sex":
                if value not in Sex.values:
                    errors[key] = [f"Must be one of: {', '.join(Sex.values)}."]
                    continue
            else:
                value = "" if value is None else str(value)

            cleaned[key] = value

        if errors:
            raise ValidationError(errors)
        return cleaned

    def update(self, identity_id: int, fields: dict[str, Any]) -> Profile:
        """Partial update of the editable subset. Returns the refreshed profile."""
        profile = self.fetch(identity_id)
        cleaned = self._clean(profile, fields)
        if not cleaned:
            return profile

        try:
            self.backend.profiles.update(identity_id, cleaned)
        except DatabaseError as exc:
            raise TransientServiceError(str(exc)) from exc

        logger.info("Profile %s updated: %s", identity_id, sorted(cleaned))
        return self.fetch(identity_id)

    # -------------------------
    # Denormalized hospital_name repair
    # -------------------------
    def backfill_hospital_name(self, profile: Profile) -> Profile:
        """
        Best effort: a hospital admin without hospital_name gets the name of the
        hospital they administer written back. Failures are logged, not raised.
        """
        if profile.role != Role.HOSPITAL_ADMIN or profile.hospital_name:
            return profile

        try:
            row = self.backend.hospitals.owned_by(profile.pk)
            if row is None and profile.hospital_id is not None:
                row = self.backend.hospitals.fetch_one(profile.hospital_id)
            if row is None or not row.get("name"):
                return profile
            self.backend.profiles.update(profile.pk, {"hospital_name": row["name"]})
        except DatabaseError as exc:
            logger.warning("Could not backfill hospital_name for profile %s: %s", profile.pk, exc)
            return profile

        profile.hospital_name = row["name"]
        return profile
