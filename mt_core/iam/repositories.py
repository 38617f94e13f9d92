# backend/mt_core/iam/repositories.py
from __future__ import annotations

from typing import Any, Optional

from django.utils import timezone

from mt_core.iam.models import Profile


class ProfileRepository:
    """
    Row-level access to `iam_profile`, keyed by identity (user) id.
    Database errors propagate to the caller.
    """

    def fetch(self, identity_id: int) -> Optional[Profile]:
        return Profile.objects.select_related("user", "hospital").filter(user_id=identity_id).first()

    def update(self, identity_id: int, fields: dict[str, Any]) -> int:
        """Partial update; returns rows affected."""
        if not fields:
            return 0
        return Profile.objects.filter(user_id=identity_id).update(**fields, updated_at=timezone.now())

    def create(self, *, identity_id: int, **fields: Any) -> Profile:
        return Profile.objects.create(user_id=identity_id, **fields)
