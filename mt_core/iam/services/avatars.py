# backend/mt_core/iam/services/avatars.py
from __future__ import annotations

import logging
import os

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from mt_core.common.api.exceptions import TransientServiceError
from mt_core.common.backend import Backend
from mt_core.common.configuration import medtracker_setting

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024


class AvatarService:
    """
    Stores profile pictures and hands back their public URL.

    Only type and size are checked; the file is stored as uploaded.
    The caller writes the returned URL into the profile (avatar_url).
    """

    def __init__(self, backend: Backend):
        self.backend = backend

    @staticmethod
    def validate(upload) -> None:
        content_type = getattr(upload, "content_type", "") or ""
        if not content_type.startswith("image/"):
            raise ValidationError({"file": ["Please upload an image file."]})

        max_bytes = medtracker_setting("AVATAR_MAX_BYTES", DEFAULT_MAX_BYTES)
        if upload.size > max_bytes:
            raise ValidationError({"file": [f"Image must be at most {max_bytes // (1024 * 1024)} MB."]})

    @staticmethod
    def path_for(identity_id: int, filename: str) -> str:
        prefix = medtracker_setting("AVATAR_PREFIX", "avatars").strip("/")
        ext = os.path.splitext(filename or "")[1].lstrip(".").lower() or "bin"
        stamp = int(timezone.now().timestamp() * 1000)
        return f"{prefix}/{identity_id}-{stamp}.{ext}"

    def upload(self, identity_id: int, upload) -> str:
        self.validate(upload)
        path = self.path_for(identity_id, getattr(upload, "name", ""))

        storage = self.backend.storage
        try:
            saved = storage.save(path, upload)
            url = storage.url(saved)
        except OSError as exc:
            raise TransientServiceError(str(exc)) from exc

        logger.info("Stored avatar for identity %s at %s", identity_id, saved)
        return url
