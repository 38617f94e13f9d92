# backend/mt_core/iam/session.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from rest_framework.exceptions import APIException

from mt_core.common.api.exceptions import ProfileNotFound, TransientServiceError
from mt_core.common.backend import Backend
from mt_core.iam.models import Profile
from mt_core.iam.services.profiles import ProfileService

logger = logging.getLogger(__name__)

ROOT_REDIRECT = "/"


class SessionEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class SessionError:
    code: str
    message: str


class SessionResolver:
    """
    Holds {user, profile, loading, error} for one client session.

    Every session change bumps `generation`. A profile fetch captures the
    generation when it starts and its result is applied only if no change
    happened in between; otherwise it is dropped. close() bumps it too, so
    nothing lands after teardown.

    is_authenticated requires both a user and a profile.
    """

    def __init__(self, backend: Backend):
        self.profiles = ProfileService(backend)
        self.user: Any = None
        self.profile: Optional[Profile] = None
        self.loading = True
        self.error: Optional[SessionError] = None
        self.generation = 0
        self.closed = False
        self._lock = threading.Lock()

    # -------------------------
    # Generation guard
    # -------------------------
    def _bump(self) -> int:
        with self._lock:
            self.generation += 1
            return self.generation

    def begin(self) -> int:
        """Mark a fetch as started; returns the generation it belongs to."""
        with self._lock:
            self.loading = True
            return self.generation

    def apply(
        self,
        generation: int,
        *,
        user: Any,
        profile: Optional[Profile],
        error: Optional[SessionError] = None,
    ) -> bool:
        """Apply a fetch result. Returns False (and changes nothing) when it is stale."""
        with self._lock:
            if self.closed or generation != self.generation:
                logger.debug(
                    "Discarding stale session result (generation %s, current %s)", generation, self.generation
                )
                return False
            self.user = user
            self.profile = profile
            self.error = error
            self.loading = False
            return True

    # -------------------------
    # Resolution
    # -------------------------
    def _fetch_profile(self, user: Any) -> tuple[Optional[Profile], Optional[SessionError]]:
        try:
            profile = self.profiles.fetch(user.pk)
        except ProfileNotFound as exc:
            return None, SessionError(code="profile_not_found", message=str(exc.detail))
        except TransientServiceError as exc:
            return None, SessionError(code="service_error", message=str(exc.detail))
        return self.profiles.backfill_hospital_name(profile), None

    def resolve(self, user: Any) -> bool:
        """Resolve the current user (None or anonymous means signed out)."""
        generation = self.begin()
        if user is None or not getattr(user, "is_authenticated", False):
            return self.apply(generation, user=None, profile=None)
        profile, error = self._fetch_profile(user)
        return self.apply(generation, user=user, profile=profile, error=error)

    def handle_event(self, event: SessionEvent | str, user: Any = None) -> bool:
        event = SessionEvent(event)
        generation = self._bump()
        if event == SessionEvent.SIGNED_OUT:
            return self.apply(generation, user=None, profile=None)
        return self.resolve(user)

    # -------------------------
    # Sign-out / teardown
    # -------------------------
    def sign_out(self, provider_sign_out: Callable[[], Any]) -> str:
        """
        Runs the provider sign-out. On success clears state and returns the
        redirect target (full navigation to the application root).
        """
        self.loading = True
        try:
            provider_sign_out()
        except APIException as exc:
            self._record_sign_out_failure(str(exc.detail))
            raise TransientServiceError(str(exc.detail)) from exc
        except Exception as exc:
            self._record_sign_out_failure(str(exc))
            raise TransientServiceError(str(exc)) from exc

        self.handle_event(SessionEvent.SIGNED_OUT)
        return ROOT_REDIRECT

    def _record_sign_out_failure(self, message: str) -> None:
        logger.warning("Sign-out failed: %s", message)
        with self._lock:
            self.error = SessionError(code="service_error", message=message)
            self.loading = False

    def close(self) -> None:
        with self._lock:
            self.closed = True
            self.generation += 1

    # -------------------------
    # Views
    # -------------------------
    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.profile is not None

    def snapshot(self) -> dict[str, Any]:
        user = self.user
        return {
            "user": (
                {"id": user.pk, "username": getattr(user, "username", None), "email": getattr(user, "email", None)}
                if user is not None
                else None
            ),
            "profile": self.profile,
            "loading": self.loading,
            "is_authenticated": self.is_authenticated,
            "error": {"code": self.error.code, "message": self.error.message} if self.error else None,
        }
