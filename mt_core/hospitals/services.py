# backend/mt_core/hospitals/services.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from django.db import DatabaseError
from django.utils.timezone import now
from rest_framework.exceptions import APIException, ValidationError

from mt_core.common.api.exceptions import AuthorizationError, ConflictError, TransientServiceError
from mt_core.common.backend import Backend
from mt_core.hospitals.selectors import (
    HospitalAvailability,
    list_hospitals_with_availability,
    own_hospital,
    own_hospital_id,
)
from mt_core.iam.actors import Actor, HospitalAdmin, Patient, SuperAdmin

logger = logging.getLogger(__name__)


class UpdateState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AUTHORIZING = "authorizing"
    WRITING = "writing"
    REFRESHING = "refreshing"
    ERROR = "error"


@dataclass(frozen=True)
class UpdateOutcome:
    hospital_id: int
    availability: dict[str, Any]
    hospitals: list[HospitalAvailability]
    own_hospital: Optional[HospitalAvailability]
    message: str = "Availability updated."
    # Set when the write was saved but the follow-up re-read failed.
    refresh_error: Optional[str] = None


# Upper bound of the PositiveIntegerField columns the counts are stored in.
MAX_COUNT = 2147483647


def parse_count(value: Any) -> int:
    """
    Parse a bed/oxygen count. Raises ValueError with a user-facing message.

    Accepts ints, integral floats and digit strings up to MAX_COUNT; rejects bools.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError("This field is required.")
    if isinstance(value, bool):
        raise ValueError("A whole number is required.")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError("A whole number is required.")
        parsed = int(value)
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            raise ValueError("A whole number is required.") from None
    else:
        raise ValueError("A whole number is required.")

    if parsed < 0:
        raise ValueError("Must be zero or greater.")
    if parsed > MAX_COUNT:
        raise ValueError(f"Must be at most {MAX_COUNT}.")
    return parsed


def _parse_hospital_id(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError({"hospital_id": ["A valid hospital id is required."]})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({"hospital_id": ["A valid hospital id is required."]}) from None


# Identities with a submission currently being written, across all updater instances.
_in_flight_lock = threading.Lock()
_in_flight_identities: set[int] = set()


class AvailabilityUpdater:
    """
    Role-gated update-or-insert of one hospital's availability snapshot.

    States: idle -> validating -> authorizing -> writing -> refreshing -> idle,
    or error from any step. The entered beds/oxygen (the draft) are kept on
    failure and cleared only after a successful write.

    Known limitations (not detected):
    - Lost update: two admins writing the same hospital overwrite each other;
      the last statement to run wins and neither sees the other's value.
    - First write race: `update` then `insert` is two statements. Two concurrent
      first-time writers can both see zero rows updated; the loser's insert is
      rejected by the hospital_id primary key and surfaces as a service error.
      Nothing retries it.
    """

    def __init__(self, backend: Backend):
        self.backend = backend
        self.state = UpdateState.IDLE
        self.draft: dict[str, Any] = {}
        self.error: Optional[str] = None
        self.in_flight = False

    # -------------------------
    # Steps
    # -------------------------
    def _validate(self, beds: Any, oxygen: Any) -> tuple[int, int]:
        self.state = UpdateState.VALIDATING
        errors: dict[str, list[str]] = {}
        parsed: dict[str, int] = {}
        for field, value in (("beds", beds), ("oxygen", oxygen)):
            try:
                parsed[field] = parse_count(value)
            except ValueError as exc:
                errors[field] = [str(exc)]
        if errors:
            raise ValidationError(errors)
        return parsed["beds"], parsed["oxygen"]

    def _authorize(self, actor: Actor, selected_hospital_id: Any) -> int:
        self.state = UpdateState.AUTHORIZING

        if isinstance(actor, Patient):
            raise AuthorizationError("Patients cannot update hospital availability.")

        if isinstance(actor, HospitalAdmin):
            # Any submitted hospital id is ignored; admins only write their own hospital.
            target = own_hospital_id(self.backend, actor)
            if target is None:
                raise AuthorizationError("Your account is not linked to a hospital.")
            return target

        if isinstance(actor, SuperAdmin):
            target = _parse_hospital_id(selected_hospital_id)
            if target is None:
                raise AuthorizationError("Select a hospital to update.")
            try:
                exists = self.backend.hospitals.exists(target)
            except DatabaseError as exc:
                raise TransientServiceError(str(exc)) from exc
            if not exists:
                raise ValidationError({"hospital_id": [f"Hospital {target} does not exist."]})
            return target

        raise AuthorizationError(f"Unsupported actor {actor!r}.")

    def _write(self, *, actor: Actor, hospital_id: int, beds: int, oxygen: int) -> dict[str, Any]:
        self.state = UpdateState.WRITING
        values = {
            "hospital_id": hospital_id,
            "available_beds": beds,
            "available_oxygen": oxygen,
            "last_updated": now(),
            "updated_by_id": actor.identity_id,
        }
        try:
            affected = self.backend.availability.update(**values)
            if affected == 0:
                logger.info("No availability row for hospital %s yet, inserting", hospital_id)
                return self.backend.availability.insert(**values)
        except DatabaseError as exc:
            # IntegrityError is a DatabaseError: a concurrent first insert lost the race.
            raise TransientServiceError(str(exc)) from exc
        return values

    def _refresh(self, actor: Actor) -> tuple[list[HospitalAvailability], Optional[HospitalAvailability]]:
        self.state = UpdateState.REFRESHING
        hospitals = list_hospitals_with_availability(self.backend)
        mine = own_hospital(self.backend, actor) if isinstance(actor, HospitalAdmin) else None
        return hospitals, mine

    # -------------------------
    # Entry point
    # -------------------------
    def submit(self, *, actor: Actor, beds: Any, oxygen: Any, hospital_id: Any = None) -> UpdateOutcome:
        """
        Validate, authorize, write, then re-read. Raises ValidationError,
        AuthorizationError, TransientServiceError or ConflictError; every
        raised error carries `submitted` with the values entered.

        Once the write is saved the submission succeeds: a failed re-read is
        reported on the outcome as `refresh_error` with no fresh data.
        """
        self.draft = {"beds": beds, "oxygen": oxygen, "hospital_id": hospital_id}

        with _in_flight_lock:
            if self.in_flight or actor.identity_id in _in_flight_identities:
                exc = ConflictError("An availability update is already in progress.", code="submission_in_flight")
                exc.submitted = dict(self.draft)
                raise exc
            self.in_flight = True
            _in_flight_identities.add(actor.identity_id)

        self.error = None
        refresh_error = None
        try:
            try:
                parsed_beds, parsed_oxygen = self._validate(beds, oxygen)
                target = self._authorize(actor, hospital_id)
                row = self._write(actor=actor, hospital_id=target, beds=parsed_beds, oxygen=parsed_oxygen)
            except APIException as exc:
                self.state = UpdateState.ERROR
                self.error = str(exc.detail)
                exc.submitted = dict(self.draft)
                logger.warning("Availability update by identity %s failed: %s", actor.identity_id, self.error)
                raise

            logger.info(
                "Availability for hospital %s set to beds=%s oxygen=%s by identity %s",
                target,
                parsed_beds,
                parsed_oxygen,
                actor.identity_id,
            )
            self.draft = {}

            try:
                hospitals, mine = self._refresh(actor)
            except APIException as exc:
                refresh_error = str(exc.detail)
                hospitals, mine = [], None
                logger.warning("Availability for hospital %s saved but re-read failed: %s", target, refresh_error)
        finally:
            with _in_flight_lock:
                self.in_flight = False
                _in_flight_identities.discard(actor.identity_id)

        self.state = UpdateState.IDLE
        return UpdateOutcome(
            hospital_id=target,
            availability=row,
            hospitals=hospitals,
            own_hospital=mine,
            refresh_error=refresh_error,
        )
