# backend/mt_core/hospitals/selectors.py
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from django.db import DatabaseError
from rest_framework.exceptions import NotFound

from mt_core.common.api.exceptions import TransientServiceError
from mt_core.common.backend import Backend
from mt_core.common.configuration import medtracker_setting
from mt_core.iam.actors import Actor, HospitalAdmin

logger = logging.getLogger(__name__)

STATUS_GOOD = "good"
STATUS_MODERATE = "moderate"
STATUS_LOW = "low"


def availability_status(count: int) -> str:
    good = medtracker_setting("STATUS_GOOD_THRESHOLD", 20)
    moderate = medtracker_setting("STATUS_MODERATE_THRESHOLD", 10)
    if count >= good:
        return STATUS_GOOD
    if count >= moderate:
        return STATUS_MODERATE
    return STATUS_LOW


@dataclass(frozen=True)
class AvailabilityView:
    beds: int = 0
    oxygen: int = 0
    last_updated: Optional[datetime] = None  # None means "never"
    updated_by_id: Optional[int] = None

    @property
    def beds_status(self) -> str:
        return availability_status(self.beds)

    @property
    def oxygen_status(self) -> str:
        return availability_status(self.oxygen)


NO_AVAILABILITY = AvailabilityView()


@dataclass(frozen=True)
class HospitalAvailability:
    id: int
    name: str
    address: str
    phone_number: str
    latitude: Optional[float]
    longitude: Optional[float]
    admin_id: Optional[int]
    availability: AvailabilityView
    has_availability: bool


def normalize_availability(raw: Any) -> Optional[Mapping[str, Any]]:
    """
    Joined availability can come back absent, as a single object, or as a
    list holding that object. Collapse all three into one optional mapping.
    """
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        return raw[0] if len(raw) else None
    raise TypeError(f"Unexpected availability shape: {type(raw).__name__}")


def availability_view(raw: Any) -> AvailabilityView:
    row = normalize_availability(raw)
    if row is None:
        return NO_AVAILABILITY
    return AvailabilityView(
        beds=int(row.get("available_beds") or 0),
        oxygen=int(row.get("available_oxygen") or 0),
        last_updated=row.get("last_updated"),
        updated_by_id=row.get("updated_by_id"),
    )


def _hospital_availability(row: Mapping[str, Any]) -> HospitalAvailability:
    raw = row.get("availability")
    return HospitalAvailability(
        id=row["id"],
        name=row.get("name") or "",
        address=row.get("address") or "",
        phone_number=row.get("phone_number") or "",
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        admin_id=row.get("admin_id"),
        availability=availability_view(raw),
        has_availability=normalize_availability(raw) is not None,
    )


def _join_in_process(hospitals: list[dict[str, Any]], availability: list[dict[str, Any]]) -> list[dict[str, Any]]:
    by_hospital = {row["hospital_id"]: row for row in availability}
    return [{**h, "availability": by_hospital.get(h["id"])} for h in hospitals]


def list_hospitals_with_availability(backend: Backend) -> list[HospitalAvailability]:
    """
    Every hospital with its latest availability, ordered by name ascending.

    Falls back to two independent reads joined in-process when the joined fetch fails.
    """
    try:
        rows = backend.hospitals.fetch_joined()
    except DatabaseError as exc:
        logger.warning("Joined hospital/availability fetch failed, falling back to two reads: %s", exc)
        try:
            rows = _join_in_process(backend.hospitals.fetch_all(), backend.availability.fetch_all())
        except DatabaseError as fallback_exc:
            raise TransientServiceError(str(fallback_exc)) from fallback_exc

    items = [_hospital_availability(row) for row in rows]
    items.sort(key=lambda h: (h.name, h.id))
    return items


def hospital_with_availability(backend: Backend, hospital_id: int) -> HospitalAvailability:
    try:
        row = backend.hospitals.fetch_joined_one(hospital_id)
    except DatabaseError as exc:
        logger.warning("Joined fetch for hospital %s failed, falling back to two reads: %s", hospital_id, exc)
        try:
            row = backend.hospitals.fetch_one(hospital_id)
            if row is not None:
                row = {**row, "availability": backend.availability.fetch_for(hospital_id)}
        except DatabaseError as fallback_exc:
            raise TransientServiceError(str(fallback_exc)) from fallback_exc

    if row is None:
        raise NotFound("Hospital not found.")
    return _hospital_availability(row)


def own_hospital_id(backend: Backend, actor: Actor) -> Optional[int]:
    """
    The hospital a hospital admin manages: the profile link first, then the
    hospital whose admin back-reference is this identity.
    """
    if not isinstance(actor, HospitalAdmin):
        return None
    if actor.hospital_id is not None:
        return actor.hospital_id
    try:
        row = backend.hospitals.owned_by(actor.identity_id)
    except DatabaseError as exc:
        raise TransientServiceError(str(exc)) from exc
    return row["id"] if row else None


def own_hospital(backend: Backend, actor: Actor) -> Optional[HospitalAvailability]:
    hospital_id = own_hospital_id(backend, actor)
    if hospital_id is None:
        return None
    return hospital_with_availability(backend, hospital_id)
