# backend/mt_core/hospitals/repositories.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from django.db import transaction

from mt_core.hospitals.models import Availability, Hospital

HOSPITAL_FIELDS = ("id", "name", "address", "phone_number", "latitude", "longitude", "admin_id")
AVAILABILITY_FIELDS = ("hospital_id", "available_beds", "available_oxygen", "last_updated", "updated_by_id")


def _availability_row(obj: Availability) -> dict[str, Any]:
    return {field: getattr(obj, field) for field in AVAILABILITY_FIELDS}


def _hospital_row(obj: Hospital, *, joined: bool = False) -> dict[str, Any]:
    row = {field: getattr(obj, field) for field in HOSPITAL_FIELDS}
    if joined:
        # Reverse one-to-one raises (an AttributeError subclass) when no row exists yet.
        availability = getattr(obj, "availability", None)
        row["availability"] = _availability_row(availability) if availability is not None else None
    return row


class HospitalRepository:
    """
    Row-level access to `hospitals_hospital`.
    Returns plain dict rows; database errors propagate to the caller.
    """

    def fetch_joined(self) -> list[dict[str, Any]]:
        """All hospitals with their availability nested under "availability", ordered by name."""
        qs = Hospital.objects.select_related("availability").order_by("name", "id")
        return [_hospital_row(h, joined=True) for h in qs]

    def fetch_joined_one(self, hospital_id: int) -> Optional[dict[str, Any]]:
        h = Hospital.objects.select_related("availability").filter(id=hospital_id).first()
        return _hospital_row(h, joined=True) if h else None

    def fetch_all(self) -> list[dict[str, Any]]:
        return list(Hospital.objects.order_by("name", "id").values(*HOSPITAL_FIELDS))

    def fetch_one(self, hospital_id: int) -> Optional[dict[str, Any]]:
        return Hospital.objects.filter(id=hospital_id).values(*HOSPITAL_FIELDS).first()

    def exists(self, hospital_id: int) -> bool:
        return Hospital.objects.filter(id=hospital_id).exists()

    def owned_by(self, identity_id: int) -> Optional[dict[str, Any]]:
        """Hospital whose admin back-reference points at this identity (oldest first)."""
        return (
            Hospital.objects.filter(admin_id=identity_id)
            .order_by("id")
            .values(*HOSPITAL_FIELDS)
            .first()
        )

    def create(
        self,
        *,
        name: str,
        address: str = "",
        phone_number: str = "",
        latitude: float | None = None,
        longitude: float | None = None,
        admin_id: int | None = None,
    ) -> Hospital:
        return Hospital.objects.create(
            name=name,
            address=address or "",
            phone_number=phone_number or "",
            latitude=latitude,
            longitude=longitude,
            admin_id=admin_id,
        )


class AvailabilityRepository:
    """
    Row-level access to `hospitals_availability`.

    `update` and `insert` are separate statements; callers that chain them get no
    atomicity across the pair. The primary key on hospital_id is the only guard
    against a duplicate insert.
    """

    def fetch_all(self) -> list[dict[str, Any]]:
        return list(Availability.objects.values(*AVAILABILITY_FIELDS))

    def fetch_for(self, hospital_id: int) -> Optional[dict[str, Any]]:
        return Availability.objects.filter(hospital_id=hospital_id).values(*AVAILABILITY_FIELDS).first()

    def count_for(self, hospital_id: int) -> int:
        return Availability.objects.filter(hospital_id=hospital_id).count()

    def update(
        self,
        *,
        hospital_id: int,
        available_beds: int,
        available_oxygen: int,
        last_updated: datetime,
        updated_by_id: int | None,
    ) -> int:
        """Returns the number of rows affected (0 when the hospital has no row yet)."""
        return Availability.objects.filter(hospital_id=hospital_id).update(
            available_beds=available_beds,
            available_oxygen=available_oxygen,
            last_updated=last_updated,
            updated_by_id=updated_by_id,
        )

    def insert(
        self,
        *,
        hospital_id: int,
        available_beds: int,
        available_oxygen: int,
        last_updated: datetime,
        updated_by_id: int | None,
    ) -> dict[str, Any]:
        # force_insert: a duplicate hospital_id fails on the primary key instead of becoming an UPDATE.
        obj = Availability(
            hospital_id=hospital_id,
            available_beds=available_beds,
            available_oxygen=available_oxygen,
            last_updated=last_updated,
            updated_by_id=updated_by_id,
        )
        with transaction.atomic():
            obj.save(force_insert=True)
        return _availability_row(obj)
