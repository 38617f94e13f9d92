# backend/mt_core/iam/actors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from mt_core.iam.models import Profile, Role


@dataclass(frozen=True)
class Patient:
    identity_id: int


@dataclass(frozen=True)
class HospitalAdmin:
    identity_id: int
    # None until provisioning has linked the profile to a hospital
    hospital_id: Optional[int]


@dataclass(frozen=True)
class SuperAdmin:
    identity_id: int


Actor = Union[Patient, HospitalAdmin, SuperAdmin]


class UnknownRole(ValueError):
    pass


def actor_for_profile(profile: Profile) -> Actor:
    """
    Closed mapping from the stored role string to an actor variant.
    An unrecognised role is an error rather than a silent patient.
    """
    identity_id = profile.pk
    if profile.role == Role.PATIENT:
        return Patient(identity_id=identity_id)
    if profile.role == Role.HOSPITAL_ADMIN:
        return HospitalAdmin(identity_id=identity_id, hospital_id=profile.hospital_id)
    if profile.role == Role.ADMIN:
        return SuperAdmin(identity_id=identity_id)
    raise UnknownRole(f"Unknown role {profile.role!r} on profile {identity_id}.")


def role_of(actor: Actor) -> str:
    if isinstance(actor, Patient):
        return Role.PATIENT
    if isinstance(actor, HospitalAdmin):
        return Role.HOSPITAL_ADMIN
    if isinstance(actor, SuperAdmin):
        return Role.ADMIN
    raise UnknownRole(f"Unknown actor {actor!r}.")


def can_update_availability(actor: Actor) -> bool:
    return isinstance(actor, (HospitalAdmin, SuperAdmin))
