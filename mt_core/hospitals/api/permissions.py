# backend/mt_core/hospitals/api/permissions.py
from __future__ import annotations

from mt_core.common.permissions import (
    ALL_ROLES,
    ROLE_HOSPITAL_ADMIN,
    BaseRolePermission,
)


class HospitalPermission(BaseRolePermission):
    """
    Everyone with a profile reads the hospital list.
    `mine` only makes sense for hospital admins.
    """

    allowed_roles_per_action = {
        "list": set(ALL_ROLES),
        "retrieve": set(ALL_ROLES),
        "mine": {ROLE_HOSPITAL_ADMIN},
    }


class AvailabilityWritePermission(BaseRolePermission):
    """
    Only requires a resolvable profile. Role gating for writes happens inside
    the updater so that a patient gets the same authorization error however
    the write path is reached.
    """

    allowed_roles_per_action = {
        "create": set(ALL_ROLES),
    }
