# backend/mt_core/common/permissions.py

from __future__ import annotations

from rest_framework.permissions import BasePermission, SAFE_METHODS

# Profile.role values
ROLE_PATIENT = "patient"
ROLE_HOSPITAL_ADMIN = "hospital_admin"
ROLE_ADMIN = "admin"

ALL_ROLES = frozenset({ROLE_PATIENT, ROLE_HOSPITAL_ADMIN, ROLE_ADMIN})


def user_role(user) -> str | None:
    """
    Resolve the role of an authenticated user from their profile.

    - Anonymous users have no role.
    - Users without a profile have no role either: nothing is granted by default.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return None

    profile = getattr(user, "mt_profile", None)
    if profile is None:
        return None
    return profile.role


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    Key behavior:
    - Requires authentication (the global IsAuthenticated already does this).
    - Uses allowed_roles_per_action for strict RBAC.
    - If action is unknown and request is SAFE, fall back to list/retrieve
      instead of denying (prevents random 403s for @action endpoints when
      method name doesn't match the permission map).
    - A user without a profile is denied everything.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: dict of action -> set of allowed roles
    allowed_roles_per_action = {
        "list": set(ALL_ROLES),
        "retrieve": set(ALL_ROLES),
        "create": {ROLE_ADMIN},
        "update": {ROLE_ADMIN},
        "partial_update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        # fallback inference when action isn't set (plain APIView)
        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        role = user_role(user)
        if role is None:
            return False

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        # Robust fallback for SAFE methods:
        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            is_detail = "pk" in kwargs or "id" in kwargs
            read_action = "retrieve" if is_detail else "list"
            allowed = self.allowed_roles_per_action.get(read_action)

        if allowed is not None:
            return role in allowed

        # Unknown action => deny by default (safer)
        return False

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)
