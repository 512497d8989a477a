# backend/pc_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

# Group/role names (Django auth Group names recommended)
ROLE_ADMIN = "ADMIN"
ROLE_DOCTOR = "DOCTOR"
ROLE_NURSE = "NURSE"
ROLE_RECEPTION = "RECEPTION"
ROLE_READONLY = "READONLY"

ALL_ROLES = {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE, ROLE_RECEPTION, ROLE_READONLY}
WARD_STAFF = {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE, ROLE_RECEPTION}


def _user_roles(user) -> Set[str]:
    """
    Resolve roles from Django groups (superuser counts as ADMIN).
    Authenticated users without any group are treated as READONLY.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(user.groups.values_list("name", flat=True))

    if not roles:
        roles.add(ROLE_READONLY)

    return roles


class BaseRolePermission(BasePermission):
    """
    Role-based access control keyed by ViewSet action.

    - ADMIN bypass.
    - allowed_roles_per_action maps action -> roles.
    - Unknown SAFE actions fall back to list/retrieve, unknown writes are denied.
    """
    message = "You do not have permission to perform this action."

    allowed_roles_per_action: dict[str, set[str]] = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
    }

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = _user_roles(user)
        if ROLE_ADMIN in roles:
            return True

        action = getattr(view, "action", None)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            read_action = "retrieve" if "pk" in kwargs else "list"
            allowed = self.allowed_roles_per_action.get(read_action)

        if allowed is not None:
            return bool(roles & allowed)

        return False

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class PatientPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "create": WARD_STAFF,
    }


class BedPermission(BaseRolePermission):
    """Catalog changes (create/retire/reconcile) are ADMIN only."""
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "available": ALL_ROLES,
        "summary": ALL_ROLES,
        "create": {ROLE_ADMIN},
        "retire": {ROLE_ADMIN},
        "reconcile": {ROLE_ADMIN},
    }


class BedStayPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "retrieve": ALL_ROLES,
        "current": ALL_ROLES,
        "history": ALL_ROLES,
        "create": WARD_STAFF,
        "end": WARD_STAFF,
        "cancel": WARD_STAFF,
        "transfer": WARD_STAFF,
    }


class AppointmentPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "next_code": ALL_ROLES,
        "create": WARD_STAFF,
        "partial_update": WARD_STAFF,
        "set_status": WARD_STAFF,
        "destroy": WARD_STAFF,
    }
