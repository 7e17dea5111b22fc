"""
Role based permission classes.

Roles come from the backend profile (see ``portal.authentication``). The
platform admin is a flag on the profile rather than a role of its own.
"""
from rest_framework.permissions import BasePermission

from portal.authentication import ROLE_DOCTOR, ROLE_MANAGER, ROLE_PATIENT, ROLE_SECRETARY

FRONT_DESK_ROLES = {ROLE_MANAGER, ROLE_SECRETARY}
CLINIC_STAFF_ROLES = {ROLE_MANAGER, ROLE_DOCTOR, ROLE_SECRETARY}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsPlatformAdmin(BasePermission):
    """Only the platform (SaaS) administrator."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "is_platform_admin", False))


class IsManager(BasePermission):
    """Clinic manager."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == ROLE_MANAGER


class IsDoctor(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == ROLE_DOCTOR


class IsSecretary(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == ROLE_SECRETARY


class IsPatient(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == ROLE_PATIENT


class IsFrontDesk(BasePermission):
    """Manager or secretary (reception)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in FRONT_DESK_ROLES


class IsClinicStaff(BasePermission):
    """Any clinic employee: manager, doctor or secretary."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in CLINIC_STAFF_ROLES
