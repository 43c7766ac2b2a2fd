# Overview: Service-layer operations for permission; encapsulates business logic.

"""
Role-based permission checks.

DESIGN PRINCIPLES:
- Fail closed: no user or no role means no permission
- Admin carries the "all" wildcard
- The static ROLE_PERMISSIONS table is the only source; per-user
  `permissions` stored on staff accounts are not read here
"""

from flask import current_app

from ..models import User
from ..permissions import ROLE_PERMISSIONS, ALL, PERMISSION_DEFINITIONS
from ..models import ROLE_ADMIN


KNOWN_PERMISSIONS = {code for code, _ in PERMISSION_DEFINITIONS}


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""

    def __init__(self, permission_code: str, message: str | None = None):
        super().__init__(message or "Unauthorized access")
        self.permission_code = permission_code


def get_role_permissions(role: str | None) -> frozenset[str]:
    """Permission codes granted to a role (empty for unknown roles)."""
    if role is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(user: User | None, permission_code: str) -> bool:
    """
    True when the user's role grants the permission.

    Admin satisfies every permission, including codes no other role holds.
    """
    if user is None or not getattr(user, "role", None):
        return False

    if user.role == ROLE_ADMIN:
        return True

    granted = get_role_permissions(user.role)
    return permission_code in granted or ALL in granted


def require_permission(user: User | None, permission_code: str, *, resource: str | None = None) -> None:
    """
    Raise PermissionDeniedError unless the user holds the permission.

    Denials are logged; grants are not.
    """
    if has_permission(user, permission_code):
        return

    current_app.logger.warning(
        "Permission denied: user=%s role=%s permission=%s resource=%s",
        getattr(user, "id", None),
        getattr(user, "role", None),
        permission_code,
        resource,
    )
    raise PermissionDeniedError(permission_code)


def get_user_permissions(user: User | None) -> list[str]:
    """Effective permission codes for a user, expanded for admin."""
    if user is None:
        return []
    if user.role == ROLE_ADMIN:
        return sorted(KNOWN_PERMISSIONS)
    return sorted(get_role_permissions(user.role) - {ALL})
