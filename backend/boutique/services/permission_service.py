# Overview: Service-layer operations for permission checks.

"""
Role-based permission checks.

Permissions come from the user's role through DEFAULT_ROLE_PERMISSIONS.
Denials are logged; grants are not.
"""

from flask import current_app

from ..extensions import db
from ..models import User
from ..permissions import DEFAULT_ROLE_PERMISSIONS


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def get_user_permissions(user_id: int) -> set[str]:
    """
    Get all permission codes for a user.

    Inactive or unknown users have no permissions.
    """
    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        return set()
    return set(DEFAULT_ROLE_PERMISSIONS.get(user.role, []))


def user_has_permission(user_id: int, permission_code: str) -> bool:
    return permission_code in get_user_permissions(user_id)


def require_permission(
    user_id: int,
    permission_code: str,
    resource: str | None = None,
    ip_address: str | None = None,
) -> None:
    """
    Raise PermissionDeniedError if the user lacks permission_code.

    Fail closed: anything not explicitly granted is denied.
    """
    if user_has_permission(user_id, permission_code):
        return

    current_app.logger.warning(
        "Permission denied: user_id=%s permission=%s resource=%s ip=%s",
        user_id, permission_code, resource, ip_address,
    )
    raise PermissionDeniedError(f"Missing permission: {permission_code}")
