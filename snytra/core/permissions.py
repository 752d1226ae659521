"""
RBAC (Role-Based Access Control) permission system
"""

from enum import Enum
from typing import Set
from fastapi import Depends

from snytra.core.dependencies import get_user_role
from snytra.core.exceptions import ForbiddenError


class Permission(str, Enum):
    """Permission definitions"""
    # Table permissions
    TABLES_VIEW = "tables:view"
    TABLES_EDIT = "tables:edit"

    # Reservation and waitlist permissions
    RESERVATIONS_MANAGE = "reservations:manage"
    RESERVATIONS_DELETE = "reservations:delete"
    WAITLIST_VIEW = "waitlist:view"
    WAITLIST_NOTIFY = "waitlist:notify"
    SETTINGS_EDIT = "settings:edit"

    # Subscription permissions
    PLANS_EDIT = "plans:edit"
    FEATURES_BYPASS = "features:bypass"


STAFF_PERMISSIONS = {
    Permission.RESERVATIONS_MANAGE,
    Permission.TABLES_VIEW,
    Permission.TABLES_EDIT,
    Permission.WAITLIST_VIEW,
    Permission.WAITLIST_NOTIFY,
}

# Role permission mapping
ROLE_PERMISSIONS = {
    "admin": set(Permission),
    "developer": set(Permission),
    "manager": STAFF_PERMISSIONS | {Permission.SETTINGS_EDIT},
    "staff": set(STAFF_PERMISSIONS),
    "customer": set(),
}


def get_permissions_for_role(role: str) -> Set[Permission]:
    """Get permissions for a given role"""
    if not role:
        return set()
    return ROLE_PERMISSIONS.get(role.lower(), set())


def has_permission(required_permission: Permission, user_permissions: Set[Permission]) -> bool:
    """Check if user has required permission"""
    return required_permission in user_permissions


def require_permission(required_permission: Permission):
    """Dependency factory to check permissions"""
    async def check_permission(role: str = Depends(get_user_role)) -> str:
        if not has_permission(required_permission, get_permissions_for_role(role)):
            raise ForbiddenError(
                f"Permission required: {required_permission.value}",
                role=role,
            )
        return role
    return check_permission
