"""
Core permissions utilities for role-based access control.

Every role has an explicit entry in ROLE_PERMISSIONS; anything not listed is
denied. Adding a role without a matrix entry fails at import time.
"""
from enum import Enum
from typing import Dict, FrozenSet
from ..auth.models import UserRole

class Permission(str, Enum):
    """
    Permission types for role-based access control.
    """
    # Own account
    VIEW_PROFILE = "view_profile"
    UPDATE_PROFILE = "update_profile"
    CHANGE_PASSWORD = "change_password"
    
    # Relative registry
    MANAGE_RELATIVES = "manage_relatives"
    
    # Health report ledger
    CREATE_HEALTH_REPORT = "create_health_report"
    VIEW_HEALTH_REPORTS = "view_health_reports"
    UPDATE_HEALTH_REPORT = "update_health_report"
    DELETE_HEALTH_REPORT = "delete_health_report"
    VIEW_ALL_HEALTH_REPORTS = "view_all_health_reports"
    
    # Administration
    MANAGE_DOCTORS = "manage_doctors"
    VIEW_AUDIT_LOGS = "view_audit_logs"


_ACCOUNT_PERMISSIONS = frozenset({
    Permission.VIEW_PROFILE,
    Permission.UPDATE_PROFILE,
    Permission.CHANGE_PASSWORD,
})

# Role-based permission mapping
ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Permission]] = {
    UserRole.ADMIN: frozenset(Permission),
    UserRole.DOCTOR: _ACCOUNT_PERMISSIONS | {
        Permission.CREATE_HEALTH_REPORT,
        Permission.VIEW_HEALTH_REPORTS,
        Permission.UPDATE_HEALTH_REPORT,
        Permission.DELETE_HEALTH_REPORT,
    },
    UserRole.USER: _ACCOUNT_PERMISSIONS | {
        Permission.MANAGE_RELATIVES,
        Permission.VIEW_HEALTH_REPORTS,
    },
}

_unmapped = set(UserRole) - set(ROLE_PERMISSIONS)
if _unmapped:
    raise RuntimeError(f"Roles without a permission entry: {sorted(role.value for role in _unmapped)}")


def get_permissions_for_role(role: UserRole) -> FrozenSet[Permission]:
    """
    Get permissions for a specific role.
    
    Args:
        role: User role
        
    Returns:
        FrozenSet[Permission]: Permissions granted to the role
    """
    return ROLE_PERMISSIONS[UserRole(role)]


def has_permission(role: UserRole, permission: Permission) -> bool:
    """
    Check if a role has a specific permission.
    
    Args:
        role: User role
        permission: Permission to check
        
    Returns:
        bool: True if the role has the permission
    """
    return Permission(permission) in get_permissions_for_role(role)
