"""Role-based access control.

Two roles, ordered by level:
- ADMIN (level 1): moderates comments across the store
- USER (level 0): registered shopper
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels."""

    USER = "user"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.ADMIN: 1,
}


def get_role_level(role: UserRole | str) -> int:
    """Permission level for a role; unknown roles get the lowest level."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.USER)
        True
        >>> has_permission("user", "admin")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN
