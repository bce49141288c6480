"""
Role-based permission defaults for organization members.

Owners and admins manage the shop (members, reverting paid boletos,
approving redemptions and withdrawals); editors operate the ledger;
viewers only read.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional, Set

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_EDITOR = "editor"
ROLE_VIEWER = "viewer"

ROLE_PERMISSIONS = {
    ROLE_OWNER: {"can_read": True, "can_write": True},
    ROLE_ADMIN: {"can_read": True, "can_write": True},
    ROLE_EDITOR: {"can_read": True, "can_write": True},
    ROLE_VIEWER: {"can_read": True, "can_write": False},
}

ALLOWED_ROLES = set(ROLE_PERMISSIONS.keys())

WRITE_ROLES: FrozenSet[str] = frozenset({ROLE_OWNER, ROLE_ADMIN, ROLE_EDITOR})
MANAGE_ROLES: FrozenSet[str] = frozenset({ROLE_OWNER, ROLE_ADMIN})


class RoleEnum(str, Enum):
    """Organization roles used in schemas and validation."""
    owner = ROLE_OWNER
    admin = ROLE_ADMIN
    editor = ROLE_EDITOR
    viewer = ROLE_VIEWER


def get_role_permissions(role: str) -> Dict[str, bool]:
    """Return a copy of the default permissions for ``role``.

    Raises:
        ValueError: If role is not recognized
    """
    if role not in ROLE_PERMISSIONS:
        raise ValueError(f"Unknown role: {role}. Allowed roles: {sorted(ALLOWED_ROLES)}")
    return ROLE_PERMISSIONS[role].copy()


def get_allowed_roles() -> Set[str]:
    return ALLOWED_ROLES.copy()


def validate_role(role: str) -> None:
    if role not in ALLOWED_ROLES:
        raise ValueError(f"Invalid role '{role}'. Allowed roles: {sorted(ALLOWED_ROLES)}")


def permissions_for_role(role: str, can_read: Optional[bool] = None, can_write: Optional[bool] = None) -> Dict[str, bool]:
    """Role defaults with optional explicit overrides."""
    permissions = get_role_permissions(role)
    if can_read is not None:
        permissions["can_read"] = can_read
    if can_write is not None:
        permissions["can_write"] = can_write
    return permissions


def role_allows_write(role: str) -> bool:
    return role in WRITE_ROLES


def role_allows_manage(role: str) -> bool:
    return role in MANAGE_ROLES
