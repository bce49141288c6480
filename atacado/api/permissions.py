"""
Permission checks for organization-scoped access.

Key helpers:
- can_read_org(org_id, current_user)
- can_write_org(org_id, current_user)
- can_manage_org(org_id, current_user)
- customer_link(org_id, current_user)
"""
from typing import Optional, Dict, Any
from atacado.utils.role_permissions import (
    role_allows_write as _role_allows_write,
    role_allows_manage as _role_allows_manage,
)


def get_org_membership(org_id, current_user: Optional[Dict[str, Any]]):
    """Membership dict of the user in ``org_id`` or None."""
    if not current_user or org_id is None:
        return None
    str_id = str(org_id)
    by_org = current_user.get("memberships_by_org", {}) or {}
    m = by_org.get(str_id)
    if m:
        return m
    for item in current_user.get("memberships", []) or []:
        if item and item.get("organization_id") == str_id:
            return item
    return None


def customer_link(org_id, current_user: Optional[Dict[str, Any]]):
    """Customer-portal link of the user in ``org_id`` or None."""
    if not current_user or org_id is None:
        return None
    return (current_user.get("customers_by_org", {}) or {}).get(str(org_id))


def is_member_of_org(org_id, current_user: Optional[Dict[str, Any]]) -> bool:
    if not current_user or org_id is None:
        return False
    if current_user.get("is_superadmin"):
        return True
    return get_org_membership(org_id, current_user) is not None


def can_read_org(org_id, current_user: Optional[Dict[str, Any]]) -> bool:
    if current_user is None or org_id is None:
        return False
    if current_user.get("is_superadmin"):
        return True
    membership = get_org_membership(org_id, current_user)
    return bool(membership and (
        membership.get("can_read") or
        _role_allows_write(membership.get("role", "viewer"))
    ))


def can_write_org(org_id, current_user: Optional[Dict[str, Any]]) -> bool:
    if current_user is None or org_id is None:
        return False
    if current_user.get("is_superadmin"):
        return True
    membership = get_org_membership(org_id, current_user)
    return bool(membership and (
        _role_allows_write(membership.get("role", "viewer")) or
        membership.get("can_write")
    ))


def can_manage_org(org_id, current_user: Optional[Dict[str, Any]]) -> bool:
    if current_user is None or org_id is None:
        return False
    if current_user.get("is_superadmin"):
        return True
    membership = get_org_membership(org_id, current_user)
    return bool(membership and _role_allows_manage(membership.get("role", "viewer")))


def is_org_owner(org_id, current_user: Optional[Dict[str, Any]]) -> bool:
    if current_user is None or org_id is None:
        return False
    if current_user.get("is_superadmin"):
        return True
    membership = get_org_membership(org_id, current_user)
    return bool(membership and membership.get("role") == "owner")
