"""
Authentication helpers and identity resolution.

Parses oauth2-proxy headers, normalizes emails and upserts users, promoting
the addresses listed in ``ADMIN_EMAILS`` to superadmin.
"""
import os
from typing import Optional, Dict, Any, List, Tuple
from sqlalchemy.orm import Session

from atacado.db import models


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


def _normalize_list_env(var_name: str) -> set:
    raw = os.getenv(var_name, "")
    values = set()
    for entry in raw.split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def _admin_emails() -> set:
    return _normalize_list_env("ADMIN_EMAILS")


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    user = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return user, email


def get_or_create_user(db: Session, email: str, display_name: Optional[str] = None) -> models.User:
    email = _normalize_email(email)
    user = db.query(models.User).filter(models.User.email == email).first()
    admins = _admin_emails()
    if not user:
        user = models.User(
            email=email,
            display_name=display_name or email.split("@")[0],
            is_superadmin=email in admins,
            auth_provider="oauth2-proxy",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    # Existing users might predate a new ADMIN_EMAILS value; promote them when necessary.
    if email in admins and not user.is_superadmin:
        user.is_superadmin = True
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(user)
    return user


def get_user_memberships(db: Session, user_id) -> List[Dict[str, Any]]:
    results = (
        db.query(models.OrganizationMembership, models.Organization)
        .join(models.Organization, models.Organization.id == models.OrganizationMembership.organization_id)
        .filter(models.OrganizationMembership.user_id == user_id)
        .order_by(models.Organization.name)
        .all()
    )
    return [
        {
            "organization_id": str(membership.organization_id),
            "organization_name": org.name,
            "role": membership.role,
            "can_read": bool(membership.can_read),
            "can_write": bool(membership.can_write),
        }
        for membership, org in results
    ]


def get_customer_links(db: Session, user_id) -> List[Dict[str, Any]]:
    """Customer rows the user logs in as (customer portal), one per organization."""
    rows = (
        db.query(models.Customer)
        .filter(models.Customer.user_id == user_id, models.Customer.is_active.is_(True))
        .all()
    )
    return [
        {"organization_id": str(c.organization_id), "customer_id": str(c.id), "customer_name": c.name}
        for c in rows
    ]
