"""
API dependency helpers.

Provides the dependency-resolved user context and the organization access
object every business route works with.
"""
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional, Tuple, Dict, Any

from fastapi import Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from atacado.api.auth import (
    get_customer_links,
    get_or_create_user,
    get_user_memberships,
    resolve_identity_from_headers,
)
from atacado.api.permissions import (
    can_manage_org,
    can_read_org,
    can_write_org,
    customer_link,
    get_org_membership,
)
from atacado.db import models
from atacado.db.database import get_db
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.utils.feature_flags import FeatureFlagKey, is_feature_enabled
from atacado.utils.runtime import dev_mode_active

logger = logging.getLogger(__name__)


# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved.

def get_current_user_context(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[Any, Dict[str, Any]]:
    try:
        is_dev_mode = dev_mode_active()
    except RuntimeError as exc:
        logger.error("DEV_MODE misconfiguration detected: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="DEV_MODE misconfigured")

    if is_dev_mode:
        email = "dev@localhost"
        name = "Development User"
    else:
        name, email = resolve_identity_from_headers(
            x_auth_request_user=x_auth_request_user,
            x_auth_request_email=x_auth_request_email,
            x_forwarded_user=x_forwarded_user,
            x_forwarded_email=x_forwarded_email,
        )
        if not email:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = get_or_create_user(db, email=email, display_name=name)

    memberships = get_user_memberships(db, user.id)
    customers = get_customer_links(db, user.id)
    current_user = {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "is_superadmin": bool(user.is_superadmin),
        "memberships": memberships,
        # Keys are string ids to align with the permission helpers
        "memberships_by_org": {m["organization_id"]: m for m in memberships},
        "customers": customers,
        "customers_by_org": {c["organization_id"]: c for c in customers},
    }
    return user, current_user


@dataclass
class OrgAccess:
    """Who is calling, in which organization, and as staff or as a customer."""

    user: models.User
    current_user: Dict[str, Any]
    organization: models.Organization
    role: Optional[str] = None
    can_read: bool = False
    can_write: bool = False
    can_manage: bool = False
    customer_id: Optional[uuid.UUID] = None

    @property
    def organization_id(self) -> uuid.UUID:
        return self.organization.id

    @property
    def is_staff(self) -> bool:
        return self.can_read

    @property
    def is_customer(self) -> bool:
        return not self.is_staff and self.customer_id is not None

    @property
    def actor_email(self) -> Optional[str]:
        return self.current_user.get("email")

    def require_staff(self) -> None:
        if not self.is_staff:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    def require_write(self) -> None:
        if not self.can_write:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Write permission required")

    def require_manage(self) -> None:
        if not self.can_manage:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Owner or admin role required")

    def customer_filter(self, customer_id: Optional[uuid.UUID]) -> Optional[uuid.UUID]:
        """Customers only ever see their own rows; staff filters are passed through."""
        if self.is_staff:
            return customer_id
        return self.customer_id

    def ensure_customer_visible(self, customer_id: Optional[uuid.UUID]) -> None:
        """404 for rows of another customer when the caller is a portal customer."""
        if self.is_staff:
            return
        if customer_id is None or customer_id != self.customer_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    def acting_customer(self, requested: Optional[uuid.UUID]) -> uuid.UUID:
        """Customer a request acts for: the caller itself, or the one staff names."""
        if self.is_staff:
            if requested is None:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="customer_id is required")
            self.require_write()
            return requested
        return self.customer_id


def _parse_org_id(value: Optional[str]) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid organization_id")


def _default_org_id(current_user: Dict[str, Any]) -> Optional[uuid.UUID]:
    candidates = {m["organization_id"] for m in current_user.get("memberships", [])}
    candidates |= {c["organization_id"] for c in current_user.get("customers", [])}
    if len(candidates) == 1:
        return uuid.UUID(candidates.pop())
    return None


def get_org_access(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    organization_id: Optional[str] = Query(default=None),
    x_organization_id: Optional[str] = Header(default=None, alias="X-Organization-Id"),
) -> OrgAccess:
    """Resolve the active organization from X-Organization-Id or ?organization_id.

    Users with a single organization may omit it. Staff access is checked
    first; otherwise the caller must be linked to a customer of the org.
    """
    user, current_user = user_context
    org_id = _parse_org_id(x_organization_id or organization_id) or _default_org_id(current_user)
    if org_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="organization_id is required")
    org = db.query(models.Organization).filter(models.Organization.id == org_id).first()
    if org is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")

    membership = get_org_membership(org_id, current_user) or {}
    access = OrgAccess(
        user=user,
        current_user=current_user,
        organization=org,
        role=membership.get("role"),
        can_read=can_read_org(org_id, current_user),
        can_write=can_write_org(org_id, current_user),
        can_manage=can_manage_org(org_id, current_user),
    )
    if access.can_read:
        return access
    link = customer_link(org_id, current_user)
    if link is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    access.customer_id = uuid.UUID(link["customer_id"])
    return access


def get_staff_access(access: OrgAccess = Depends(get_org_access)) -> OrgAccess:
    access.require_staff()
    return access


def get_write_access(access: OrgAccess = Depends(get_org_access)) -> OrgAccess:
    access.require_write()
    return access


def get_manage_access(access: OrgAccess = Depends(get_org_access)) -> OrgAccess:
    access.require_manage()
    return access


def require_feature(flag: FeatureFlagKey):
    """Dependency factory returning 503 while ``flag`` is switched off."""

    def _check() -> None:
        if not is_feature_enabled(flag):
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"{flag.replace('_enabled', '').capitalize()} features are currently disabled",
            )

    return _check


@contextmanager
def translate_service_errors():
    """Map domain exceptions raised by the services to HTTP errors."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except BusinessRuleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
