"""
Organization repository functions.

CRUD for organizations (tenants) and their memberships.
"""
from __future__ import annotations

import re
import uuid
from sqlalchemy.orm import Session

from atacado.db import schemas, models
from atacado.utils.role_permissions import ROLE_OWNER, permissions_for_role


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")
    return slug or uuid.uuid4().hex[:8]


def get_organization(db: Session, organization_id: uuid.UUID):
    return db.query(models.Organization).filter(models.Organization.id == organization_id).first()


def get_organization_by_name_or_slug(db: Session, name: str, slug: str | None):
    query = db.query(models.Organization)
    if slug:
        return query.filter((models.Organization.name == name) | (models.Organization.slug == slug)).first()
    return query.filter(models.Organization.name == name).first()


def create_organization(db: Session, organization: schemas.OrganizationCreate, user_id: uuid.UUID):
    db_organization = models.Organization(
        name=organization.name.strip(),
        slug=organization.slug or slugify(organization.name),
        cnpj=organization.cnpj,
        city=organization.city,
        created_by=user_id,
    )
    db.add(db_organization)
    db.flush()
    # Creator becomes owner
    db.add(models.OrganizationMembership(
        organization_id=db_organization.id,
        user_id=user_id,
        role=ROLE_OWNER,
        can_read=True,
        can_write=True,
    ))
    db.commit()
    db.refresh(db_organization)
    return db_organization


def get_organizations(db: Session, user_id: uuid.UUID, skip: int = 0, limit: int = 100):
    return (
        db.query(models.Organization)
        .join(models.OrganizationMembership)
        .filter(models.OrganizationMembership.user_id == user_id)
        .order_by(models.Organization.name)
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_all_organizations(db: Session, skip: int = 0, limit: int = 100):
    return db.query(models.Organization).order_by(models.Organization.name).offset(skip).limit(limit).all()


def update_organization(db: Session, db_organization: models.Organization, organization: schemas.OrganizationUpdate):
    for key, value in organization.model_dump(exclude_unset=True).items():
        setattr(db_organization, key, value)
    db.commit()
    db.refresh(db_organization)
    return db_organization


def delete_organization(db: Session, db_organization: models.Organization):
    db.delete(db_organization)
    db.commit()
    return True


def get_organization_member(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID):
    return (
        db.query(models.OrganizationMembership)
        .filter(
            models.OrganizationMembership.organization_id == organization_id,
            models.OrganizationMembership.user_id == user_id,
        )
        .first()
    )


def get_organization_members(db: Session, organization_id: uuid.UUID):
    """Memberships joined with their users, ordered by email."""
    return (
        db.query(models.OrganizationMembership, models.User)
        .join(models.User, models.User.id == models.OrganizationMembership.user_id)
        .filter(models.OrganizationMembership.organization_id == organization_id)
        .order_by(models.User.email)
        .all()
    )


def count_owners(db: Session, organization_id: uuid.UUID) -> int:
    return (
        db.query(models.OrganizationMembership)
        .filter(
            models.OrganizationMembership.organization_id == organization_id,
            models.OrganizationMembership.role == ROLE_OWNER,
        )
        .count()
    )


def create_organization_member(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID, role: str,
                               can_read: bool | None = None, can_write: bool | None = None):
    permissions = permissions_for_role(role, can_read=can_read, can_write=can_write)
    db_member = models.OrganizationMembership(
        organization_id=organization_id,
        user_id=user_id,
        role=role,
        **permissions,
    )
    db.add(db_member)
    db.commit()
    db.refresh(db_member)
    return db_member


def update_organization_member(db: Session, db_member: models.OrganizationMembership, member: schemas.OrganizationMemberUpdate):
    update_data = member.model_dump(exclude_unset=True)
    if update_data.get("role") is not None:
        update_data["role"] = getattr(update_data["role"], "value", update_data["role"])
        # Role change resets permissions to the role defaults unless overridden
        defaults = permissions_for_role(update_data["role"])
        update_data.setdefault("can_read", defaults["can_read"])
        update_data.setdefault("can_write", defaults["can_write"])
    for key, value in update_data.items():
        if value is not None:
            setattr(db_member, key, value)
    db.commit()
    db.refresh(db_member)
    return db_member


def delete_organization_member(db: Session, db_member: models.OrganizationMembership):
    db.delete(db_member)
    db.commit()
    return True
