"""
Organizations API endpoints.

Manage shops (tenants) and their memberships with admin/owner role
enforcement and audited lifecycle actions.
"""
from datetime import datetime
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from atacado import audit
from atacado.api.auth import get_or_create_user
from atacado.api.deps import get_current_user_context
from atacado.api.permissions import can_manage_org, is_member_of_org, is_org_owner
from atacado.db import models, schemas
from atacado.db.database import get_db
from atacado.db.repositories import audits as audit_repo
from atacado.db.repositories import organizations as org_repo
from atacado.services import notification_service
from atacado.utils.role_permissions import ROLE_OWNER

router = APIRouter(prefix="/organizations", tags=["organizations"])


def _get_org_or_404(db: Session, org_id: uuid.UUID) -> models.Organization:
    org = org_repo.get_organization(db, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.Organization)
def create_organization(
    payload: dict,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    name = (payload.get("name") or "").strip()
    if not name:
        raise HTTPException(status_code=422, detail="Organization name is required")
    slug = payload.get("slug") or None

    user, current_user = user_context
    if org_repo.get_organization_by_name_or_slug(db, name, slug):
        raise HTTPException(status_code=409, detail="Organization name or slug already exists")

    org = org_repo.create_organization(
        db,
        schemas.OrganizationCreate(name=name, slug=slug, cnpj=payload.get("cnpj"), city=payload.get("city")),
        user_id=user.id,
    )
    audit.log_safely(
        db,
        action=audit.AuditAction.ORGANIZATION_CREATE,
        target_type="organization",
        target_id=org.id,
        actor_user_id=user.id,
        organization_id=org.id,
    )
    return org


@router.get("/", response_model=List[schemas.Organization])
def list_organizations(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """Organizations of the caller; superadmins see every organization."""
    user, current_user = user_context
    if current_user.get("is_superadmin"):
        return org_repo.get_all_organizations(db, limit=1000)
    return org_repo.get_organizations(db, user.id, limit=1000)


@router.get("/{org_id}", response_model=schemas.Organization)
def get_organization(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    org = _get_org_or_404(db, org_id)
    if not is_member_of_org(org_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")
    return org


@router.put("/{org_id}", response_model=schemas.Organization)
def update_organization(
    org_id: uuid.UUID,
    payload: schemas.OrganizationUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    org = _get_org_or_404(db, org_id)
    if not can_manage_org(org_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") and changes["name"] != org.name:
        clash = db.query(models.Organization).filter(
            models.Organization.name == changes["name"], models.Organization.id != org_id
        ).first()
        if clash:
            raise HTTPException(status_code=409, detail="Organization name already exists")
    if changes.get("slug") and changes["slug"] != org.slug:
        clash = db.query(models.Organization).filter(
            models.Organization.slug == changes["slug"], models.Organization.id != org_id
        ).first()
        if clash:
            raise HTTPException(status_code=409, detail="Organization slug already exists")

    old_data = {"name": org.name, "slug": org.slug, "is_active": org.is_active}
    org = org_repo.update_organization(db, org, payload)
    audit.log_safely(
        db,
        action=audit.AuditAction.ORGANIZATION_UPDATE,
        target_type="organization",
        target_id=org.id,
        actor_user_id=user.id,
        organization_id=org.id,
        metadata={"old_data": old_data, "new_data": {"name": org.name, "slug": org.slug, "is_active": org.is_active}},
    )
    return org


@router.delete("/{org_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_organization(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    org = _get_org_or_404(db, org_id)
    if not is_org_owner(org_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")

    # Refuse delete while business rows still reference the org
    for model in (models.Customer, models.Order, models.BankAccount):
        if db.query(model).filter(model.organization_id == org_id).first() is not None:
            raise HTTPException(status_code=409, detail="Organization not empty; empty it before deletion")

    # Logged before the delete so the row still exists
    audit.log_safely(
        db,
        action=audit.AuditAction.ORGANIZATION_DELETE,
        target_type="organization",
        target_id=org_id,
        actor_user_id=user.id,
        organization_id=org_id,
    )
    db.query(models.OrganizationMembership).filter(
        models.OrganizationMembership.organization_id == org_id
    ).delete(synchronize_session=False)
    org_repo.delete_organization(db, org)


def _member_out(membership: models.OrganizationMembership, member: models.User) -> dict:
    return {
        "organization_id": membership.organization_id,
        "user_id": member.id,
        "email": member.email,
        "display_name": member.display_name,
        "role": membership.role,
        "can_read": bool(membership.can_read),
        "can_write": bool(membership.can_write),
        "created_at": membership.created_at,
    }


@router.get("/{org_id}/members", response_model=List[schemas.OrganizationMember])
def list_members(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    _get_org_or_404(db, org_id)
    if not is_member_of_org(org_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")
    return [_member_out(m, u) for m, u in org_repo.get_organization_members(db, org_id)]


@router.post("/{org_id}/members", status_code=status.HTTP_201_CREATED, response_model=schemas.OrganizationMember)
def add_member(
    org_id: uuid.UUID,
    payload: schemas.OrganizationMemberCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    org = _get_org_or_404(db, org_id)
    if not can_manage_org(org_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")
    email = (payload.email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=422, detail="Email is required")

    member_user = get_or_create_user(db, email=email)
    if org_repo.get_organization_member(db, org_id, member_user.id):
        raise HTTPException(status_code=409, detail="User already a member")
    role = payload.role.value
    membership = org_repo.create_organization_member(
        db, org_id, member_user.id, role, can_read=payload.can_read, can_write=payload.can_write
    )
    audit.log_safely(
        db,
        action=audit.AuditAction.MEMBER_ADD,
        target_type="user",
        target_id=member_user.id,
        actor_user_id=user.id,
        organization_id=org_id,
        metadata={"role": role},
    )
    notification_service.notify_user_safely(
        db,
        member_user.id,
        notification_service.EVENT_ORG_MEMBERSHIP_ADDED,
        "Novo acesso",
        f"Você foi adicionado à organização {org.name} como {role}.",
        organization_id=org_id,
    )
    return _member_out(membership, member_user)


@router.put("/{org_id}/members/{member_user_id}", response_model=schemas.OrganizationMember)
def update_member(
    org_id: uuid.UUID,
    member_user_id: uuid.UUID,
    payload: schemas.OrganizationMemberUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    org = _get_org_or_404(db, org_id)
    if not can_manage_org(org_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")
    membership = org_repo.get_organization_member(db, org_id, member_user_id)
    if not membership:
        raise HTTPException(status_code=404, detail="Membership not found")

    old_role = membership.role
    new_role = payload.role.value if payload.role is not None else old_role
    if old_role == ROLE_OWNER and new_role != ROLE_OWNER and org_repo.count_owners(db, org_id) <= 1:
        raise HTTPException(status_code=400, detail="Cannot demote the last owner")
    membership = org_repo.update_organization_member(db, membership, payload)

    if old_role != membership.role:
        audit.log_safely(
            db,
            action=audit.AuditAction.MEMBER_ROLE_CHANGE,
            target_type="user",
            target_id=member_user_id,
            actor_user_id=user.id,
            organization_id=org_id,
            metadata={"old_role": old_role, "new_role": membership.role},
        )
        notification_service.notify_user_safely(
            db,
            member_user_id,
            notification_service.EVENT_ORG_ROLE_CHANGED,
            "Função alterada",
            f"Sua função em {org.name} mudou de {old_role} para {membership.role}.",
            organization_id=org_id,
        )
    member = db.query(models.User).filter(models.User.id == member_user_id).first()
    return _member_out(membership, member)


@router.delete("/{org_id}/members/{member_user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    org_id: uuid.UUID,
    member_user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    org = _get_org_or_404(db, org_id)
    if not can_manage_org(org_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")
    membership = org_repo.get_organization_member(db, org_id, member_user_id)
    if not membership:
        raise HTTPException(status_code=404, detail="Membership not found")
    if membership.role == ROLE_OWNER and org_repo.count_owners(db, org_id) <= 1:
        raise HTTPException(status_code=400, detail="Cannot remove the last owner")
    org_repo.delete_organization_member(db, membership)

    audit.log_safely(
        db,
        action=audit.AuditAction.MEMBER_REMOVE,
        target_type="user",
        target_id=member_user_id,
        actor_user_id=user.id,
        organization_id=org_id,
    )
    notification_service.notify_user_safely(
        db,
        member_user_id,
        notification_service.EVENT_ORG_MEMBERSHIP_REMOVED,
        "Acesso removido",
        f"Seu acesso à organização {org.name} foi removido.",
    )


@router.get("/{org_id}/audit-logs", response_model=List[schemas.AuditLog])
def list_audit_logs(
    org_id: uuid.UUID,
    action_type: Optional[str] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    user_id: Optional[uuid.UUID] = None,
    target_type: Optional[str] = None,
    target_id: Optional[uuid.UUID] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    _get_org_or_404(db, org_id)
    if not can_manage_org(org_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")
    return audit_repo.get_audit_logs(
        db,
        organization_id=org_id,
        user_id=user_id,
        action_type=action_type,
        status=status_filter,
        target_type=target_type,
        target_id=target_id,
        since=since,
        until=until,
        skip=skip,
        limit=min(limit, 500),
    )
