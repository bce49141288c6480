"""
Boleto API endpoints.

Listing synchronizes overdue status first. Actions (pay, cancel, revert)
go through a single PUT with an ``action`` body.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from atacado.api.deps import (
    OrgAccess,
    get_manage_access,
    get_org_access,
    get_write_access,
    require_feature,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.services import boleto_service

router = APIRouter(prefix="/boletos", tags=["boletos"])


@router.get("/", response_model=List[schemas.Boleto])
def list_boletos(
    customer_id: Optional[uuid.UUID] = None,
    order_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    return boleto_service.list_boletos(
        db,
        access.organization_id,
        customer_id=access.customer_filter(customer_id),
        order_id=order_id,
        status=status_filter,
    )


@router.post("/", response_model=schemas.Boleto, status_code=status.HTTP_201_CREATED)
def create_boleto(
    payload: schemas.BoletoCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return boleto_service.create_boleto(db, access.organization_id, payload, actor_user_id=access.user.id)


@router.get("/{boleto_id}", response_model=schemas.Boleto)
def get_boleto(
    boleto_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    with translate_service_errors():
        boleto = boleto_service.get_boleto_or_404(db, access.organization_id, boleto_id)
    access.ensure_customer_visible(boleto.customer_id)
    return boleto


@router.put("/{boleto_id}", response_model=schemas.Boleto)
def apply_boleto_action(
    boleto_id: uuid.UUID,
    payload: schemas.BoletoAction,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    """Apply ``pay``, ``cancel`` or ``revert``; reverting needs owner or admin."""
    if payload.action == "revert":
        access.require_manage()
    with translate_service_errors():
        return boleto_service.apply_action(
            db,
            access.organization_id,
            boleto_id,
            payload,
            actor_user_id=access.user.id,
            actor_email=access.actor_email,
        )


@router.delete("/{boleto_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_boleto(
    boleto_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    with translate_service_errors():
        boleto_service.delete_boleto(db, access.organization_id, boleto_id, actor_user_id=access.user.id)


@router.post("/{boleto_id}/remind", dependencies=[Depends(require_feature("whatsapp_enabled"))])
def send_boleto_reminder(
    boleto_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return boleto_service.send_reminder(db, access.organization_id, boleto_id)
