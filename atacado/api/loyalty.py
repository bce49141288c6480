"""
Loyalty endpoints: points, prizes, redemptions and referrals.

Points are read per customer under ``/customers/{id}/points``; portal
customers may read their own balance and request redemptions for
themselves.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from atacado import audit
from atacado.api.deps import (
    OrgAccess,
    get_manage_access,
    get_org_access,
    get_staff_access,
    get_write_access,
    require_feature,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.db.repositories import customers as customer_repo
from atacado.db.repositories import loyalty as loyalty_repo
from atacado.services import loyalty_service, notification_service

_loyalty_enabled = [Depends(require_feature("loyalty_enabled"))]

points_router = APIRouter(prefix="/customers", tags=["loyalty"], dependencies=_loyalty_enabled)
prizes_router = APIRouter(prefix="/prizes", tags=["loyalty"], dependencies=_loyalty_enabled)
redemptions_router = APIRouter(prefix="/redemptions", tags=["loyalty"], dependencies=_loyalty_enabled)
referrals_router = APIRouter(prefix="/referrals", tags=["loyalty"], dependencies=_loyalty_enabled)

REDEMPTION_AUDIT = {
    "approve": audit.AuditAction.REDEMPTION_APPROVE,
    "reject": audit.AuditAction.REDEMPTION_REJECT,
    "deliver": audit.AuditAction.REDEMPTION_DELIVER,
    "cancel": audit.AuditAction.REDEMPTION_CANCEL,
}


@points_router.get("/{customer_id}/points", response_model=schemas.CustomerPoints)
def get_points(
    customer_id: uuid.UUID,
    limit: int = 50,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    access.ensure_customer_visible(customer_id)
    customer = customer_repo.get_customer(db, access.organization_id, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return {
        "customer_id": customer.id,
        "points_balance": customer.points_balance or 0,
        "total_points_earned": customer.total_points_earned or 0,
        "total_points_redeemed": customer.total_points_redeemed or 0,
        "points_multiplier": customer.points_multiplier or 1.0,
        "transactions": customer_repo.list_point_transactions(db, customer.id, limit=min(limit, 200)),
    }


@points_router.post("/{customer_id}/points/adjust", response_model=schemas.Customer)
def adjust_points(
    customer_id: uuid.UUID,
    payload: schemas.PointsAdjust,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    with translate_service_errors():
        customer = loyalty_service.adjust_points(
            db, access.organization_id, customer_id, payload.points, payload.description
        )
    audit.log_safely(
        db,
        action=audit.AuditAction.POINTS_ADJUST,
        target_type="customer",
        target_id=customer.id,
        actor_user_id=access.user.id,
        organization_id=access.organization_id,
        metadata={"points": payload.points, "description": payload.description},
    )
    return customer


@prizes_router.get("/", response_model=List[schemas.Prize])
def list_prizes(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    if access.is_customer:
        is_active = True
    return loyalty_repo.list_prizes(db, access.organization_id, is_active=is_active)


@prizes_router.post("/", response_model=schemas.Prize, status_code=status.HTTP_201_CREATED)
def create_prize(
    payload: schemas.PrizeCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    return loyalty_repo.create_prize(db, access.organization_id, payload)


@prizes_router.put("/{prize_id}", response_model=schemas.Prize)
def update_prize(
    prize_id: uuid.UUID,
    payload: schemas.PrizeUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    prize = loyalty_repo.get_prize(db, access.organization_id, prize_id)
    if prize is None:
        raise HTTPException(status_code=404, detail="Prize not found")
    return loyalty_repo.update_prize(db, prize, payload)


@prizes_router.delete("/{prize_id}", response_model=schemas.Prize)
def deactivate_prize(
    prize_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    prize = loyalty_repo.get_prize(db, access.organization_id, prize_id)
    if prize is None:
        raise HTTPException(status_code=404, detail="Prize not found")
    return loyalty_repo.update_prize(db, prize, schemas.PrizeUpdate(is_active=False))


@redemptions_router.get("/", response_model=List[schemas.Redemption])
def list_redemptions(
    customer_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    return loyalty_repo.list_redemptions(
        db, access.organization_id, customer_id=access.customer_filter(customer_id), status=status_filter
    )


@redemptions_router.post("/", response_model=schemas.Redemption, status_code=status.HTTP_201_CREATED)
def request_redemption(
    payload: schemas.RedemptionCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    """Deduct the prize cost now; staff review the PENDING redemption later."""
    customer_id = access.acting_customer(payload.customer_id)
    with translate_service_errors():
        redemption = loyalty_service.request_redemption(
            db, access.organization_id, customer_id, payload.prize_id, payload.notes
        )
    audit.log_safely(
        db,
        action=audit.AuditAction.REDEMPTION_CREATE,
        target_type="redemption",
        target_id=redemption.id,
        actor_user_id=access.user.id,
        organization_id=access.organization_id,
        metadata={"prize_id": str(redemption.prize_id), "points_used": redemption.points_used},
    )
    notification_service.notify_managers_safely(
        db,
        access.organization_id,
        notification_service.EVENT_REDEMPTION_REQUESTED,
        "Novo resgate de prêmio",
        f"{redemption.customer.name} solicitou o resgate de {redemption.prize.name}.",
        metadata={"redemption_id": str(redemption.id)},
    )
    return redemption


@redemptions_router.put("/{redemption_id}", response_model=schemas.Redemption)
def process_redemption(
    redemption_id: uuid.UUID,
    payload: schemas.RedemptionAction,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        redemption = loyalty_service.process_redemption(
            db,
            access.organization_id,
            redemption_id,
            payload.action,
            processed_by=access.actor_email,
            notes=payload.notes,
            rejection_reason=payload.rejection_reason,
        )
    audit.log_safely(
        db,
        action=REDEMPTION_AUDIT[payload.action],
        target_type="redemption",
        target_id=redemption.id,
        actor_user_id=access.user.id,
        organization_id=access.organization_id,
        metadata={"status": redemption.status},
    )
    customer = redemption.customer
    if customer is not None and customer.user_id is not None:
        notification_service.notify_user_safely(
            db,
            customer.user_id,
            notification_service.EVENT_REDEMPTION_PROCESSED,
            "Resgate atualizado",
            f"Seu resgate de {redemption.prize.name} agora está {redemption.status}.",
            organization_id=access.organization_id,
        )
    return redemption


@referrals_router.get("/", response_model=List[schemas.Referral])
def list_referrals(
    referrer_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return loyalty_repo.list_referrals(db, access.organization_id, referrer_id=referrer_id)


@referrals_router.post("/", response_model=schemas.Referral, status_code=status.HTTP_201_CREATED)
def create_referral(
    payload: schemas.ReferralCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        referral = loyalty_service.create_referral(
            db, access.organization_id, payload.referrer_id, payload.referred_id
        )
    audit.log_safely(
        db,
        action=audit.AuditAction.REFERRAL_CREATE,
        target_type="referral",
        target_id=referral.id,
        actor_user_id=access.user.id,
        organization_id=access.organization_id,
        metadata={"referrer_id": str(referral.referrer_id), "referred_id": str(referral.referred_id)},
    )
    return referral


@referrals_router.get("/config", response_model=schemas.ReferralConfig)
def get_referral_config(
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    config = loyalty_repo.get_referral_config(db, access.organization_id)
    db.commit()
    return config


@referrals_router.put("/config", response_model=schemas.ReferralConfig)
def update_referral_config(
    payload: schemas.ReferralConfigUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    return loyalty_repo.update_referral_config(db, access.organization_id, payload)
