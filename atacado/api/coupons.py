"""
Coupon endpoints.

Staff manage coupons; anyone in the organization may preview a coupon
against an order total. Portal customers always validate for themselves.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from atacado import audit
from atacado.api.deps import (
    OrgAccess,
    get_org_access,
    get_staff_access,
    get_write_access,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.db.repositories import coupons as coupon_repo
from atacado.services import coupon_service

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.get("/", response_model=List[schemas.Coupon])
def list_coupons(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return coupon_repo.list_coupons(db, access.organization_id, is_active=is_active)


@router.post("/", response_model=schemas.Coupon, status_code=status.HTTP_201_CREATED)
def create_coupon(
    payload: schemas.CouponCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    if coupon_repo.get_coupon_by_code(db, access.organization_id, payload.code) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Coupon code already exists")
    if payload.valid_from and payload.valid_until and payload.valid_until < payload.valid_from:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="valid_until must be on or after valid_from")
    coupon = coupon_repo.create_coupon(db, access.organization_id, payload, created_by=access.user.id)
    audit.log_safely(
        db,
        action=audit.AuditAction.COUPON_CREATE,
        target_type="coupon",
        target_id=coupon.id,
        actor_user_id=access.user.id,
        organization_id=access.organization_id,
        metadata={"code": coupon.code, "discount_type": coupon.discount_type, "discount_value": coupon.discount_value},
    )
    return coupon


@router.post("/validate", response_model=schemas.CouponValidation)
def validate_coupon(
    payload: schemas.CouponValidate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    customer_id = access.customer_filter(payload.customer_id)
    with translate_service_errors():
        coupon, discount = coupon_service.check_coupon(
            db, access.organization_id, payload.code, payload.order_total, customer_id=customer_id,
        )
    return {
        "valid": True,
        "coupon_id": coupon.id,
        "code": coupon.code,
        "discount_type": coupon.discount_type,
        "discount_value": coupon.discount_value,
        "discount_amount": float(discount),
    }


@router.get("/{coupon_id}", response_model=schemas.Coupon)
def get_coupon(
    coupon_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    coupon = coupon_repo.get_coupon(db, access.organization_id, coupon_id)
    if coupon is None:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.put("/{coupon_id}", response_model=schemas.Coupon)
def update_coupon(
    coupon_id: uuid.UUID,
    payload: schemas.CouponUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    coupon = coupon_repo.get_coupon(db, access.organization_id, coupon_id)
    if coupon is None:
        raise HTTPException(status_code=404, detail="Coupon not found")
    coupon = coupon_repo.update_coupon(db, coupon, payload)
    audit.log_safely(
        db,
        action=audit.AuditAction.COUPON_UPDATE,
        target_type="coupon",
        target_id=coupon.id,
        actor_user_id=access.user.id,
        organization_id=access.organization_id,
        metadata=payload.model_dump(mode="json", exclude_unset=True),
    )
    return coupon


@router.delete("/{coupon_id}", response_model=schemas.Coupon)
def deactivate_coupon(
    coupon_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    coupon = coupon_repo.get_coupon(db, access.organization_id, coupon_id)
    if coupon is None:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon_repo.update_coupon(db, coupon, schemas.CouponUpdate(is_active=False))
