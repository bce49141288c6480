"""Coupon repository functions."""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from atacado.db import schemas, models
from atacado.utils.money import to_money

_MONEY_FIELDS = ("min_order_value", "max_discount")


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def get_coupon(db: Session, organization_id: uuid.UUID, coupon_id: uuid.UUID):
    return (
        db.query(models.Coupon)
        .filter(models.Coupon.organization_id == organization_id, models.Coupon.id == coupon_id)
        .first()
    )


def get_coupon_by_code(db: Session, organization_id: uuid.UUID, code: str):
    return (
        db.query(models.Coupon)
        .filter(models.Coupon.organization_id == organization_id, models.Coupon.code == normalize_code(code))
        .first()
    )


def list_coupons(db: Session, organization_id: uuid.UUID, is_active: Optional[bool] = None):
    query = db.query(models.Coupon).filter(models.Coupon.organization_id == organization_id)
    if is_active is not None:
        query = query.filter(models.Coupon.is_active.is_(is_active))
    return query.order_by(models.Coupon.created_at.desc()).all()


def create_coupon(db: Session, organization_id: uuid.UUID, coupon: schemas.CouponCreate,
                  created_by: Optional[uuid.UUID] = None):
    data = coupon.model_dump()
    data["code"] = normalize_code(data["code"])
    for field in _MONEY_FIELDS:
        if data.get(field) is not None:
            data[field] = to_money(data[field])
    db_coupon = models.Coupon(organization_id=organization_id, created_by=created_by, usage_count=0, **data)
    db.add(db_coupon)
    db.commit()
    db.refresh(db_coupon)
    return db_coupon


def update_coupon(db: Session, db_coupon: models.Coupon, coupon: schemas.CouponUpdate):
    for key, value in coupon.model_dump(exclude_unset=True).items():
        if key in _MONEY_FIELDS and value is not None:
            value = to_money(value)
        setattr(db_coupon, key, value)
    db.commit()
    db.refresh(db_coupon)
    return db_coupon


def customer_has_used(db: Session, coupon_id: uuid.UUID, customer_id: uuid.UUID) -> bool:
    return (
        db.query(models.CouponUsage.id)
        .filter(models.CouponUsage.coupon_id == coupon_id, models.CouponUsage.customer_id == customer_id)
        .first()
        is not None
    )
