"""Prize, redemption and referral repository functions."""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from atacado.db import schemas, models


def get_prize(db: Session, organization_id: uuid.UUID, prize_id: uuid.UUID):
    return (
        db.query(models.Prize)
        .filter(models.Prize.organization_id == organization_id, models.Prize.id == prize_id)
        .first()
    )


def list_prizes(db: Session, organization_id: uuid.UUID, is_active: Optional[bool] = None):
    query = db.query(models.Prize).filter(models.Prize.organization_id == organization_id)
    if is_active is not None:
        query = query.filter(models.Prize.is_active.is_(is_active))
    return query.order_by(models.Prize.points_cost).all()


def create_prize(db: Session, organization_id: uuid.UUID, prize: schemas.PrizeCreate):
    db_prize = models.Prize(organization_id=organization_id, **prize.model_dump())
    db.add(db_prize)
    db.commit()
    db.refresh(db_prize)
    return db_prize


def update_prize(db: Session, db_prize: models.Prize, prize: schemas.PrizeUpdate):
    for key, value in prize.model_dump(exclude_unset=True).items():
        setattr(db_prize, key, value)
    db.commit()
    db.refresh(db_prize)
    return db_prize


def get_redemption(db: Session, organization_id: uuid.UUID, redemption_id: uuid.UUID):
    return (
        db.query(models.Redemption)
        .filter(models.Redemption.organization_id == organization_id, models.Redemption.id == redemption_id)
        .first()
    )


def list_redemptions(
    db: Session,
    organization_id: uuid.UUID,
    customer_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
):
    query = db.query(models.Redemption).filter(models.Redemption.organization_id == organization_id)
    if customer_id:
        query = query.filter(models.Redemption.customer_id == customer_id)
    if status:
        query = query.filter(models.Redemption.status == status)
    return query.order_by(models.Redemption.created_at.desc()).all()


def get_referral_config(db: Session, organization_id: uuid.UUID, create: bool = True):
    config = (
        db.query(models.ReferralConfig)
        .filter(models.ReferralConfig.organization_id == organization_id)
        .first()
    )
    if config is None and create:
        config = models.ReferralConfig(
            organization_id=organization_id,
            bonus_points_per_referral=100,
            bonus_for_referred=0,
            require_first_order=True,
        )
        db.add(config)
        db.flush()
    return config


def update_referral_config(db: Session, organization_id: uuid.UUID, update: schemas.ReferralConfigUpdate):
    config = get_referral_config(db, organization_id)
    for key, value in update.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(config, key, value)
    db.commit()
    db.refresh(config)
    return config


def get_referral_for_referred(db: Session, referred_id: uuid.UUID):
    return db.query(models.Referral).filter(models.Referral.referred_id == referred_id).first()


def list_referrals(db: Session, organization_id: uuid.UUID, referrer_id: Optional[uuid.UUID] = None):
    query = db.query(models.Referral).filter(models.Referral.organization_id == organization_id)
    if referrer_id:
        query = query.filter(models.Referral.referrer_id == referrer_id)
    return query.order_by(models.Referral.created_at.desc()).all()
