"""
Loyalty program: points ledger, prize redemptions and referrals.

Helpers prefixed with ``stage_`` only touch the session; the public
operations commit once and roll back on failure.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, UTC
from typing import Optional

from sqlalchemy.orm import Session

from atacado.db import models
from atacado.db.repositories import customers as customer_repo
from atacado.db.repositories import loyalty as loyalty_repo
from atacado.db.repositories import orders as order_repo
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.utils.money import floor_points

logger = logging.getLogger(__name__)

REDEMPTION_ACTIONS = ('approve', 'reject', 'deliver', 'cancel')


def stage_points(
    db: Session,
    customer: models.Customer,
    points: int,
    type: str,
    description: str,
    order_id: Optional[uuid.UUID] = None,
    multiplier: float = 1.0,
) -> models.PointTransaction:
    """Move the customer's balance and stage the ledger row."""
    customer.points_balance = (customer.points_balance or 0) + points
    if points > 0 and type != 'MANUAL_ADJUSTMENT':
        customer.total_points_earned = (customer.total_points_earned or 0) + points
    row = models.PointTransaction(
        organization_id=customer.organization_id,
        customer_id=customer.id,
        order_id=order_id,
        type=type,
        points=points,
        multiplier_applied=multiplier,
        description=description,
    )
    db.add(row)
    return row


def stage_order_points(db: Session, order: models.Order, customer: models.Customer) -> int:
    """EARNED points for a delivered order: floor(total x multiplier)."""
    if order.points_earned:
        return 0
    multiplier = customer.points_multiplier or 1.0
    points = floor_points(order.total, multiplier)
    if points <= 0:
        return 0
    stage_points(
        db, customer, points, 'EARNED',
        f"Pedido #{order.order_number} entregue",
        order_id=order.id, multiplier=multiplier,
    )
    order.points_earned = points
    return points


def _stage_referral_bonus(db: Session, referral: models.Referral, config: models.ReferralConfig) -> None:
    referrer = db.get(models.Customer, referral.referrer_id)
    referred = db.get(models.Customer, referral.referred_id)
    bonus = config.bonus_points_per_referral or 0
    if referrer is not None and bonus > 0:
        stage_points(db, referrer, bonus, 'REFERRAL_BONUS', f"Indicação de {referred.name if referred else 'cliente'}")
    if referred is not None and (config.bonus_for_referred or 0) > 0:
        stage_points(db, referred, config.bonus_for_referred, 'REFERRAL_BONUS', "Bônus de boas-vindas por indicação")
    referral.status = 'COMPLETED'
    referral.bonus_points = bonus
    referral.completed_at = datetime.now(UTC)


def stage_referral_completion(db: Session, customer: models.Customer, order_id: Optional[uuid.UUID] = None) -> Optional[models.Referral]:
    """Complete the customer's pending referral on their first delivered order."""
    referral = loyalty_repo.get_referral_for_referred(db, customer.id)
    if referral is None or referral.status != 'PENDING':
        return None
    config = loyalty_repo.get_referral_config(db, customer.organization_id)
    if config.require_first_order and order_repo.count_delivered_orders(db, customer.id, exclude_order_id=order_id) > 0:
        return None
    _stage_referral_bonus(db, referral, config)
    return referral


def adjust_points(db: Session, organization_id: uuid.UUID, customer_id: uuid.UUID, points: int, description: str):
    customer = customer_repo.get_customer(db, organization_id, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    if points == 0:
        raise BusinessRuleError("Points must be different from zero")
    if (customer.points_balance or 0) + points < 0:
        raise BusinessRuleError("Insufficient points balance")
    try:
        stage_points(db, customer, points, 'MANUAL_ADJUSTMENT', description)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(customer)
    return customer


def request_redemption(
    db: Session,
    organization_id: uuid.UUID,
    customer_id: uuid.UUID,
    prize_id: uuid.UUID,
    notes: Optional[str] = None,
) -> models.Redemption:
    customer = customer_repo.get_customer(db, organization_id, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    prize = loyalty_repo.get_prize(db, organization_id, prize_id)
    if prize is None or not prize.is_active:
        raise NotFoundError("Prize not found")
    if prize.stock_quantity is not None and prize.stock_quantity < 1:
        raise BusinessRuleError("Prize out of stock")
    if (customer.points_balance or 0) < prize.points_cost:
        raise BusinessRuleError(
            "Insufficient points",
            detail={
                "message": "Insufficient points",
                "points_balance": customer.points_balance,
                "points_cost": prize.points_cost,
            },
        )
    try:
        redemption = models.Redemption(
            organization_id=organization_id,
            customer_id=customer.id,
            prize_id=prize.id,
            points_used=prize.points_cost,
            status='PENDING',
            notes=notes,
        )
        db.add(redemption)
        stage_points(db, customer, -prize.points_cost, 'REDEEMED', f"Resgate: {prize.name}")
        customer.total_points_redeemed = (customer.total_points_redeemed or 0) + prize.points_cost
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(redemption)
    return redemption


def process_redemption(
    db: Session,
    organization_id: uuid.UUID,
    redemption_id: uuid.UUID,
    action: str,
    processed_by: Optional[str] = None,
    notes: Optional[str] = None,
    rejection_reason: Optional[str] = None,
) -> models.Redemption:
    """Apply approve/reject/deliver/cancel to a redemption."""
    if action not in REDEMPTION_ACTIONS:
        raise BusinessRuleError("Invalid action")
    redemption = loyalty_repo.get_redemption(db, organization_id, redemption_id)
    if redemption is None:
        raise NotFoundError("Redemption not found")
    prize = redemption.prize
    previous = redemption.status
    return_points = False

    if action == 'approve':
        if previous != 'PENDING':
            raise BusinessRuleError("Only pending redemptions can be approved")
        if prize.stock_quantity is not None and prize.stock_quantity < 1:
            raise BusinessRuleError("Prize out of stock")
        new_status = 'APPROVED'
    elif action == 'reject':
        if previous not in ('PENDING', 'APPROVED'):
            raise BusinessRuleError("Only pending or approved redemptions can be rejected")
        new_status = 'REJECTED'
        return_points = True
    elif action == 'deliver':
        if previous != 'APPROVED':
            raise BusinessRuleError("Only approved redemptions can be delivered")
        new_status = 'DELIVERED'
    else:
        if previous in ('DELIVERED', 'CANCELLED', 'REJECTED'):
            raise BusinessRuleError(f"Redemption is already {previous}")
        new_status = 'CANCELLED'
        return_points = True

    try:
        redemption.status = new_status
        redemption.processed_at = datetime.now(UTC)
        redemption.processed_by = processed_by
        if notes:
            redemption.notes = notes
        if action == 'reject':
            redemption.rejection_reason = rejection_reason
        if action == 'approve' and prize.stock_quantity is not None:
            prize.stock_quantity -= 1
        if action in ('reject', 'cancel') and previous == 'APPROVED' and prize.stock_quantity is not None:
            prize.stock_quantity += 1
        if return_points and redemption.points_used > 0:
            customer = db.get(models.Customer, redemption.customer_id)
            label = 'rejeitado' if action == 'reject' else 'cancelado'
            stage_points(
                db, customer, redemption.points_used, 'MANUAL_ADJUSTMENT',
                f"Devolução de pontos - Resgate {label}: {prize.name}",
            )
            customer.total_points_redeemed = max(0, (customer.total_points_redeemed or 0) - redemption.points_used)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(redemption)
    logger.info("redemption_processed id=%s action=%s from=%s", redemption.id, action, previous)
    return redemption


def create_referral(db: Session, organization_id: uuid.UUID, referrer_id: uuid.UUID, referred_id: uuid.UUID) -> models.Referral:
    if referrer_id == referred_id:
        raise BusinessRuleError("A customer cannot refer themselves")
    referrer = customer_repo.get_customer(db, organization_id, referrer_id)
    referred = customer_repo.get_customer(db, organization_id, referred_id)
    if referrer is None or referred is None:
        raise NotFoundError("Customer not found")
    if loyalty_repo.get_referral_for_referred(db, referred_id) is not None or referred.referred_by_id:
        raise BusinessRuleError("Customer was already referred")
    try:
        config = loyalty_repo.get_referral_config(db, organization_id)
        referral = models.Referral(
            organization_id=organization_id,
            referrer_id=referrer.id,
            referred_id=referred.id,
            status='PENDING',
            bonus_points=0,
        )
        db.add(referral)
        referred.referred_by_id = referrer.id
        db.flush()
        if not config.require_first_order:
            _stage_referral_bonus(db, referral, config)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(referral)
    return referral
