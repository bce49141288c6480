"""
Discount coupons.

``check_coupon`` is the single validation path used both by the
``/coupons/validate`` preview and by order creation, so a coupon shown as
valid at checkout is priced the same way when the order is placed.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from atacado.db import models
from atacado.db.repositories import coupons as coupon_repo
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.utils.clock import brasilia_today
from atacado.utils.money import ZERO, percent_of, to_money

logger = logging.getLogger(__name__)


def discount_for(coupon: models.Coupon, order_total: Decimal) -> Decimal:
    """Coupon discount on ``order_total``, capped by ``max_discount`` and by the total itself."""
    order_total = to_money(order_total)
    if coupon.discount_type == 'PERCENTAGE':
        discount = percent_of(order_total, coupon.discount_value)
    else:
        discount = to_money(coupon.discount_value)
    if coupon.max_discount is not None:
        discount = min(discount, to_money(coupon.max_discount))
    return max(ZERO, min(discount, order_total))


def check_coupon(
    db: Session,
    organization_id: uuid.UUID,
    code: str,
    order_total: Decimal,
    customer_id: Optional[uuid.UUID] = None,
    today: Optional[date] = None,
) -> Tuple[models.Coupon, Decimal]:
    """Return the coupon and its discount, or raise when it cannot be applied."""
    if not (code or '').strip():
        raise BusinessRuleError("Coupon code is required")
    coupon = coupon_repo.get_coupon_by_code(db, organization_id, code)
    if coupon is None:
        raise NotFoundError("Coupon not found")
    today = today or brasilia_today()
    if not coupon.is_active:
        raise BusinessRuleError("Coupon is inactive")
    if coupon.valid_from is not None and coupon.valid_from > today:
        raise BusinessRuleError("Coupon is not valid yet")
    if coupon.valid_until is not None and coupon.valid_until < today:
        raise BusinessRuleError("Coupon has expired")
    if coupon.usage_limit is not None and (coupon.usage_count or 0) >= coupon.usage_limit:
        raise BusinessRuleError("Coupon usage limit reached")
    if (
        customer_id is not None
        and coupon.is_one_time_per_customer
        and coupon_repo.customer_has_used(db, coupon.id, customer_id)
    ):
        raise BusinessRuleError("Coupon already used by this customer")
    if coupon.min_order_value is not None and to_money(order_total) < to_money(coupon.min_order_value):
        raise BusinessRuleError(
            f"Minimum order value for this coupon is {to_money(coupon.min_order_value):.2f}",
            detail={
                "message": "Minimum order value not reached",
                "min_order_value": float(to_money(coupon.min_order_value)),
                "order_total": float(to_money(order_total)),
            },
        )
    return coupon, discount_for(coupon, order_total)


def stage_usage(
    db: Session,
    coupon: models.Coupon,
    order: models.Order,
    discount: Decimal,
) -> Optional[models.CouponUsage]:
    """Count the coupon as used by ``order``; customers also get a usage row."""
    coupon.usage_count = (coupon.usage_count or 0) + 1
    if order.customer_id is None:
        return None
    usage = models.CouponUsage(
        coupon_id=coupon.id,
        customer_id=order.customer_id,
        order_id=order.id,
        discount=to_money(discount),
    )
    db.add(usage)
    logger.info("coupon_used code=%s order_id=%s discount=%s", coupon.code, order.id, discount)
    return usage
