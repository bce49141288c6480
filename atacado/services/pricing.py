"""Unit price resolution for order items."""
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Tuple

from atacado.db import models
from atacado.utils.money import ZERO, to_money


def _bulk_price(product: models.Product, quantity: int) -> Optional[Decimal]:
    if (
        product.bulk_discount_min_qty
        and product.bulk_discount_price
        and quantity >= product.bulk_discount_min_qty
    ):
        return to_money(product.bulk_discount_price)
    return None


def resolve_unit_price(
    product: models.Product,
    quantity: int,
    order_type: str,
    payment_method: Optional[str],
    custom_price: Optional[Decimal] = None,
) -> Tuple[Decimal, bool]:
    """Return ``(unit_price, promotional)`` for one order line.

    Priority: promotion (not for boleto), the lower of custom and bulk price,
    custom price, bulk price, then the wholesale/retail base price.
    """
    custom = to_money(custom_price) if custom_price is not None else None
    if custom is not None and custom <= ZERO:
        custom = None
    bulk = _bulk_price(product, quantity)

    if product.is_on_promotion and product.promotional_price and payment_method != 'BOLETO':
        return to_money(product.promotional_price), True
    if custom is not None and bulk is not None:
        return min(custom, bulk), False
    if custom is not None:
        return custom, False
    if bulk is not None:
        return bulk, False
    base = product.price_wholesale if order_type == 'WHOLESALE' else product.price_retail
    return to_money(base), False
