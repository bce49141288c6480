"""Currency helpers. Amounts are Decimals rounded half-up to cents."""

from decimal import Decimal, ROUND_HALF_UP, ROUND_FLOOR
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Coerce ``value`` (Decimal, int, float, str or None) to a 2-place Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # via str() so floats keep their shortest repr
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Any, percent: Any) -> Decimal:
    """``percent`` (e.g. 3.5) of ``amount``, rounded to cents."""
    return to_money(to_money(amount) * Decimal(str(percent)) / Decimal(100))


def floor_points(amount: Any, multiplier: Any = 1) -> int:
    """Loyalty points earned for ``amount``: floor(amount x multiplier)."""
    value = to_money(amount) * Decimal(str(multiplier))
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def money_sum(values) -> Decimal:
    total = ZERO
    for value in values:
        total += to_money(value)
    return to_money(total)
