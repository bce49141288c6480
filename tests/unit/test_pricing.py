from decimal import Decimal

import pytest

from atacado.db import models
from atacado.services.order_service import parse_installments, split_amount
from atacado.services.pricing import resolve_unit_price


def _product(**overrides):
    fields = dict(
        name="Pão de Queijo",
        price_wholesale=Decimal("20.00"),
        price_retail=Decimal("25.00"),
        is_on_promotion=False,
        promotional_price=None,
        bulk_discount_min_qty=None,
        bulk_discount_price=None,
    )
    fields.update(overrides)
    return models.Product(**fields)


def test_base_price_by_order_type():
    product = _product()
    assert resolve_unit_price(product, 1, "WHOLESALE", "PIX") == (Decimal("20.00"), False)
    assert resolve_unit_price(product, 1, "RETAIL", "PIX") == (Decimal("25.00"), False)


def test_promotion_wins_except_for_boleto():
    product = _product(is_on_promotion=True, promotional_price=Decimal("15.00"))
    assert resolve_unit_price(product, 1, "WHOLESALE", "PIX", Decimal("12.00")) == (Decimal("15.00"), True)
    assert resolve_unit_price(product, 1, "WHOLESALE", "BOLETO") == (Decimal("20.00"), False)


def test_lower_of_custom_and_bulk():
    product = _product(bulk_discount_min_qty=10, bulk_discount_price=Decimal("18.00"))
    assert resolve_unit_price(product, 10, "WHOLESALE", "PIX", Decimal("17.50"))[0] == Decimal("17.50")
    assert resolve_unit_price(product, 10, "WHOLESALE", "PIX", Decimal("19.00"))[0] == Decimal("18.00")


def test_bulk_requires_minimum_quantity():
    product = _product(bulk_discount_min_qty=10, bulk_discount_price=Decimal("18.00"))
    assert resolve_unit_price(product, 9, "WHOLESALE", "CASH")[0] == Decimal("20.00")


def test_non_positive_custom_price_is_ignored():
    assert resolve_unit_price(_product(), 1, "WHOLESALE", "CASH", Decimal("0"))[0] == Decimal("20.00")


@pytest.mark.parametrize("value,expected", [
    ("3x-30-60-90", [30, 60, 90]),
    ("1x-15", [15]),
    ("2x-30", None),
    ("30/60", None),
    (None, None),
])
def test_parse_installments(value, expected):
    assert parse_installments(value) == expected


def test_split_amount_last_part_absorbs_remainder():
    parts = split_amount(Decimal("100.00"), 3)
    assert parts == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(parts) == Decimal("100.00")
