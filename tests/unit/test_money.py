from decimal import Decimal

from atacado.utils.money import ZERO, floor_points, money_sum, percent_of, to_money


def test_to_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(2.675) == Decimal("2.68")
    assert to_money(Decimal("1.234")) == Decimal("1.23")


def test_to_money_none_is_zero():
    assert to_money(None) == ZERO


def test_percent_of():
    assert percent_of(Decimal("100.00"), 3.5) == Decimal("3.50")
    assert percent_of("33.33", 1) == Decimal("0.33")


def test_floor_points_never_rounds_up():
    assert floor_points(Decimal("99.99")) == 99
    assert floor_points(Decimal("10.50"), 1.5) == 15
    assert floor_points(Decimal("0.99"), 1) == 0


def test_money_sum_mixed_inputs():
    assert money_sum([Decimal("1.10"), 2.2, "3.30", None]) == Decimal("6.60")
    assert money_sum([]) == ZERO
