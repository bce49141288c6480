import uuid
from datetime import date
from decimal import Decimal

from atacado.db import schemas
from atacado.services.payroll_service import compute_payment, due_dates


def _input(**fields):
    return schemas.EmployeePaymentInput(employee_id=uuid.uuid4(), month=6, year=2024, **fields)


def test_discount_rate_spread_over_base_components():
    figures = compute_payment(_input(
        salary_gross_amount=Decimal("2000"),
        food_voucher_gross_amount=Decimal("400"),
        inss_discount=Decimal("160"),
        other_discounts=Decimal("80"),
        earnings_items=[{"description": "Hora extra", "amount": Decimal("100")}],
    ))
    assert figures["total_discounts"] == Decimal("240.00")
    assert figures["salary_amount"] == Decimal("1800.00")
    assert figures["food_voucher_amount"] == Decimal("360.00")
    assert figures["extra_earnings_amount"] == Decimal("100.00")
    assert figures["total_gross_amount"] == Decimal("2500.00")
    assert figures["total_amount"] == Decimal("2260.00")


def test_no_gross_means_no_rate():
    figures = compute_payment(_input(earnings_items=[{"description": "Comissão", "amount": Decimal("50")}]))
    assert figures["salary_amount"] == Decimal("0.00")
    assert figures["total_amount"] == Decimal("50.00")


def test_due_dates_only_for_paid_components():
    figures = compute_payment(_input(salary_gross_amount=Decimal("1500"), advance_gross_amount=Decimal("600")))
    assert due_dates(6, 2024, figures) == {
        "salary_due_date": date(2024, 6, 5),
        "bonus_due_date": None,
        "food_voucher_due_date": None,
        "advance_due_date": date(2024, 6, 20),
    }
