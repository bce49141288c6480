"""
DRE (Demonstração do Resultado do Exercício) for a date range.

Ranges are inclusive calendar days in Brasília time.
"""
from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict

from sqlalchemy.orm import Session

from atacado.db import models, schemas
from atacado.db.repositories import expenses as expense_repo
from atacado.db.repositories import orders as order_repo
from atacado.services.errors import BusinessRuleError
from atacado.utils.clock import as_utc, brasilia_midnight_utc, to_brasilia
from atacado.utils.money import ZERO, money_sum, to_money

COST_OF_GOODS_TYPES = ('PRODUCTS', 'RAW_MATERIALS')
UNCATEGORIZED = 'Sem Categoria'


def competence_day(expense: models.Expense) -> date:
    """Competence date, else the payment day of a paid expense, else the due date."""
    if expense.competence_date is not None:
        return expense.competence_date
    if expense.status == 'PAID' and expense.payment_date is not None:
        return to_brasilia(expense.payment_date).date()
    return expense.due_date


def _margin(value: Decimal, base: Decimal) -> float:
    if base == ZERO:
        return 0.0
    return round(float(value / base * 100), 2)


def dre(db: Session, organization_id: uuid.UUID, start_date: date, end_date: date) -> schemas.DreReport:
    if start_date is None or end_date is None:
        raise BusinessRuleError("start_date and end_date are required")
    if end_date < start_date:
        raise BusinessRuleError("end_date must be on or after start_date")
    start = brasilia_midnight_utc(start_date)
    end = brasilia_midnight_utc(end_date + timedelta(days=1)) - timedelta(microseconds=1)

    orders = order_repo.list_orders_created_between(db, organization_id, start, end, status='DELIVERED')
    gross_revenue = money_sum(o.subtotal for o in orders)
    discounts = money_sum(o.discount for o in orders)
    total_revenue = money_sum(o.total for o in orders)
    card_fees = money_sum(o.card_fee for o in orders)
    net_revenue = to_money(total_revenue - discounts)

    received = [
        r for r in (
            db.query(models.Receivable)
            .filter(
                models.Receivable.organization_id == organization_id,
                models.Receivable.status == 'PAID',
                models.Receivable.payment_date.isnot(None),
            )
            .all()
        )
        if start <= as_utc(r.payment_date) <= end
    ]
    received_amount = money_sum(r.net_amount if r.net_amount is not None else r.amount for r in received)
    receivable_fees = money_sum(r.fee_amount for r in received)

    expenses = [
        e for e in expense_repo.list_all_with_category(db, organization_id)
        if start_date <= competence_day(e) <= end_date
    ]
    by_category: Dict[str, list] = defaultdict(lambda: [ZERO, 0])
    by_type: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        name = expense.category.name if expense.category else UNCATEGORIZED
        by_category[name][0] += to_money(expense.amount)
        by_category[name][1] += 1
        by_type[expense.expense_type] += to_money(expense.amount)
    total_expenses = money_sum(e.amount for e in expenses)
    expense_fees = money_sum(e.fee_amount for e in expenses)
    cost_of_goods = money_sum(by_type[t] for t in COST_OF_GOODS_TYPES)

    gross_profit = to_money(net_revenue - cost_of_goods)
    operating_income = to_money(net_revenue - total_expenses)
    financial_result = to_money(-(card_fees + expense_fees + receivable_fees))
    net_income = to_money(operating_income + financial_result)

    return schemas.DreReport(
        start_date=start_date,
        end_date=end_date,
        revenue=schemas.DreRevenue(
            order_count=len(orders),
            gross_revenue=float(gross_revenue),
            discounts=float(discounts),
            total_revenue=float(total_revenue),
            net_revenue=float(net_revenue),
            card_fees=float(card_fees),
            received_amount=float(received_amount),
            receivable_fees=float(receivable_fees),
        ),
        expenses=schemas.DreExpenses(
            total_expenses=float(total_expenses),
            expense_fees=float(expense_fees),
            by_category=sorted(
                (
                    schemas.DreExpenseGroup(name=name, total=float(to_money(total)), count=count)
                    for name, (total, count) in by_category.items()
                ),
                key=lambda group: group.total,
                reverse=True,
            ),
            by_type={key: float(to_money(value)) for key, value in by_type.items()},
        ),
        result=schemas.DreResult(
            gross_profit=float(gross_profit),
            operating_income=float(operating_income),
            financial_result=float(financial_result),
            net_income=float(net_income),
            gross_margin=_margin(gross_profit, net_revenue),
            operating_margin=_margin(operating_income, net_revenue),
            net_margin=_margin(net_income, net_revenue),
        ),
    )
