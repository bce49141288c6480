"""
Customer credit accounting.

``available_credit`` is consumed by open boletos and receivables and given
back when they are paid or cancelled, never above ``credit_limit``.
"""
from __future__ import annotations

import logging
import time
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from atacado.db import models
from atacado.db.repositories import boletos as boleto_repo
from atacado.db.repositories import receivables as receivable_repo
from atacado.services.errors import BusinessRuleError
from atacado.utils.clock import brasilia_today
from atacado.utils.money import ZERO, money_sum, to_money

logger = logging.getLogger(__name__)

CREDIT_AUDIT_TOLERANCE = Decimal('1.00')


def restore_credit(customer: models.Customer, amount: Decimal) -> Decimal:
    """Give ``amount`` back to the customer, capped at the limit. Returns the new value."""
    limit = to_money(customer.credit_limit)
    customer.available_credit = min(limit, to_money(customer.available_credit) + to_money(amount))
    return customer.available_credit


def consume_credit(customer: models.Customer, amount: Decimal) -> Decimal:
    customer.available_credit = to_money(customer.available_credit) - to_money(amount)
    return customer.available_credit


def overdue_summary(db: Session, customer: models.Customer, today: Optional[date] = None) -> Tuple[int, Decimal]:
    """Count and sum of overdue boletos plus overdue receivables not backed by a boleto."""
    today = today or brasilia_today()
    overdue = [
        b.amount for b in boleto_repo.list_open_boletos(db, customer.id)
        if b.status == 'OVERDUE' or b.due_date < today
    ]
    overdue += [
        r.amount for r in receivable_repo.list_open_without_boleto(db, customer.id)
        if r.status == 'OVERDUE' or r.due_date < today
    ]
    return len(overdue), money_sum(overdue)


def is_blocked(db: Session, customer: models.Customer) -> Tuple[bool, int, Decimal]:
    count, amount = overdue_summary(db, customer)
    blocked = count > 0 and not customer.manually_unblocked
    return blocked, count, amount


def credit_summary(db: Session, customer: models.Customer) -> Dict[str, Any]:
    open_boletos = money_sum(b.amount for b in boleto_repo.list_open_boletos(db, customer.id))
    open_receivables = money_sum(r.amount for r in receivable_repo.list_open_without_boleto(db, customer.id))
    blocked, overdue_count, overdue_amount = is_blocked(db, customer)
    limit = to_money(customer.credit_limit)
    available = to_money(customer.available_credit)
    return {
        'customer_id': customer.id,
        'credit_limit': float(limit),
        'available_credit': float(available),
        'used_credit': float(limit - available),
        'open_boletos': float(open_boletos),
        'open_receivables': float(open_receivables),
        'overdue_count': overdue_count,
        'overdue_amount': float(overdue_amount),
        'manually_unblocked': bool(customer.manually_unblocked),
        'blocked': blocked,
    }


def expected_available_credit(db: Session, customer: models.Customer) -> Decimal:
    open_boletos = money_sum(b.amount for b in boleto_repo.list_open_boletos(db, customer.id))
    open_receivables = money_sum(r.amount for r in receivable_repo.list_open_without_boleto(db, customer.id))
    return to_money(customer.credit_limit) - open_boletos - open_receivables


def run_credit_audit(db: Session, organization_id: uuid.UUID, auto_fix: bool = False) -> Dict[str, Any]:
    """Recompute every customer's expected credit and report (or fix) drifts above 1.00."""
    customers = (
        db.query(models.Customer)
        .filter(models.Customer.organization_id == organization_id, models.Customer.credit_limit > 0)
        .all()
    )
    entries: List[Dict[str, Any]] = []
    fixed = 0
    for customer in customers:
        expected = expected_available_credit(db, customer)
        current = to_money(customer.available_credit)
        difference = to_money(current - expected)
        if abs(difference) <= CREDIT_AUDIT_TOLERANCE:
            continue
        entry = {
            'customer_id': customer.id,
            'customer_name': customer.name,
            'credit_limit': float(to_money(customer.credit_limit)),
            'current_available': float(current),
            'expected_available': float(expected),
            'difference': float(difference),
            'fixed': False,
        }
        if auto_fix:
            customer.available_credit = expected
            entry['fixed'] = True
            fixed += 1
        entries.append(entry)
    if fixed:
        db.commit()
        logger.info("credit_audit_fixed organization_id=%s fixed=%d", organization_id, fixed)
    return {'checked': len(customers), 'inconsistent': len(entries), 'fixed': fixed, 'entries': entries}


# Validation helpers for ledger rows

def validate_receivable_data(amount: Decimal, customer_id: Optional[uuid.UUID], due_date: Optional[date] = None) -> None:
    if to_money(amount) <= ZERO:
        raise BusinessRuleError("Receivable amount must be greater than zero")
    if not customer_id:
        raise BusinessRuleError("customer_id is required to create a receivable")
    if due_date is not None and due_date < brasilia_today():
        logger.warning("receivable_due_date_in_past due_date=%s", due_date)


def validate_boleto_data(amount: Decimal, customer_id: Optional[uuid.UUID], order_id: Optional[uuid.UUID],
                         due_date: Optional[date] = None) -> None:
    if to_money(amount) <= ZERO:
        raise BusinessRuleError("Boleto amount must be greater than zero")
    if not customer_id:
        raise BusinessRuleError("customer_id is required to create a boleto")
    if not order_id:
        raise BusinessRuleError("order_id is required to create a boleto")
    if due_date is not None and due_date < brasilia_today():
        logger.warning("boleto_due_date_in_past due_date=%s", due_date)


def order_has_boleto(db: Session, order_id: uuid.UUID) -> bool:
    return db.query(models.Boleto.id).filter(models.Boleto.order_id == order_id).first() is not None


def document_number(db: Session, prefix: str, column, suffix: str = '') -> str:
    """``prefix`` + last 8 digits of epoch milliseconds, bumped until unused."""
    seed = int(time.time() * 1000) % 100_000_000
    while True:
        candidate = f"{prefix}{seed:08d}{suffix}"
        if db.query(column).filter(column == candidate).first() is None:
            return candidate
        seed = (seed + 1) % 100_000_000


def create_boleto_with_receivable(
    db: Session,
    *,
    organization_id: uuid.UUID,
    customer_id: uuid.UUID,
    order_id: uuid.UUID,
    amount: Decimal,
    due_date: date,
    boleto_number: Optional[str] = None,
    description: Optional[str] = None,
    notes: Optional[str] = None,
    installment_number: Optional[int] = None,
    total_installments: Optional[int] = None,
) -> Tuple[models.Boleto, models.Receivable]:
    """Stage a PENDING boleto and its BOLETO receivable. The caller commits."""
    validate_boleto_data(amount, customer_id, order_id, due_date)
    if order_has_boleto(db, order_id) and not total_installments:
        logger.warning("order_already_has_boleto order_id=%s", order_id)
    suffix = f"-{installment_number}" if total_installments and total_installments > 1 else ''
    boleto = models.Boleto(
        organization_id=organization_id,
        boleto_number=boleto_number or document_number(db, 'BOL', models.Boleto.boleto_number, suffix),
        customer_id=customer_id,
        order_id=order_id,
        amount=to_money(amount),
        due_date=due_date,
        status='PENDING',
        is_installment=bool(total_installments and total_installments > 1),
        installment_number=installment_number,
        total_installments=total_installments,
        notes=notes,
    )
    db.add(boleto)
    db.flush()
    receivable = models.Receivable(
        organization_id=organization_id,
        customer_id=customer_id,
        order_id=order_id,
        boleto_id=boleto.id,
        description=description or f"Boleto {boleto.boleto_number}",
        amount=boleto.amount,
        due_date=due_date,
        status='PENDING',
        payment_method='BOLETO',
        is_installment=boleto.is_installment,
        installment_number=installment_number,
        total_installments=total_installments,
        notes=notes,
    )
    db.add(receivable)
    return boleto, receivable
