"""
Payroll batches and payslip acknowledgments.

Discounts (INSS, IRPF, other) are spread over the base components at a
single rate; extra earnings items are added to the net total untouched.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from atacado import audit
from atacado.db import models, schemas
from atacado.db.repositories import hr as hr_repo
from atacado.services.errors import BusinessRuleError, ConflictError, NotFoundError
from atacado.services.expense_service import PAYROLL_CATEGORY, get_or_create_category
from atacado.utils.money import ZERO, money_sum, to_money

logger = logging.getLogger(__name__)

SALARY_DUE_DAY = 5
BONUS_DUE_DAY = 10
FOOD_VOUCHER_DUE_DAY = 15
ADVANCE_DUE_DAY = 20

ADVANCE_13TH_MARKERS = ('décimo', '13º', 'gratificação')


def compute_payment(data: schemas.EmployeePaymentInput) -> Dict[str, Any]:
    """Gross, discount and net figures for one employee payment."""
    salary_gross = to_money(data.salary_gross_amount)
    advance_gross = to_money(data.advance_gross_amount)
    food_gross = to_money(data.food_voucher_gross_amount)
    bonus_gross = to_money(data.bonus_gross_amount)
    extras = money_sum(item.amount for item in data.earnings_items)
    base_gross = salary_gross + advance_gross + food_gross + bonus_gross
    discounts = to_money(to_money(data.inss_discount) + to_money(data.irpf_discount) + to_money(data.other_discounts))
    rate = (discounts / base_gross) if base_gross > ZERO else Decimal('0')

    def net(gross: Decimal) -> Decimal:
        return to_money(gross * (1 - rate))

    return {
        'salary_gross_amount': salary_gross,
        'advance_gross_amount': advance_gross,
        'food_voucher_gross_amount': food_gross,
        'bonus_gross_amount': bonus_gross,
        'extra_earnings_amount': to_money(extras),
        'total_gross_amount': to_money(base_gross + extras),
        'salary_amount': net(salary_gross),
        'advance_amount': net(advance_gross),
        'food_voucher_amount': net(food_gross),
        'bonus_amount': net(bonus_gross),
        'total_amount': to_money(base_gross - discounts + extras),
        'inss_discount': to_money(data.inss_discount),
        'irpf_discount': to_money(data.irpf_discount),
        'other_discounts': to_money(data.other_discounts),
        'total_discounts': discounts,
    }


def due_dates(month: int, year: int, figures: Dict[str, Any]) -> Dict[str, Optional[date]]:
    """Component due days within the reference month; None when the component is zero."""
    def on(day: int, amount: Decimal) -> Optional[date]:
        return date(year, month, day) if amount > ZERO else None

    return {
        'salary_due_date': on(SALARY_DUE_DAY, figures['salary_amount']),
        'bonus_due_date': on(BONUS_DUE_DAY, figures['bonus_amount']),
        'food_voucher_due_date': on(FOOD_VOUCHER_DUE_DAY, figures['food_voucher_amount']),
        'advance_due_date': on(ADVANCE_DUE_DAY, figures['advance_amount']),
    }


def _expense_plan(payment: models.EmployeePayment, employee_name: str) -> List[Tuple[str, str, Decimal, date]]:
    """(fk column, description, amount, due date) per component that produces a payable."""
    period = f"{payment.month}/{payment.year}"
    # Salary payable carries the net salary plus extra earnings
    salary_payable = to_money(
        to_money(payment.total_amount) - to_money(payment.advance_amount)
        - to_money(payment.food_voucher_amount) - to_money(payment.bonus_amount)
    )
    notes = (payment.notes or '').lower()
    advance_label = 'Décimo Terceiro' if any(marker in notes for marker in ADVANCE_13TH_MARKERS) \
        else 'Adiantamento Salarial'
    plan = []
    if salary_payable > ZERO:
        plan.append(('salary_expense_id', f"Salário - {employee_name} ({period})", salary_payable,
                     payment.salary_due_date or date(payment.year, payment.month, SALARY_DUE_DAY)))
    if to_money(payment.bonus_amount) > ZERO:
        plan.append(('bonus_expense_id', f"Premiação - {employee_name} ({period})",
                     to_money(payment.bonus_amount), payment.bonus_due_date))
    if to_money(payment.food_voucher_amount) > ZERO:
        plan.append(('food_voucher_expense_id', f"Vale Alimentação - {employee_name} ({period})",
                     to_money(payment.food_voucher_amount), payment.food_voucher_due_date))
    if to_money(payment.advance_amount) > ZERO:
        plan.append(('advance_expense_id', f"{advance_label} - {employee_name} ({period})",
                     to_money(payment.advance_amount), payment.advance_due_date))
    return plan


def create_payments(
    db: Session,
    organization_id: uuid.UUID,
    batch: schemas.EmployeePaymentBatch,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
) -> Dict[str, Any]:
    """Create a batch of employee payments, optionally with their PENDING payables."""
    employees = hr_repo.get_employees(db, organization_id, (p.employee_id for p in batch.payments))
    missing = [str(p.employee_id) for p in batch.payments if p.employee_id not in employees]
    if missing:
        raise BusinessRuleError(
            "One or more employees not found",
            detail={"message": "One or more employees not found", "employee_ids": missing},
        )

    payments: List[models.EmployeePayment] = []
    expenses: List[models.Expense] = []
    try:
        category = get_or_create_category(db, organization_id, PAYROLL_CATEGORY) if batch.generate_expenses else None
        for data in batch.payments:
            figures = compute_payment(data)
            payment = models.EmployeePayment(
                organization_id=organization_id,
                employee_id=data.employee_id,
                month=data.month,
                year=data.year,
                earnings_items=[
                    {'description': item.description, 'amount': float(to_money(item.amount))}
                    for item in data.earnings_items
                ] or None,
                notes=data.notes,
                **figures,
                **due_dates(data.month, data.year, figures),
            )
            db.add(payment)
            db.flush()
            payments.append(payment)
            if category is None:
                continue
            for fk, description, amount, due in _expense_plan(payment, employees[data.employee_id].name):
                expense = models.Expense(
                    organization_id=organization_id,
                    description=description,
                    amount=amount,
                    category_id=category.id,
                    expense_type='OPERATIONAL',
                    due_date=due,
                    competence_date=due,
                    status='PENDING',
                    notes=f"Ref: Pagamento {payment.id}",
                )
                db.add(expense)
                db.flush()
                setattr(payment, fk, expense.id)
                expenses.append(expense)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Could not create employee payments") from e
    except Exception:
        db.rollback()
        raise
    for payment in payments:
        db.refresh(payment)
    logger.info("payroll_created organization_id=%s payments=%d expenses=%d", organization_id, len(payments), len(expenses))
    audit.log_safely(
        db,
        action=audit.AuditAction.PAYROLL_CREATE,
        target_type="organization",
        target_id=organization_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={
            "payments": len(payments),
            "expenses": len(expenses),
            "total": float(money_sum(p.total_amount for p in payments)),
        },
    )
    return {'payments': payments, 'expense_ids': [e.id for e in expenses]}


def acknowledge(
    db: Session,
    organization_id: uuid.UUID,
    payment_id: uuid.UUID,
    *,
    user_id: uuid.UUID,
    is_staff: bool,
    ip_address: Optional[str] = None,
    notes: Optional[str] = None,
) -> models.PaymentAcknowledgment:
    """Record that the employee saw the payslip. Only the employee's user or staff may do it."""
    payment = hr_repo.get_payment(db, organization_id, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    employee = payment.employee
    if not is_staff and (employee is None or employee.user_id != user_id):
        raise BusinessRuleError("You can only acknowledge your own payments", status_code=403)
    if hr_repo.get_acknowledgment(db, payment.id, payment.employee_id) is not None:
        raise ConflictError("Payment already acknowledged")
    try:
        ack = models.PaymentAcknowledgment(
            payment_id=payment.id,
            employee_id=payment.employee_id,
            acknowledged_by=user_id,
            ip_address=ip_address,
            notes=notes,
        )
        db.add(ack)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Payment already acknowledged") from e
    except Exception:
        db.rollback()
        raise
    db.refresh(ack)
    audit.log_safely(
        db,
        action=audit.AuditAction.PAYROLL_ACKNOWLEDGE,
        target_type="employee_payment",
        target_id=payment.id,
        actor_user_id=user_id,
        organization_id=organization_id,
        metadata={"employee_id": str(payment.employee_id)},
    )
    return ack


def unacknowledged(db: Session, organization_id: uuid.UUID, month: int, year: int) -> List[Dict[str, Any]]:
    rows = []
    for payment in hr_repo.list_payments(db, organization_id, month=month, year=year):
        if payment.acknowledgments:
            continue
        rows.append({
            'employee_id': payment.employee_id,
            'employee_name': payment.employee.name if payment.employee else '',
            'payment_id': payment.id,
            'total_amount': float(to_money(payment.total_amount)),
        })
    return rows
