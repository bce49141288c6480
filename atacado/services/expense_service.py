"""
Accounts payable.

Paying an expense debits the bank account and, when the expense was
generated by payroll, flags the matching employee payment component.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from atacado import audit
from atacado.db import models, schemas
from atacado.db.repositories import banking as banking_repo
from atacado.db.repositories import expenses as expense_repo
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

PAYROLL_CATEGORY = 'Salario/Funcionarios/Beneficios'

DEFAULT_CATEGORIES = (
    ('Marketing', 'OPERATIONAL'),
    ('Aluguel', 'OPERATIONAL'),
    ('Salários', 'OPERATIONAL'),
    ('Contas (Luz, Água, Internet)', 'OPERATIONAL'),
    ('Taxa de Cartão', 'OPERATIONAL'),
    (PAYROLL_CATEGORY, 'OPERATIONAL'),
    ('Embalagens', 'PRODUCTS'),
    ('Palitos e Espetos', 'PRODUCTS'),
    ('Temperos e Condimentos', 'PRODUCTS'),
    ('Carne Bovina', 'RAW_MATERIALS'),
    ('Frango', 'RAW_MATERIALS'),
    ('Queijo', 'RAW_MATERIALS'),
    ('Linguiça', 'RAW_MATERIALS'),
    ('Investimentos', 'OTHER'),
    ('Pró-labore', 'OTHER'),
    ('Outras Despesas', 'OTHER'),
)

# EmployeePayment columns per generated expense: (expense fk, paid flag)
PAYROLL_COMPONENTS = (
    ('salary_expense_id', 'salary_paid'),
    ('bonus_expense_id', 'bonus_paid'),
    ('food_voucher_expense_id', 'food_voucher_paid'),
    ('advance_expense_id', 'advance_paid'),
)


def seed_categories(db: Session, organization_id: uuid.UUID) -> List[models.ExpenseCategory]:
    """Create the default categories that do not exist yet. Returns the created ones."""
    created = []
    try:
        for name, expense_type in DEFAULT_CATEGORIES:
            if expense_repo.get_category_by_name(db, organization_id, name) is not None:
                continue
            created.append(expense_repo.create_category(
                db, organization_id,
                schemas.ExpenseCategoryCreate(name=name, expense_type=expense_type),
                commit=False,
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("expense_categories_seeded organization_id=%s created=%d", organization_id, len(created))
    return created


def get_or_create_category(db: Session, organization_id: uuid.UUID, name: str,
                           expense_type: str = 'OPERATIONAL') -> models.ExpenseCategory:
    """Find a category by name (staged when missing, not committed)."""
    category = expense_repo.get_category_by_name(db, organization_id, name)
    if category is None:
        category = expense_repo.create_category(
            db, organization_id,
            schemas.ExpenseCategoryCreate(name=name, expense_type=expense_type),
            commit=False,
        )
    return category


def create_expense(db: Session, organization_id: uuid.UUID, payload: schemas.ExpenseCreate) -> models.Expense:
    extra = {}
    if payload.category_id is not None:
        category = expense_repo.get_category(db, organization_id, payload.category_id)
        if category is None:
            raise NotFoundError("Expense category not found")
        # The category decides the DRE bucket unless one was given explicitly
        if 'expense_type' not in payload.model_fields_set:
            extra['expense_type'] = category.expense_type
    if payload.competence_date is None:
        extra['competence_date'] = payload.due_date
    return expense_repo.create_expense(db, organization_id, payload, **extra)


def get_expense_or_404(db: Session, organization_id: uuid.UUID, expense_id: uuid.UUID) -> models.Expense:
    expense = expense_repo.get_expense(db, organization_id, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def _payroll_payment_for(db: Session, expense_id: uuid.UUID) -> Optional[models.EmployeePayment]:
    return (
        db.query(models.EmployeePayment)
        .filter(or_(*(getattr(models.EmployeePayment, fk) == expense_id for fk, _ in PAYROLL_COMPONENTS)))
        .first()
    )


def _mark_payroll_component_paid(db: Session, expense: models.Expense, paid_at: datetime) -> Optional[models.EmployeePayment]:
    payment = _payroll_payment_for(db, expense.id)
    if payment is None:
        return None
    for fk, flag in PAYROLL_COMPONENTS:
        if getattr(payment, fk) == expense.id:
            setattr(payment, flag, True)
    generated = [flag for fk, flag in PAYROLL_COMPONENTS if getattr(payment, fk) is not None]
    if generated and all(getattr(payment, flag) for flag in generated):
        payment.is_paid = True
        payment.paid_at = paid_at
    return payment


def pay_expense(
    db: Session,
    organization_id: uuid.UUID,
    expense_id: uuid.UUID,
    payload: schemas.ExpensePay,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    actor_email: Optional[str] = None,
) -> models.Expense:
    if not payload.bank_account_id:
        raise BusinessRuleError("bank_account_id is required")
    account = banking_repo.get_bank_account(db, organization_id, payload.bank_account_id)
    if account is None:
        raise NotFoundError("Bank account not found")
    expense = get_expense_or_404(db, organization_id, expense_id)
    if expense.status == 'PAID':
        raise BusinessRuleError("Expense already paid")
    if expense.status == 'CANCELLED':
        raise BusinessRuleError("Expense is cancelled")

    fee = to_money(expense.fee_amount or ZERO)
    total = to_money(to_money(expense.amount) + fee)
    paid_at = payload.payment_date or datetime.now(UTC)
    try:
        expense.status = 'PAID'
        expense.payment_date = paid_at
        expense.bank_account_id = account.id
        expense.paid_by = actor_email
        banking_repo.record_movement(
            db, account,
            type='EXPENSE',
            amount=total,
            description=f"Pagamento: {expense.description}",
            category=expense.category.name if expense.category else None,
            reference_type='EXPENSE',
            reference_id=expense.id,
            notes=f"Taxa: R$ {fee:.2f}" if fee > ZERO else None,
            date=paid_at,
            created_by=actor_email,
        )
        payroll = _mark_payroll_component_paid(db, expense, paid_at)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(expense)
    audit.log_safely(
        db,
        action=audit.AuditAction.EXPENSE_PAY,
        target_type="expense",
        target_id=expense.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={
            "total": float(total),
            "bank_account_id": str(account.id),
            "employee_payment_id": str(payroll.id) if payroll is not None else None,
        },
    )
    return expense
