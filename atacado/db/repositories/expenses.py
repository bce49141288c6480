"""Expense and expense category repository functions."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session, joinedload

from atacado.db import schemas, models
from atacado.utils.money import to_money


def get_category(db: Session, organization_id: uuid.UUID, category_id: uuid.UUID):
    return (
        db.query(models.ExpenseCategory)
        .filter(models.ExpenseCategory.organization_id == organization_id, models.ExpenseCategory.id == category_id)
        .first()
    )


def get_category_by_name(db: Session, organization_id: uuid.UUID, name: str):
    return (
        db.query(models.ExpenseCategory)
        .filter(models.ExpenseCategory.organization_id == organization_id, models.ExpenseCategory.name == name)
        .first()
    )


def list_categories(db: Session, organization_id: uuid.UUID, is_active: Optional[bool] = None):
    query = db.query(models.ExpenseCategory).filter(models.ExpenseCategory.organization_id == organization_id)
    if is_active is not None:
        query = query.filter(models.ExpenseCategory.is_active.is_(is_active))
    return query.order_by(models.ExpenseCategory.name).all()


def create_category(db: Session, organization_id: uuid.UUID, category: schemas.ExpenseCategoryCreate, commit: bool = True):
    db_category = models.ExpenseCategory(organization_id=organization_id, **category.model_dump())
    db.add(db_category)
    if commit:
        db.commit()
        db.refresh(db_category)
    else:
        db.flush()
    return db_category


def update_category(db: Session, db_category: models.ExpenseCategory, category: schemas.ExpenseCategoryUpdate):
    for key, value in category.model_dump(exclude_unset=True).items():
        setattr(db_category, key, value)
    db.commit()
    db.refresh(db_category)
    return db_category


def get_expense(db: Session, organization_id: uuid.UUID, expense_id: uuid.UUID):
    return (
        db.query(models.Expense)
        .filter(models.Expense.organization_id == organization_id, models.Expense.id == expense_id)
        .first()
    )


def list_expenses(
    db: Session,
    organization_id: uuid.UUID,
    *,
    status: Optional[str] = None,
    category_id: Optional[uuid.UUID] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
):
    query = db.query(models.Expense).filter(models.Expense.organization_id == organization_id)
    if status:
        query = query.filter(models.Expense.status == status)
    if category_id:
        query = query.filter(models.Expense.category_id == category_id)
    if start:
        query = query.filter(models.Expense.due_date >= start)
    if end:
        query = query.filter(models.Expense.due_date <= end)
    return query.order_by(models.Expense.due_date).all()


def list_all_with_category(db: Session, organization_id: uuid.UUID):
    return (
        db.query(models.Expense)
        .options(joinedload(models.Expense.category))
        .filter(models.Expense.organization_id == organization_id, models.Expense.status != 'CANCELLED')
        .all()
    )


def create_expense(db: Session, organization_id: uuid.UUID, expense: schemas.ExpenseCreate, commit: bool = True, **extra):
    data = expense.model_dump()
    data["amount"] = to_money(data["amount"])
    if data.get("fee_amount") is not None:
        data["fee_amount"] = to_money(data["fee_amount"])
    data.update(extra)
    db_expense = models.Expense(organization_id=organization_id, **data)
    db.add(db_expense)
    if commit:
        db.commit()
        db.refresh(db_expense)
    else:
        db.flush()
    return db_expense


def update_expense(db: Session, db_expense: models.Expense, expense: schemas.ExpenseUpdate):
    for key, value in expense.model_dump(exclude_unset=True).items():
        if key in ("amount", "fee_amount") and value is not None:
            value = to_money(value)
        setattr(db_expense, key, value)
    db.commit()
    db.refresh(db_expense)
    return db_expense


def delete_expense(db: Session, db_expense: models.Expense):
    db.delete(db_expense)
    db.commit()
