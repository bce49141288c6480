"""
Expense and expense category endpoints.
"""
from datetime import date
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from atacado.api.deps import (
    OrgAccess,
    get_staff_access,
    get_write_access,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.db.repositories import expenses as expense_repo
from atacado.services import expense_service

router = APIRouter(prefix="/expenses", tags=["expenses"])
categories_router = APIRouter(prefix="/expense-categories", tags=["expenses"])


@categories_router.get("/", response_model=List[schemas.ExpenseCategory])
def list_categories(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return expense_repo.list_categories(db, access.organization_id, is_active=is_active)


@categories_router.post("/", response_model=schemas.ExpenseCategory, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: schemas.ExpenseCategoryCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    if expense_repo.get_category_by_name(db, access.organization_id, payload.name) is not None:
        raise HTTPException(status_code=409, detail="Expense category already exists")
    return expense_repo.create_category(db, access.organization_id, payload)


@categories_router.post("/seed", response_model=List[schemas.ExpenseCategory])
def seed_categories(
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    """Create the default categories; returns only the ones created now."""
    return expense_service.seed_categories(db, access.organization_id)


@categories_router.put("/{category_id}", response_model=schemas.ExpenseCategory)
def update_category(
    category_id: uuid.UUID,
    payload: schemas.ExpenseCategoryUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    category = expense_repo.get_category(db, access.organization_id, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Expense category not found")
    return expense_repo.update_category(db, category, payload)


@categories_router.delete("/{category_id}", response_model=schemas.ExpenseCategory)
def deactivate_category(
    category_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    category = expense_repo.get_category(db, access.organization_id, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Expense category not found")
    return expense_repo.update_category(db, category, schemas.ExpenseCategoryUpdate(is_active=False))


@router.get("/", response_model=List[schemas.Expense])
def list_expenses(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    category_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return expense_repo.list_expenses(
        db, access.organization_id, status=status_filter, category_id=category_id, start=start_date, end=end_date
    )


@router.post("/", response_model=schemas.Expense, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: schemas.ExpenseCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return expense_service.create_expense(db, access.organization_id, payload)


@router.get("/{expense_id}", response_model=schemas.Expense)
def get_expense(
    expense_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    with translate_service_errors():
        return expense_service.get_expense_or_404(db, access.organization_id, expense_id)


@router.put("/{expense_id}", response_model=schemas.Expense)
def update_expense(
    expense_id: uuid.UUID,
    payload: schemas.ExpenseUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        expense = expense_service.get_expense_or_404(db, access.organization_id, expense_id)
    if expense.status == "PAID":
        raise HTTPException(status_code=400, detail="Paid expenses cannot be edited")
    if payload.category_id is not None and expense_repo.get_category(db, access.organization_id, payload.category_id) is None:
        raise HTTPException(status_code=404, detail="Expense category not found")
    return expense_repo.update_expense(db, expense, payload)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        expense = expense_service.get_expense_or_404(db, access.organization_id, expense_id)
    if expense.status == "PAID":
        raise HTTPException(status_code=400, detail="Paid expenses cannot be deleted")
    expense_repo.delete_expense(db, expense)


@router.post("/{expense_id}/pay", response_model=schemas.Expense)
def pay_expense(
    expense_id: uuid.UUID,
    payload: schemas.ExpensePay,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return expense_service.pay_expense(
            db,
            access.organization_id,
            expense_id,
            payload,
            actor_user_id=access.user.id,
            actor_email=access.actor_email,
        )
