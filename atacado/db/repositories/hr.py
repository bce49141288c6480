"""Employee and payroll repository functions."""
from __future__ import annotations

import uuid
from typing import Iterable, Optional
from sqlalchemy.orm import Session, selectinload

from atacado.db import schemas, models


def get_employee(db: Session, organization_id: uuid.UUID, employee_id: uuid.UUID):
    return (
        db.query(models.Employee)
        .filter(models.Employee.organization_id == organization_id, models.Employee.id == employee_id)
        .first()
    )


def get_employee_for_user(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID):
    return (
        db.query(models.Employee)
        .filter(models.Employee.organization_id == organization_id, models.Employee.user_id == user_id)
        .first()
    )


def get_employees(db: Session, organization_id: uuid.UUID, employee_ids: Iterable[uuid.UUID]):
    ids = list(set(employee_ids))
    rows = (
        db.query(models.Employee)
        .filter(models.Employee.organization_id == organization_id, models.Employee.id.in_(ids))
        .all()
    )
    return {row.id: row for row in rows}


def list_employees(db: Session, organization_id: uuid.UUID, is_active: Optional[bool] = None):
    query = db.query(models.Employee).filter(models.Employee.organization_id == organization_id)
    if is_active is not None:
        query = query.filter(models.Employee.is_active.is_(is_active))
    return query.order_by(models.Employee.name).all()


def create_employee(db: Session, organization_id: uuid.UUID, employee: schemas.EmployeeCreate):
    db_employee = models.Employee(organization_id=organization_id, **employee.model_dump())
    db.add(db_employee)
    db.commit()
    db.refresh(db_employee)
    return db_employee


def update_employee(db: Session, db_employee: models.Employee, employee: schemas.EmployeeUpdate):
    for key, value in employee.model_dump(exclude_unset=True).items():
        setattr(db_employee, key, value)
    db.commit()
    db.refresh(db_employee)
    return db_employee


def get_payment(db: Session, organization_id: uuid.UUID, payment_id: uuid.UUID):
    return (
        db.query(models.EmployeePayment)
        .options(selectinload(models.EmployeePayment.acknowledgments))
        .filter(models.EmployeePayment.organization_id == organization_id, models.EmployeePayment.id == payment_id)
        .first()
    )


def list_payments(
    db: Session,
    organization_id: uuid.UUID,
    *,
    employee_id: Optional[uuid.UUID] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    is_paid: Optional[bool] = None,
):
    query = (
        db.query(models.EmployeePayment)
        .options(selectinload(models.EmployeePayment.acknowledgments))
        .filter(models.EmployeePayment.organization_id == organization_id)
    )
    if employee_id:
        query = query.filter(models.EmployeePayment.employee_id == employee_id)
    if month:
        query = query.filter(models.EmployeePayment.month == month)
    if year:
        query = query.filter(models.EmployeePayment.year == year)
    if is_paid is not None:
        query = query.filter(models.EmployeePayment.is_paid.is_(is_paid))
    return query.order_by(models.EmployeePayment.year.desc(), models.EmployeePayment.month.desc()).all()


def get_acknowledgment(db: Session, payment_id: uuid.UUID, employee_id: uuid.UUID):
    return (
        db.query(models.PaymentAcknowledgment)
        .filter(
            models.PaymentAcknowledgment.payment_id == payment_id,
            models.PaymentAcknowledgment.employee_id == employee_id,
        )
        .first()
    )
