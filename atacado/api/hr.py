"""
HR endpoints: employees and monthly payroll.

Employees acknowledge their own payslips; staff with write access may
acknowledge on their behalf.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from atacado.api.deps import (
    OrgAccess,
    get_manage_access,
    get_staff_access,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.db.repositories import hr as hr_repo
from atacado.services import payroll_service

router = APIRouter(prefix="/employees", tags=["hr"])
payments_router = APIRouter(prefix="/employee-payments", tags=["hr"])


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.get("/", response_model=List[schemas.Employee])
def list_employees(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return hr_repo.list_employees(db, access.organization_id, is_active=is_active)


@router.post("/", response_model=schemas.Employee, status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: schemas.EmployeeCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    return hr_repo.create_employee(db, access.organization_id, payload)


@router.get("/{employee_id}", response_model=schemas.Employee)
def get_employee(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    employee = hr_repo.get_employee(db, access.organization_id, employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.put("/{employee_id}", response_model=schemas.Employee)
def update_employee(
    employee_id: uuid.UUID,
    payload: schemas.EmployeeUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    employee = hr_repo.get_employee(db, access.organization_id, employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return hr_repo.update_employee(db, employee, payload)


@router.delete("/{employee_id}", response_model=schemas.Employee)
def deactivate_employee(
    employee_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    employee = hr_repo.get_employee(db, access.organization_id, employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return hr_repo.update_employee(db, employee, schemas.EmployeeUpdate(is_active=False))


@payments_router.post("/", response_model=schemas.EmployeePaymentBatchResult, status_code=status.HTTP_201_CREATED)
def create_payments(
    payload: schemas.EmployeePaymentBatch,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    with translate_service_errors():
        return payroll_service.create_payments(db, access.organization_id, payload, actor_user_id=access.user.id)


@payments_router.get("/", response_model=List[schemas.EmployeePayment])
def list_payments(
    employee_id: Optional[uuid.UUID] = None,
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = None,
    is_paid: Optional[bool] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return hr_repo.list_payments(
        db, access.organization_id, employee_id=employee_id, month=month, year=year, is_paid=is_paid
    )


@payments_router.get("/unacknowledged", response_model=List[schemas.UnacknowledgedEntry])
def list_unacknowledged(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return payroll_service.unacknowledged(db, access.organization_id, month, year)


@payments_router.post(
    "/{payment_id}/acknowledge",
    response_model=schemas.PaymentAcknowledgment,
    status_code=status.HTTP_201_CREATED,
)
def acknowledge_payment(
    payment_id: uuid.UUID,
    request: Request,
    payload: Optional[schemas.AcknowledgeRequest] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    with translate_service_errors():
        return payroll_service.acknowledge(
            db,
            access.organization_id,
            payment_id,
            user_id=access.user.id,
            is_staff=access.can_write,
            ip_address=_client_ip(request),
            notes=payload.notes if payload else None,
        )
