"""
Receivables and card transaction endpoints.

The receivables listing merges open boletos in as rows so the finance
screen shows a single ledger of what customers owe.
"""
from datetime import date
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from atacado.api.deps import (
    OrgAccess,
    get_org_access,
    get_staff_access,
    get_write_access,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.db.repositories import receivables as receivable_repo
from atacado.services import receivable_service

router = APIRouter(prefix="/receivables", tags=["receivables"])
card_router = APIRouter(prefix="/card-transactions", tags=["card-transactions"])


@router.get("/", response_model=List[schemas.ReceivableRow])
def list_receivables(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    payment_method: Optional[str] = None,
    customer_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    return receivable_service.list_receivables(
        db,
        access.organization_id,
        status=status_filter,
        payment_method=payment_method,
        customer_id=access.customer_filter(customer_id),
        start=start_date,
        end=end_date,
    )


@router.post("/", response_model=schemas.Receivable, status_code=status.HTTP_201_CREATED)
def create_receivable(
    payload: schemas.ReceivableCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return receivable_service.create_receivable(db, access.organization_id, payload, actor_user_id=access.user.id)


@router.post("/{receivable_id}/receive", response_model=schemas.ReceiveResult)
def receive_payment(
    receivable_id: uuid.UUID,
    payload: schemas.ReceivePayment,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    """Register a full or partial payment; a boleto id is accepted too."""
    with translate_service_errors():
        return receivable_service.receive(
            db,
            access.organization_id,
            receivable_id,
            payload,
            actor_user_id=access.user.id,
            actor_email=access.actor_email,
        )


@card_router.get("/", response_model=List[schemas.CardTransaction])
def list_card_transactions(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return receivable_repo.list_card_transactions(db, access.organization_id, status=status_filter)


@card_router.get("/summary", response_model=schemas.CardSummary)
def card_summary(
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return receivable_service.card_summary(db, access.organization_id)


@card_router.post("/confirm-batch", response_model=schemas.ConfirmBatchResult)
def confirm_batch(
    payload: schemas.ConfirmBatch,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return receivable_service.confirm_batch(
            db,
            access.organization_id,
            payload,
            actor_user_id=access.user.id,
            actor_email=access.actor_email,
        )
