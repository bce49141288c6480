"""
Bank account and ledger endpoints.

Balances only move through transfers, manual transactions and the
payment flows; the account update endpoint never touches ``balance``.
"""
from datetime import datetime
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from atacado.api.deps import (
    OrgAccess,
    get_manage_access,
    get_staff_access,
    get_write_access,
    translate_service_errors,
)
from atacado.db import models, schemas
from atacado.db.database import get_db
from atacado.db.repositories import banking as banking_repo
from atacado.services import ledger_service

router = APIRouter(prefix="/bank-accounts", tags=["bank-accounts"])
transactions_router = APIRouter(prefix="/transactions", tags=["transactions"])


def _account_or_404(db: Session, access: OrgAccess, account_id: uuid.UUID) -> models.BankAccount:
    account = banking_repo.get_bank_account(db, access.organization_id, account_id)
    if account is None:
        raise HTTPException(status_code=404, detail="Bank account not found")
    return account


@router.get("/", response_model=List[schemas.BankAccount])
def list_bank_accounts(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return banking_repo.list_bank_accounts(db, access.organization_id, is_active=is_active)


@router.post("/", response_model=schemas.BankAccount, status_code=status.HTTP_201_CREATED)
def create_bank_account(
    payload: schemas.BankAccountCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    return banking_repo.create_bank_account(db, access.organization_id, payload)


@router.post("/transfer", response_model=schemas.TransferResult)
def transfer_between_accounts(
    payload: schemas.TransferRequest,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return ledger_service.transfer(
            db, access.organization_id, payload, actor_user_id=access.user.id, actor_email=access.actor_email
        )


@router.get("/{account_id}", response_model=schemas.BankAccount)
def get_bank_account(
    account_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return _account_or_404(db, access, account_id)


@router.put("/{account_id}", response_model=schemas.BankAccount)
def update_bank_account(
    account_id: uuid.UUID,
    payload: schemas.BankAccountUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    account = _account_or_404(db, access, account_id)
    return banking_repo.update_bank_account(db, account, payload)


@router.delete("/{account_id}", response_model=schemas.BankAccount)
def deactivate_bank_account(
    account_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    account = _account_or_404(db, access, account_id)
    return banking_repo.update_bank_account(db, account, schemas.BankAccountUpdate(is_active=False))


@transactions_router.get("/", response_model=List[schemas.Transaction])
def list_transactions(
    bank_account_id: Optional[uuid.UUID] = None,
    type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return banking_repo.list_transactions(
        db,
        access.organization_id,
        bank_account_id=bank_account_id,
        type=type,
        start=start,
        end=end,
        reference_type=reference_type,
        reference_id=reference_id,
        skip=skip,
        limit=min(limit, 500),
    )


@transactions_router.post("/", response_model=schemas.Transaction, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: schemas.TransactionCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return ledger_service.create_manual_transaction(
            db, access.organization_id, payload, actor_user_id=access.user.id, actor_email=access.actor_email
        )
