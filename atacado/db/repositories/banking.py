"""
Bank account and ledger repository functions.

Every balance movement goes through ``record_movement`` so the ledger row
always carries the balance right after it.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from atacado.db import schemas, models
from atacado.utils.money import to_money


def get_bank_account(db: Session, organization_id: uuid.UUID, account_id: uuid.UUID):
    return (
        db.query(models.BankAccount)
        .filter(models.BankAccount.organization_id == organization_id, models.BankAccount.id == account_id)
        .first()
    )


def list_bank_accounts(db: Session, organization_id: uuid.UUID, is_active: Optional[bool] = None):
    query = db.query(models.BankAccount).filter(models.BankAccount.organization_id == organization_id)
    if is_active is not None:
        query = query.filter(models.BankAccount.is_active.is_(is_active))
    return query.order_by(models.BankAccount.name).all()


def create_bank_account(db: Session, organization_id: uuid.UUID, account: schemas.BankAccountCreate):
    data = account.model_dump()
    data["balance"] = to_money(data.get("balance"))
    db_account = models.BankAccount(organization_id=organization_id, **data)
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    return db_account


def update_bank_account(db: Session, db_account: models.BankAccount, account: schemas.BankAccountUpdate):
    for key, value in account.model_dump(exclude_unset=True).items():
        setattr(db_account, key, value)
    db.commit()
    db.refresh(db_account)
    return db_account


def record_movement(
    db: Session,
    account: models.BankAccount,
    *,
    type: str,
    amount: Decimal,
    description: str,
    category: Optional[str] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[uuid.UUID] = None,
    notes: Optional[str] = None,
    date: Optional[datetime] = None,
    created_by: Optional[str] = None,
) -> models.Transaction:
    """Move ``account.balance`` and stage the matching ledger row.

    INCOME adds ``amount``, EXPENSE subtracts it, TRANSFER applies the signed
    amount. Nothing is committed here.
    """
    amount = to_money(amount)
    if type == 'INCOME':
        delta = amount
    elif type == 'EXPENSE':
        delta = -amount
    elif type == 'TRANSFER':
        delta = amount
    else:
        raise ValueError(f"Unknown transaction type: {type}")
    account.balance = to_money(account.balance) + delta
    tx = models.Transaction(
        organization_id=account.organization_id,
        bank_account_id=account.id,
        type=type,
        amount=amount,
        description=description,
        category=category,
        reference_type=reference_type,
        reference_id=reference_id,
        balance_after=account.balance,
        notes=notes,
        created_by=created_by,
    )
    if date is not None:
        tx.date = date
    db.add(tx)
    return tx


def find_reference_transaction(db: Session, reference_type: str, reference_id: uuid.UUID, type: str = 'INCOME'):
    return (
        db.query(models.Transaction)
        .filter(
            models.Transaction.reference_type == reference_type,
            models.Transaction.reference_id == reference_id,
            models.Transaction.type == type,
        )
        .order_by(models.Transaction.created_at.desc())
        .first()
    )


def list_transactions(
    db: Session,
    organization_id: uuid.UUID,
    *,
    bank_account_id: Optional[uuid.UUID] = None,
    type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(models.Transaction).filter(models.Transaction.organization_id == organization_id)
    if bank_account_id:
        query = query.filter(models.Transaction.bank_account_id == bank_account_id)
    if type:
        query = query.filter(models.Transaction.type == type)
    if start:
        query = query.filter(models.Transaction.date >= start)
    if end:
        query = query.filter(models.Transaction.date <= end)
    if reference_type:
        query = query.filter(models.Transaction.reference_type == reference_type)
    if reference_id:
        query = query.filter(models.Transaction.reference_id == reference_id)
    return query.order_by(models.Transaction.date.desc(), models.Transaction.created_at.desc()).offset(skip).limit(limit).all()
