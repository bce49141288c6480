"""Bank account transfers and manual ledger entries."""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from atacado import audit
from atacado.db import models, schemas
from atacado.db.repositories import banking as banking_repo
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)


def get_account_or_404(db: Session, organization_id: uuid.UUID, account_id: uuid.UUID) -> models.BankAccount:
    account = banking_repo.get_bank_account(db, organization_id, account_id)
    if account is None:
        raise NotFoundError("Bank account not found")
    return account


def transfer(
    db: Session,
    organization_id: uuid.UUID,
    request: schemas.TransferRequest,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    actor_email: Optional[str] = None,
) -> schemas.TransferResult:
    """Move money between two accounts, recording -amount and +amount TRANSFER lines."""
    if not request.from_account_id or not request.to_account_id:
        raise BusinessRuleError("from_account_id and to_account_id are required")
    if request.from_account_id == request.to_account_id:
        raise BusinessRuleError("Source and destination accounts must be different")
    amount = to_money(request.amount)
    if amount <= ZERO:
        raise BusinessRuleError("Amount must be greater than zero")
    source = get_account_or_404(db, organization_id, request.from_account_id)
    target = get_account_or_404(db, organization_id, request.to_account_id)
    if to_money(source.balance) < amount:
        raise BusinessRuleError(
            "Insufficient balance",
            detail={"message": "Insufficient balance", "balance": float(to_money(source.balance))},
        )
    description = request.description or f"Transferência {source.name} -> {target.name}"
    try:
        outgoing = banking_repo.record_movement(
            db, source,
            type='TRANSFER',
            amount=-amount,
            description=description,
            category='TRANSFERENCIA',
            reference_type='BANK_ACCOUNT',
            reference_id=target.id,
            created_by=actor_email,
        )
        incoming = banking_repo.record_movement(
            db, target,
            type='TRANSFER',
            amount=amount,
            description=description,
            category='TRANSFERENCIA',
            reference_type='BANK_ACCOUNT',
            reference_id=source.id,
            created_by=actor_email,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("bank_transfer from=%s to=%s amount=%s", source.id, target.id, amount)
    audit.log_safely(
        db,
        action=audit.AuditAction.BANK_TRANSFER,
        target_type="bank_account",
        target_id=source.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"to_account_id": str(target.id), "amount": float(amount)},
    )
    return schemas.TransferResult(
        from_balance=float(to_money(source.balance)),
        to_balance=float(to_money(target.balance)),
        transaction_ids=[outgoing.id, incoming.id],
    )


def create_manual_transaction(
    db: Session,
    organization_id: uuid.UUID,
    payload: schemas.TransactionCreate,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    actor_email: Optional[str] = None,
) -> models.Transaction:
    account = get_account_or_404(db, organization_id, payload.bank_account_id)
    try:
        tx = banking_repo.record_movement(
            db, account,
            type=payload.type,
            amount=payload.amount,
            description=payload.description,
            category=payload.category,
            reference_type='MANUAL',
            notes=payload.notes,
            date=payload.date,
            created_by=actor_email,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(tx)
    audit.log_safely(
        db,
        action=audit.AuditAction.MANUAL_TRANSACTION,
        target_type="transaction",
        target_id=tx.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"type": tx.type, "amount": float(to_money(tx.amount))},
    )
    return tx
