"""Receivable and card transaction repository functions."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from atacado.db import models

OPEN_STATUSES = ('PENDING', 'OVERDUE')


def get_receivable(db: Session, organization_id: uuid.UUID, receivable_id: uuid.UUID):
    return (
        db.query(models.Receivable)
        .filter(models.Receivable.organization_id == organization_id, models.Receivable.id == receivable_id)
        .first()
    )


def list_receivables(
    db: Session,
    organization_id: uuid.UUID,
    *,
    status: Optional[str] = None,
    payment_method: Optional[str] = None,
    customer_id: Optional[uuid.UUID] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    exclude_boleto_linked: bool = False,
):
    query = db.query(models.Receivable).filter(models.Receivable.organization_id == organization_id)
    if status:
        query = query.filter(models.Receivable.status == status)
    if payment_method:
        query = query.filter(models.Receivable.payment_method == payment_method)
    if customer_id:
        query = query.filter(models.Receivable.customer_id == customer_id)
    if start:
        query = query.filter(models.Receivable.due_date >= start)
    if end:
        query = query.filter(models.Receivable.due_date <= end)
    if exclude_boleto_linked:
        query = query.filter(models.Receivable.boleto_id.is_(None))
    return query.order_by(models.Receivable.due_date).all()


def list_for_order(db: Session, order_id: uuid.UUID):
    return (
        db.query(models.Receivable)
        .filter(models.Receivable.order_id == order_id)
        .order_by(models.Receivable.created_at)
        .all()
    )


def list_open_without_boleto(db: Session, customer_id: uuid.UUID):
    return (
        db.query(models.Receivable)
        .filter(
            models.Receivable.customer_id == customer_id,
            models.Receivable.status.in_(OPEN_STATUSES),
            models.Receivable.boleto_id.is_(None),
        )
        .all()
    )


def mark_overdue(db: Session, organization_id: uuid.UUID, today: date) -> int:
    rows = (
        db.query(models.Receivable)
        .filter(
            models.Receivable.organization_id == organization_id,
            models.Receivable.status == 'PENDING',
            models.Receivable.due_date < today,
        )
        .all()
    )
    for row in rows:
        row.status = 'OVERDUE'
    return len(rows)


def get_card_transaction(db: Session, organization_id: uuid.UUID, card_tx_id: uuid.UUID):
    return (
        db.query(models.CardTransaction)
        .filter(models.CardTransaction.organization_id == organization_id, models.CardTransaction.id == card_tx_id)
        .first()
    )


def list_card_transactions(db: Session, organization_id: uuid.UUID, status: Optional[str] = None):
    query = db.query(models.CardTransaction).filter(models.CardTransaction.organization_id == organization_id)
    if status:
        query = query.filter(models.CardTransaction.status == status)
    return query.order_by(models.CardTransaction.expected_date).all()
