"""Boleto repository functions."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from atacado.db import models

OPEN_STATUSES = ('PENDING', 'OVERDUE')


def get_boleto(db: Session, organization_id: uuid.UUID, boleto_id: uuid.UUID):
    return (
        db.query(models.Boleto)
        .filter(models.Boleto.organization_id == organization_id, models.Boleto.id == boleto_id)
        .first()
    )


def list_boletos(
    db: Session,
    organization_id: uuid.UUID,
    *,
    customer_id: Optional[uuid.UUID] = None,
    order_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
):
    query = db.query(models.Boleto).filter(models.Boleto.organization_id == organization_id)
    if customer_id:
        query = query.filter(models.Boleto.customer_id == customer_id)
    if order_id:
        query = query.filter(models.Boleto.order_id == order_id)
    if status:
        query = query.filter(models.Boleto.status == status)
    return query.order_by(models.Boleto.due_date.desc()).all()


def list_boletos_for_order(db: Session, order_id: uuid.UUID):
    return db.query(models.Boleto).filter(models.Boleto.order_id == order_id).all()


def list_open_boletos(db: Session, customer_id: uuid.UUID):
    return (
        db.query(models.Boleto)
        .filter(models.Boleto.customer_id == customer_id, models.Boleto.status.in_(OPEN_STATUSES))
        .all()
    )


def sync_statuses(db: Session, organization_id: Optional[uuid.UUID], today: date) -> int:
    """Flip PENDING past due to OVERDUE and OVERDUE not yet due back to PENDING.

    Returns the number of changed rows; the caller commits.
    """
    changed = 0
    base = db.query(models.Boleto)
    if organization_id is not None:
        base = base.filter(models.Boleto.organization_id == organization_id)
    for boleto in base.filter(models.Boleto.status == 'PENDING', models.Boleto.due_date < today).all():
        boleto.status = 'OVERDUE'
        changed += 1
    for boleto in base.filter(models.Boleto.status == 'OVERDUE', models.Boleto.due_date >= today).all():
        boleto.status = 'PENDING'
        changed += 1
    return changed


def get_linked_receivable(db: Session, boleto_id: uuid.UUID):
    return (
        db.query(models.Receivable)
        .filter(models.Receivable.boleto_id == boleto_id)
        .order_by(models.Receivable.created_at)
        .first()
    )
