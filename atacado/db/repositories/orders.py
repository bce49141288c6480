"""Order repository functions."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session, selectinload

from atacado.db import models


def get_order(db: Session, organization_id: uuid.UUID, order_id: uuid.UUID):
    return (
        db.query(models.Order)
        .options(selectinload(models.Order.items))
        .filter(models.Order.organization_id == organization_id, models.Order.id == order_id)
        .first()
    )


def list_orders(
    db: Session,
    organization_id: uuid.UUID,
    *,
    status: Optional[str] = None,
    customer_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 50,
):
    query = (
        db.query(models.Order)
        .options(selectinload(models.Order.items))
        .filter(models.Order.organization_id == organization_id)
    )
    if status:
        query = query.filter(models.Order.status == status)
    if customer_id:
        query = query.filter(models.Order.customer_id == customer_id)
    total = query.count()
    rows = query.order_by(models.Order.created_at.desc()).offset(skip).limit(limit).all()
    return rows, total


def list_delivered_orders(db: Session, customer_id: uuid.UUID, limit: int = 10):
    return (
        db.query(models.Order)
        .filter(models.Order.customer_id == customer_id, models.Order.status == 'DELIVERED')
        .order_by(models.Order.created_at.desc())
        .limit(limit)
        .all()
    )


def list_orders_created_between(db: Session, organization_id: uuid.UUID, start: datetime, end: datetime, status: Optional[str] = None):
    query = (
        db.query(models.Order)
        .options(selectinload(models.Order.items))
        .filter(
            models.Order.organization_id == organization_id,
            models.Order.created_at >= start,
            models.Order.created_at <= end,
        )
    )
    if status:
        query = query.filter(models.Order.status == status)
    return query.order_by(models.Order.created_at).all()


def count_delivered_orders(db: Session, customer_id: uuid.UUID, exclude_order_id: Optional[uuid.UUID] = None) -> int:
    query = db.query(models.Order).filter(models.Order.customer_id == customer_id, models.Order.status == 'DELIVERED')
    if exclude_order_id is not None:
        query = query.filter(models.Order.id != exclude_order_id)
    return query.count()
