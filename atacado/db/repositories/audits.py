"""
Audit trail storage.

Rows are written by ``atacado.audit`` for membership changes and for every
financial state change (boletos, receivables, transfers, expenses, orders,
redemptions, invoices).
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from atacado.db import schemas, models


def create_audit_log(
    db: Session,
    audit_log: schemas.AuditLogCreate,
    actor_user_id: Optional[uuid.UUID],
    organization_id: Optional[uuid.UUID] = None,
) -> models.AuditLog:
    data = audit_log.model_dump()
    row = models.AuditLog(
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata_json=data.pop('metadata', None),
        **data,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_audit_logs(
    db: Session,
    organization_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    status: Optional[str] = None,
    target_type: Optional[str] = None,
    target_id: Optional[uuid.UUID] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 100,
):
    """Newest first. ``since``/``until`` bound ``created_at`` inclusively."""
    filters = []
    if organization_id:
        filters.append(models.AuditLog.organization_id == organization_id)
    if user_id:
        filters.append(models.AuditLog.actor_user_id == user_id)
    if action_type:
        filters.append(models.AuditLog.action_type == action_type)
    if status:
        filters.append(models.AuditLog.status == status)
    if target_type:
        filters.append(models.AuditLog.target_type == target_type)
    if target_id:
        filters.append(models.AuditLog.target_id == target_id)
    if since:
        filters.append(models.AuditLog.created_at >= since)
    if until:
        filters.append(models.AuditLog.created_at <= until)
    return (
        db.query(models.AuditLog)
        .filter(*filters)
        .order_by(models.AuditLog.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
