"""In-app notification storage."""
from __future__ import annotations

import uuid
from datetime import datetime, UTC
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session

from atacado.db import models


def add_notification(
    db: Session,
    *,
    user_id: uuid.UUID,
    event_type: str,
    title: str,
    message: str,
    organization_id: Optional[uuid.UUID] = None,
    action_url: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    """Stage a notification in the session; the caller commits."""
    notification = models.Notification(
        user_id=user_id,
        organization_id=organization_id,
        event_type=event_type,
        title=title,
        message=message,
        action_url=action_url,
        metadata_json=metadata,
    )
    db.add(notification)
    return notification


def list_notifications(db: Session, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50):
    query = db.query(models.Notification).filter(models.Notification.user_id == user_id)
    if unread_only:
        query = query.filter(models.Notification.is_read.is_(False))
    return query.order_by(models.Notification.created_at.desc()).limit(limit).all()


def count_unread(db: Session, user_id: uuid.UUID) -> int:
    return (
        db.query(models.Notification)
        .filter(models.Notification.user_id == user_id, models.Notification.is_read.is_(False))
        .count()
    )


def mark_read(db: Session, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    notification = (
        db.query(models.Notification)
        .filter(models.Notification.id == notification_id, models.Notification.user_id == user_id)
        .first()
    )
    if not notification:
        return False
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(UTC)
        db.commit()
    return True
