"""
In-app notifications for staff and customers.

Notifications are side effects: the ``notify_*`` helpers swallow and log
their own failures so the request that triggered them still succeeds.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from atacado.db import models
from atacado.db.repositories import notifications as notification_repo
from atacado.utils.role_permissions import MANAGE_ROLES

logger = logging.getLogger(__name__)

EVENT_ORG_MEMBERSHIP_ADDED = 'org_membership_added'
EVENT_ORG_MEMBERSHIP_REMOVED = 'org_membership_removed'
EVENT_ORG_ROLE_CHANGED = 'org_role_changed'
EVENT_REDEMPTION_REQUESTED = 'redemption_requested'
EVENT_REDEMPTION_PROCESSED = 'redemption_processed'
EVENT_DEPOSIT_REQUESTED = 'deposit_requested'
EVENT_WITHDRAWAL_REQUESTED = 'withdrawal_requested'
EVENT_PAYSLIP_AVAILABLE = 'payslip_available'


class NotificationService:
    """Creates and reads in-app notifications."""

    def __init__(self, db: Session):
        self.db = db

    def create_notification(
        self,
        user_id: uuid.UUID,
        event_type: str,
        title: str,
        message: str,
        organization_id: Optional[uuid.UUID] = None,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> models.Notification:
        notification = notification_repo.add_notification(
            self.db,
            user_id=user_id,
            event_type=event_type,
            title=title,
            message=message,
            organization_id=organization_id,
            action_url=action_url,
            metadata=metadata,
        )
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def manager_ids(self, organization_id: uuid.UUID) -> List[uuid.UUID]:
        rows = (
            self.db.query(models.OrganizationMembership.user_id)
            .filter(
                models.OrganizationMembership.organization_id == organization_id,
                models.OrganizationMembership.role.in_(MANAGE_ROLES),
            )
            .all()
        )
        return [row[0] for row in rows]

    def notify_managers(
        self,
        organization_id: uuid.UUID,
        event_type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        """One notification per owner/admin of the organization. Returns how many were created."""
        recipients = self.manager_ids(organization_id)
        for user_id in recipients:
            notification_repo.add_notification(
                self.db,
                user_id=user_id,
                event_type=event_type,
                title=title,
                message=message,
                organization_id=organization_id,
                action_url=action_url,
                metadata=metadata,
            )
        if recipients:
            self.db.commit()
        return len(recipients)

    def get_user_notifications(self, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50):
        return notification_repo.list_notifications(self.db, user_id, unread_only=unread_only, limit=limit)

    def get_unread_count(self, user_id: uuid.UUID) -> int:
        return notification_repo.count_unread(self.db, user_id)

    def mark_notification_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return notification_repo.mark_read(self.db, notification_id, user_id)


def notify_managers_safely(db: Session, organization_id: uuid.UUID, event_type: str, title: str, message: str,
                           **kwargs) -> None:
    try:
        NotificationService(db).notify_managers(organization_id, event_type, title, message, **kwargs)
    except Exception:
        db.rollback()
        logger.exception("notification_failed event=%s organization_id=%s", event_type, organization_id)


def notify_user_safely(db: Session, user_id: Optional[uuid.UUID], event_type: str, title: str, message: str,
                       **kwargs) -> None:
    if user_id is None:
        return
    try:
        NotificationService(db).create_notification(user_id, event_type, title, message, **kwargs)
    except Exception:
        db.rollback()
        logger.exception("notification_failed event=%s user_id=%s", event_type, user_id)
