"""
Notification API endpoints.

In-app notifications for the signed-in user (membership changes,
redemption requests, payslips and similar events).
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from atacado.api.deps import get_current_user_context
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=schemas.NotificationListResponse)
def get_notifications(
    unread_only: bool = False,
    limit: int = 50,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """
    Get notifications for the current user.

    - **unread_only**: If true, only return unread notifications
    - **limit**: Maximum number of notifications to return (default 50)
    """
    user, current_user = user_context
    service = NotificationService(db)
    notifications = service.get_user_notifications(user_id=user.id, unread_only=unread_only, limit=limit)
    return schemas.NotificationListResponse(
        notifications=notifications,
        unread_count=service.get_unread_count(user.id),
        total_count=len(notifications),
    )


@router.get("/unread-count")
def get_unread_count(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    return {"unread_count": NotificationService(db).get_unread_count(user.id)}


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notification_read(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    if not NotificationService(db).mark_notification_read(notification_id, user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
