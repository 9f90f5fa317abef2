"""
Notification API Endpoints

In-app notifications for the current staff member. Email delivery is
handled by the notification service when notifications are created by
domain events.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.db import schemas
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db.repositories import users as user_repo
from innerview.services.notification_service import NotificationService
from innerview.utils.role_permissions import TEAM_MANAGERS


router = APIRouter(tags=["notifications"])


@router.get("/", response_model=schemas.NotificationListResponse)
def get_notifications(
    unread_only: bool = False,
    limit: int = 50,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Get notifications for the current user.

    - **unread_only**: If true, only return unread notifications
    - **limit**: Maximum number of notifications to return (default 50)
    """
    user, current_user = user_context

    service = NotificationService(db)
    notifications = service.get_user_notifications(
        user_id=user.id,
        unread_only=unread_only,
        limit=limit
    )

    return schemas.NotificationListResponse(
        notifications=notifications,
        unread_count=service.get_unread_count(user.id),
        total_count=service.get_total_count(user.id)
    )


@router.post("/", response_model=schemas.Notification, status_code=status.HTTP_201_CREATED)
def create_notification(
    notification_data: schemas.NotificationCreate,
    db: Session = Depends(get_db),
    user_context = Depends(require_roles(TEAM_MANAGERS))
):
    """
    Create an in-app notification for any staff member.
    """
    if not user_repo.get_user(db, notification_data.user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    service = NotificationService(db)
    return service.create_notification(
        user_id=notification_data.user_id,
        type=notification_data.type,
        title=notification_data.title,
        message=notification_data.message,
        link=notification_data.link,
        metadata=notification_data.metadata,
    )


@router.get("/stats", response_model=schemas.NotificationStatsResponse)
def get_notification_stats(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Get notification statistics for the current user.
    """
    user, current_user = user_context

    service = NotificationService(db)
    return schemas.NotificationStatsResponse(
        unread_count=service.get_unread_count(user.id),
        total_notifications=service.get_total_count(user.id),
        recent_notifications=service.get_user_notifications(user_id=user.id, limit=5)
    )


@router.post("/read-all", response_model=schemas.MarkAllReadResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Mark every unread notification of the current user as read.
    """
    user, current_user = user_context

    service = NotificationService(db)
    return schemas.MarkAllReadResponse(updated=service.mark_all_read(user.id))


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notification_read(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Mark a specific notification as read.
    """
    user, current_user = user_context

    service = NotificationService(db)
    success = service.mark_notification_read(notification_id, user.id)

    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context

    service = NotificationService(db)
    if not service.delete_notification(notification_id, user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
