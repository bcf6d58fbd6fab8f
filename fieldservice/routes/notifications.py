import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..services.notification_service import (
    get_unread_notification_count,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


class NotificationResponse(BaseModel):
    id: int
    type: str
    message: str
    related_entity_type: Optional[str]
    related_entity_id: Optional[int]
    is_read: bool
    read_at: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


@router.get("", response_model=list[NotificationResponse])
async def get_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Notifications for the current user, newest first"""
    return list_notifications(db, current_user, unread_only=unread_only, limit=limit)


@router.get("/unread-count")
async def get_unread_count(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Badge count; falls back to zero when the lookup fails"""
    try:
        return {"count": get_unread_notification_count(db, current_user)}
    except SQLAlchemyError as e:
        logger.error(f"❌ Error counting unread notifications for user {current_user.id}: {e}")
        return {"count": 0}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not mark_notification_read(db, current_user, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True}


@router.post("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    updated = mark_all_notifications_read(db, current_user)
    return {"success": True, "updated": updated}
