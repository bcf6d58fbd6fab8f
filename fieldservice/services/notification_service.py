"""
In-app notification service
Fans a single logical event out to one notification row per recipient.
Dispatch is best-effort: failures are logged and never raised to the caller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import MANAGER_ROLES, User
from ..models_job import Job, JobTechnician
from ..models_notification import Notification

logger = logging.getLogger(__name__)


@dataclass
class NotificationEvent:
    organization_id: int
    recipient_user_ids: list[int]
    type: str
    message: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None


class Notifier(Protocol):
    """Side-effect port used by the scans and domain services"""

    def notify(self, event: NotificationEvent) -> int: ...


class DatabaseNotifier:
    """Notifier that writes notification rows through the given session"""

    def __init__(self, db: Session):
        self.db = db

    def notify(self, event: NotificationEvent) -> int:
        return create_notifications(
            self.db,
            organization_id=event.organization_id,
            recipient_user_ids=event.recipient_user_ids,
            notification_type=event.type,
            message=event.message,
            related_entity_type=event.related_entity_type,
            related_entity_id=event.related_entity_id,
        )


def create_notifications(
    db: Session,
    organization_id: int,
    recipient_user_ids: list[int],
    notification_type: str,
    message: str,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[int] = None,
) -> int:
    """
    Insert one unread notification per recipient.

    Returns the number of rows written (0 when there are no recipients or
    the insert failed).
    """
    # Keep first occurrence order, drop duplicates and empty ids
    recipients = list(dict.fromkeys(uid for uid in recipient_user_ids if uid))
    if not recipients:
        return 0

    try:
        db.add_all(
            [
                Notification(
                    organization_id=organization_id,
                    recipient_user_id=user_id,
                    type=notification_type,
                    message=message,
                    related_entity_type=related_entity_type,
                    related_entity_id=related_entity_id,
                    is_read=False,
                )
                for user_id in recipients
            ]
        )
        db.commit()
        logger.info(f"🔔 {notification_type} notification sent to {len(recipients)} user(s)")
        return len(recipients)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to create {notification_type} notifications: {e}")
        return 0


def get_manager_user_ids(db: Session, organization_id: int) -> list[int]:
    rows = (
        db.query(User.id)
        .filter(
            User.organization_id == organization_id,
            User.role.in_(MANAGER_ROLES),
            User.is_active.is_(True),
        )
        .order_by(User.id)
        .all()
    )
    return [row.id for row in rows]


def get_job_technician_ids(db: Session, job_id: int) -> list[int]:
    """Technicians assigned to a job, excluding cancelled assignments"""
    rows = (
        db.query(JobTechnician.technician_id)
        .filter(JobTechnician.job_id == job_id, JobTechnician.status != "cancelled")
        .order_by(JobTechnician.id)
        .all()
    )
    return [row.technician_id for row in rows]


def job_label(job: Job) -> str:
    return str(job.title or job.job_number or job.id)


# ============================================================================
# RECIPIENT OPERATIONS
# ============================================================================


def list_notifications(
    db: Session, user: User, unread_only: bool = False, limit: int = 50
) -> list[Notification]:
    query = db.query(Notification).filter(
        Notification.recipient_user_id == user.id,
        Notification.organization_id == user.organization_id,
    )
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def get_unread_notification_count(db: Session, user: User) -> int:
    return (
        db.query(func.count(Notification.id))
        .filter(
            Notification.recipient_user_id == user.id,
            Notification.organization_id == user.organization_id,
            Notification.is_read.is_(False),
        )
        .scalar()
        or 0
    )


def mark_notification_read(db: Session, user: User, notification_id: int) -> bool:
    """Returns False when the notification does not belong to ``user``"""
    notification = (
        db.query(Notification)
        .filter(
            Notification.id == notification_id,
            Notification.recipient_user_id == user.id,
            Notification.organization_id == user.organization_id,
        )
        .first()
    )
    if not notification:
        return False

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
    return True


def mark_all_notifications_read(db: Session, user: User) -> int:
    updated = (
        db.query(Notification)
        .filter(
            Notification.recipient_user_id == user.id,
            Notification.organization_id == user.organization_id,
            Notification.is_read.is_(False),
        )
        .update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
    )
    db.commit()
    logger.info(f"✅ Marked {updated} notification(s) read for user {user.id}")
    return updated
