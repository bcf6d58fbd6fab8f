"""Technician repository - Database operations for technician user accounts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import User

TECHNICIAN_ROLE = "technician"


class TechnicianRepository:
    """Repository for technician database operations"""

    @staticmethod
    def get_technicians(db: Session, organization_id: int, active_only: bool = False) -> list[User]:
        query = db.query(User).filter(
            User.organization_id == organization_id, User.role == TECHNICIAN_ROLE
        )
        if active_only:
            query = query.filter(User.is_active.is_(True))
        return query.order_by(User.full_name, User.id).all()

    @staticmethod
    def get_technician_by_id(db: Session, technician_id: int, organization_id: int) -> Optional[User]:
        """Only users with the technician role count; managers are never returned"""
        return (
            db.query(User)
            .filter(
                User.id == technician_id,
                User.organization_id == organization_id,
                User.role == TECHNICIAN_ROLE,
            )
            .first()
        )

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def login_code_exists(db: Session, login_code: str) -> bool:
        return db.query(User.id).filter(User.login_code == login_code).first() is not None

    @staticmethod
    def create_technician(db: Session, **technician_data) -> User:
        technician = User(role=TECHNICIAN_ROLE, **technician_data)
        db.add(technician)
        db.commit()
        db.refresh(technician)
        return technician

    @staticmethod
    def update_technician(db: Session, technician: User, **updates) -> User:
        for key, value in updates.items():
            if hasattr(technician, key):
                setattr(technician, key, value)
        db.commit()
        db.refresh(technician)
        return technician
