"""Technician service - Business logic for technician accounts"""

import logging
import secrets
import string

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from .repository import TechnicianRepository
from .schemas import TechnicianInput

logger = logging.getLogger(__name__)

LOGIN_CODE_LENGTH = 6
_LOGIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_login_code() -> str:
    """Six uppercase letters/digits; matches the upper-cased code typed at login"""
    return "".join(secrets.choice(_LOGIN_CODE_ALPHABET) for _ in range(LOGIN_CODE_LENGTH))


class TechnicianService:
    """Service layer for technician account management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TechnicianRepository()

    def get_technicians(self, user: User, active_only: bool = False) -> list[User]:
        return self.repo.get_technicians(self.db, user.organization_id, active_only)

    def get_technician(self, technician_id: int, user: User) -> User:
        technician = self.repo.get_technician_by_id(self.db, technician_id, user.organization_id)
        if not technician:
            raise HTTPException(status_code=404, detail="Technician not found")
        return technician

    def create_technician(self, data: TechnicianInput, user: User) -> User:
        """New technician account in the caller's organization with a fresh login code"""
        fields = self._validated_fields(data)
        if self.repo.get_user_by_email(self.db, fields["email"]):
            raise HTTPException(status_code=400, detail="A user with this email already exists")

        login_code = generate_login_code()
        while self.repo.login_code_exists(self.db, login_code):
            login_code = generate_login_code()

        technician = self.repo.create_technician(
            self.db, organization_id=user.organization_id, login_code=login_code, **fields
        )
        logger.info(f"✅ Technician {technician.id} created by user {user.id}")
        return technician

    def update_technician(self, technician_id: int, data: TechnicianInput, user: User) -> User:
        """Replace the technician's profile fields; missing optional fields are cleared"""
        fields = self._validated_fields(data)
        technician = self.get_technician(technician_id, user)

        existing = self.repo.get_user_by_email(self.db, fields["email"])
        if existing and existing.id != technician.id:
            raise HTTPException(status_code=400, detail="A user with this email already exists")

        technician = self.repo.update_technician(self.db, technician, **fields)
        logger.info(f"✅ Technician {technician.id} updated by user {user.id}")
        return technician

    @staticmethod
    def _validated_fields(data: TechnicianInput) -> dict:
        full_name = (data.fullName or "").strip()
        email = (data.email or "").strip().lower()
        if not full_name or not email:
            raise HTTPException(status_code=400, detail="Full name and email are required")

        return {
            "full_name": full_name,
            "email": email,
            "phone": (data.phone or "").strip() or None,
            "specialty": (data.specialty or "").strip() or None,
            "is_active": True if data.isActive is None else data.isActive,
        }
