"""Vendor service - Business logic for vendor operations"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User, Vendor
from .repository import VendorRepository
from .schemas import VendorCreate

logger = logging.getLogger(__name__)


class VendorService:
    """Service layer for vendors picked on contracts"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VendorRepository()

    def get_vendors(self, user: User) -> list[Vendor]:
        return self.repo.get_vendors(self.db, user.organization_id)

    def create_vendor(self, data: VendorCreate, user: User) -> Vendor:
        name = data.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Vendor name is required")

        vendor = self.repo.create_vendor(self.db, user.organization_id, name)
        logger.info(f"✅ Vendor created: {vendor.id} ({vendor.name}) for organization {user.organization_id}")
        return vendor
