"""Vendor repository - Database operations for vendors"""

from sqlalchemy.orm import Session

from ...models import Vendor


class VendorRepository:
    """Repository for vendor database operations"""

    @staticmethod
    def get_vendors(db: Session, organization_id: int) -> list[Vendor]:
        """Active vendors, alphabetical"""
        return (
            db.query(Vendor)
            .filter(Vendor.organization_id == organization_id, Vendor.is_active.is_(True))
            .order_by(Vendor.name, Vendor.id)
            .all()
        )

    @staticmethod
    def create_vendor(db: Session, organization_id: int, name: str) -> Vendor:
        vendor = Vendor(organization_id=organization_id, name=name, is_active=True)
        db.add(vendor)
        db.commit()
        db.refresh(vendor)
        return vendor
