"""Vendor router - FastAPI endpoints for vendor operations"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_manager, get_current_user
from ...database import get_db
from ...models import User
from .schemas import VendorCreate, VendorResponse
from .service import VendorService

router = APIRouter(prefix="/vendors", tags=["Vendors"])


def get_vendor_service(db: Session = Depends(get_db)) -> VendorService:
    """Dependency injection for VendorService"""
    return VendorService(db)


@router.get("", response_model=list[VendorResponse])
async def get_vendors(
    current_user: User = Depends(get_current_user),
    service: VendorService = Depends(get_vendor_service),
):
    return [VendorResponse(id=vendor.id, name=vendor.name) for vendor in service.get_vendors(current_user)]


@router.post("", response_model=VendorResponse, status_code=201)
async def create_vendor(
    data: VendorCreate,
    current_user: User = Depends(get_current_manager),
    service: VendorService = Depends(get_vendor_service),
):
    """Quick-add from the contract form; returns just id and name"""
    vendor = service.create_vendor(data, current_user)
    return VendorResponse(id=vendor.id, name=vendor.name)
