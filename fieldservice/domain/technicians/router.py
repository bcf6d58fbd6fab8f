"""Technician router - FastAPI endpoints for technician account management"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_manager
from ...database import get_db
from ...models import User
from .schemas import TechnicianInput, TechnicianResponse
from .service import TechnicianService

router = APIRouter(prefix="/technicians", tags=["Technicians"])


def get_technician_service(db: Session = Depends(get_db)) -> TechnicianService:
    """Dependency injection for TechnicianService"""
    return TechnicianService(db)


def build_technician_response(technician: User) -> TechnicianResponse:
    return TechnicianResponse(
        id=technician.id,
        fullName=technician.full_name,
        email=technician.email,
        phone=technician.phone,
        specialty=technician.specialty,
        isActive=bool(technician.is_active),
        loginCode=technician.login_code,
        createdAt=technician.created_at,
    )


@router.get("", response_model=list[TechnicianResponse])
async def get_technicians(
    current_user: User = Depends(get_current_manager),
    service: TechnicianService = Depends(get_technician_service),
    active_only: bool = Query(False, description="Hide deactivated technicians"),
):
    technicians = service.get_technicians(current_user, active_only)
    return [build_technician_response(technician) for technician in technicians]


@router.post("", response_model=TechnicianResponse, status_code=201)
async def create_technician(
    data: TechnicianInput,
    current_user: User = Depends(get_current_admin),
    service: TechnicianService = Depends(get_technician_service),
):
    return build_technician_response(service.create_technician(data, current_user))


@router.put("/{technician_id}", response_model=TechnicianResponse)
async def update_technician(
    technician_id: int,
    data: TechnicianInput,
    current_user: User = Depends(get_current_admin),
    service: TechnicianService = Depends(get_technician_service),
):
    return build_technician_response(service.update_technician(technician_id, data, current_user))
