"""Contract router - FastAPI endpoints for service agreement operations"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_manager, get_current_user
from ...database import get_db
from ...models import ServiceAgreement, User
from .schemas import (
    ContractCreate,
    ContractDetailResponse,
    ContractJobSummary,
    ContractResponse,
    ContractServiceResponse,
    ContractUpdate,
)
from .service import ContractService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["Contracts"])


def get_contract_service(db: Session = Depends(get_db)) -> ContractService:
    """Dependency injection for ContractService"""
    return ContractService(db)


def _contract_fields(contract: ServiceAgreement) -> dict:
    return {
        "id": contract.id,
        "agreementNumber": contract.agreement_number,
        "name": contract.name,
        "description": contract.description,
        "type": contract.type,
        "billingType": contract.billing_type,
        "status": contract.status,
        "customerId": contract.customer_id,
        "customerName": contract.customer.display_name if contract.customer else "Unknown",
        "vendorId": contract.vendor_id,
        "vendorName": contract.vendor.name if contract.vendor else None,
        "startDate": contract.start_date,
        "endDate": contract.end_date,
        "agreementLengthYears": contract.agreement_length_years,
        "serviceCount": contract.service_count,
        "pmDueNext": contract.pm_due_next,
        "services": [
            ContractServiceResponse(
                id=service.id,
                serviceType=service.service_type,
                frequencyMonths=service.frequency_months,
            )
            for service in contract.services
        ],
        "createdAt": contract.created_at,
    }


def build_contract_response(contract: ServiceAgreement) -> ContractResponse:
    return ContractResponse(**_contract_fields(contract))


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ContractResponse])
async def get_contracts(
    current_user: User = Depends(get_current_user),
    service: ContractService = Depends(get_contract_service),
    status: Optional[str] = Query(None, description="Filter by contract status"),
    customer_id: Optional[int] = Query(None, description="Filter by customer ID"),
    coverage_plan: Optional[str] = Query(None, description="Filter by coverage plan"),
    view_mode: Literal["active", "ended"] = Query("active"),
):
    """List contracts; the ended view shows only ended and cancelled agreements"""
    contracts = service.get_contracts(current_user, status, customer_id, coverage_plan, view_mode)
    return [build_contract_response(contract) for contract in contracts]


@router.post("", response_model=ContractResponse, status_code=201)
async def create_contract(
    data: ContractCreate,
    current_user: User = Depends(get_current_manager),
    service: ContractService = Depends(get_contract_service),
):
    contract = service.create_contract(data, current_user)
    return build_contract_response(contract)


@router.get("/{contract_id}", response_model=ContractDetailResponse)
async def get_contract_detail(
    contract_id: int,
    current_user: User = Depends(get_current_user),
    service: ContractService = Depends(get_contract_service),
):
    """Contract with its services and jobs (most recently scheduled first)"""
    contract = service.get_contract(contract_id, current_user)
    jobs = [
        ContractJobSummary(
            id=job.id,
            jobNumber=job.job_number,
            title=job.title,
            status=job.status,
            scheduledStart=job.scheduled_start,
            completedAt=job.completed_at,
            checklistCompletedAt=checklist.completed_at if checklist else None,
        )
        for job, checklist in service.get_contract_jobs(contract)
    ]
    return ContractDetailResponse(
        **_contract_fields(contract),
        unitInformation=contract.unit_information,
        terms=contract.terms,
        notes=contract.notes,
        billingFrequency=contract.billing_frequency,
        serviceFrequency=contract.service_frequency,
        jobs=jobs,
    )


@router.patch("/{contract_id}", response_model=ContractResponse)
async def update_contract(
    contract_id: int,
    data: ContractUpdate,
    current_user: User = Depends(get_current_manager),
    service: ContractService = Depends(get_contract_service),
):
    contract = service.update_contract(contract_id, data, current_user)
    return build_contract_response(contract)


@router.delete("/{contract_id}")
async def delete_contract(
    contract_id: int,
    current_user: User = Depends(get_current_manager),
    service: ContractService = Depends(get_contract_service),
):
    """Soft delete a contract (status becomes cancelled)"""
    contract = service.delete_contract(contract_id, current_user)
    return {"message": "Contract cancelled successfully", "contractId": contract.id, "status": contract.status}
