"""
Cron entry points for contract and job status automation
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_manager
from ..config import CRON_SECRET
from ..database import get_db
from ..domain.contracts.schemas import ContractScanResponse
from ..models import User
from ..services.status_automation import mark_overdue_jobs, update_contract_statuses

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["status"])


class ContractScanSummary(BaseModel):
    overdue_contracts: int
    expiring_contracts: int
    active_contracts: int
    marked_overdue: int
    marked_renewal_needed: int
    marked_job_creation_needed: int
    notifications_sent: int
    failed: int


class JobOverdueResult(BaseModel):
    success: bool
    checked: int
    updated: int


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Require ``Bearer <CRON_SECRET>`` when a cron secret is configured"""
    if CRON_SECRET and authorization != f"Bearer {CRON_SECRET}":
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.get(
    "/contracts/check-status",
    response_model=ContractScanResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def check_contract_status(db: Session = Depends(get_db)):
    """
    Run the contract lifecycle scan for every organization
    (overdue, renewal needed, job creation needed)
    """
    try:
        summary = update_contract_statuses(db)
    except Exception as e:
        logger.error(f"❌ Contract status check failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return ContractScanResponse(
        success=True,
        overdueContracts=summary["overdue_contracts"],
        expiringContracts=summary["expiring_contracts"],
        activeContracts=summary["active_contracts"],
    )


@router.post("/contracts/scan", response_model=ContractScanSummary)
async def run_contract_scan(
    current_user: User = Depends(get_current_manager), db: Session = Depends(get_db)
):
    """Manually trigger the lifecycle scan for the current organization"""
    summary = update_contract_statuses(db, organization_id=current_user.organization_id)
    return ContractScanSummary(**summary)


@router.get(
    "/jobs/check-overdue",
    response_model=JobOverdueResult,
    dependencies=[Depends(verify_cron_secret)],
)
async def check_overdue_jobs(db: Session = Depends(get_db)):
    """Mark jobs overdue across all organizations"""
    try:
        result = mark_overdue_jobs(db)
    except Exception as e:
        logger.error(f"❌ Overdue job check failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return JobOverdueResult(success=True, **result)
