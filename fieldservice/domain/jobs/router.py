"""Job router - FastAPI endpoints for managers and technicians"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import get_current_manager, get_current_user
from ...database import get_db
from ...models import User
from ...models_job import Job
from ...services.checklist_service import ChecklistResult, ChecklistService
from .schemas import (
    ChecklistUpdate,
    DeclineRequest,
    GateToggle,
    JobContactResponse,
    JobCreate,
    JobDetailResponse,
    JobListItem,
    JobSiteResponse,
    JobTechnicianResponse,
    JobUnitResponse,
    JobUpdate,
    ReportCreate,
    ReportResponse,
    ReturnTripDecision,
    TechnicianJobItem,
)
from .service import JobService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])
technician_router = APIRouter(prefix="/technician/jobs", tags=["Technician Jobs"])


def get_job_service(db: Session = Depends(get_db)) -> JobService:
    """Dependency injection for JobService"""
    return JobService(db)


def get_checklist_service(db: Session = Depends(get_db)) -> ChecklistService:
    return ChecklistService(db)


def build_job_detail(job: Job, service: JobService) -> JobDetailResponse:
    uploaded = service.unit_report_counts(job)
    return JobDetailResponse(
        id=job.id,
        jobNumber=job.job_number,
        title=job.title,
        jobType=job.job_type,
        serviceType=job.service_type,
        status=job.status,
        billingStatus=job.billing_status,
        customerId=job.customer_id,
        customerName=job.customer.display_name if job.customer else "Unknown",
        serviceAgreementId=job.service_agreement_id,
        serviceLocationId=job.service_location_id,
        notes=job.notes,
        poNumber=job.po_number,
        estimateNumber=job.estimate_number,
        scheduledStart=job.scheduled_start,
        scheduledEnd=job.scheduled_end,
        completedAt=job.completed_at,
        returnTripNeeded=job.manager_return_trip_needed,
        returnTripReason=job.manager_return_trip_reason,
        technicians=[
            JobTechnicianResponse(
                technicianId=assignment.technician_id,
                name=assignment.technician.full_name if assignment.technician else None,
                status=assignment.status,
                isLead=bool(assignment.is_lead),
                respondedAt=assignment.responded_at,
            )
            for assignment in job.technicians
        ],
        units=[
            JobUnitResponse(
                id=unit.id,
                equipmentId=unit.equipment_id,
                name=unit.equipment.name if unit.equipment else None,
                expectedReports=unit.expected_reports or 0,
                uploadedReports=uploaded.get(unit.equipment_id, 0),
                notes=unit.notes,
            )
            for unit in job.units
        ],
        sites=[
            JobSiteResponse(
                id=site.id,
                serviceLocationId=site.service_location_id,
                name=site.location.name if site.location else None,
                address=site.location.address if site.location else None,
                notes=site.notes,
            )
            for site in job.sites
        ],
        contacts=[
            JobContactResponse(id=contact.id, name=contact.name, phone=contact.phone, email=contact.email)
            for contact in job.contacts
        ],
    )


def checklist_response(result: ChecklistResult):
    """Failures keep the {success: false, error} shape with a 400 status"""
    if not result.success:
        return JSONResponse(status_code=400, content={"success": False, "error": result.error})
    return jsonable_encoder(asdict(result))


# ============================================================================
# MANAGER ENDPOINTS
# ============================================================================


@router.get("", response_model=list[JobListItem])
async def list_jobs(
    current_user: User = Depends(get_current_manager),
    service: JobService = Depends(get_job_service),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    contract_id: Optional[int] = Query(None),
):
    """Manager job list; loading it marks forgotten jobs overdue first"""
    jobs = service.list_manager_jobs(current_user, status, customer_id, contract_id)

    result = []
    for job in jobs:
        expected, uploaded = service.report_counts(job)
        responses = [assignment.status for assignment in job.technicians]
        result.append(
            JobListItem(
                id=job.id,
                jobNumber=job.job_number,
                title=job.title,
                status=job.status,
                billingStatus=job.billing_status,
                customerId=job.customer_id,
                customerName=job.customer.display_name if job.customer else "Unknown",
                serviceAgreementId=job.service_agreement_id,
                scheduledStart=job.scheduled_start,
                completedAt=job.completed_at,
                technicianCount=len(responses),
                acceptedCount=responses.count("accepted"),
                declinedCount=responses.count("declined"),
                pendingCount=responses.count("pending"),
                expectedReports=expected,
                uploadedReports=uploaded,
            )
        )
    return result


@router.post("", response_model=JobDetailResponse, status_code=201)
async def create_job(
    data: JobCreate,
    current_user: User = Depends(get_current_manager),
    service: JobService = Depends(get_job_service),
):
    job = service.create_job(data, current_user)
    return build_job_detail(job, service)


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job_detail(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job = service.get_job(job_id, current_user)
    return build_job_detail(job, service)


@router.patch("/{job_id}", response_model=JobDetailResponse)
async def update_job(
    job_id: int,
    data: JobUpdate,
    current_user: User = Depends(get_current_manager),
    service: JobService = Depends(get_job_service),
):
    job = service.update_job(job_id, data, current_user)
    return build_job_detail(job, service)


@router.put("/{job_id}/return-trip", response_model=JobDetailResponse)
async def update_return_trip(
    job_id: int,
    data: ReturnTripDecision,
    current_user: User = Depends(get_current_manager),
    service: JobService = Depends(get_job_service),
):
    job = service.update_return_trip_decision(job_id, data.needed, data.reason, current_user)
    return build_job_detail(job, service)


@router.delete("/{job_id}")
async def delete_job(
    job_id: int,
    current_user: User = Depends(get_current_manager),
    service: JobService = Depends(get_job_service),
):
    service.delete_job(job_id, current_user)
    return {"message": "Job deleted successfully", "jobId": job_id}


# ============================================================================
# COMPLETION CHECKLIST
# ============================================================================


@router.get("/{job_id}/checklist")
async def get_checklist(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: ChecklistService = Depends(get_checklist_service),
):
    return checklist_response(service.load_checklist(job_id, current_user))


@router.put("/{job_id}/checklist")
async def update_checklist(
    job_id: int,
    data: ChecklistUpdate,
    current_user: User = Depends(get_current_manager),
    service: ChecklistService = Depends(get_checklist_service),
):
    gates = data.model_dump(exclude_none=True)
    return checklist_response(service.update_checklist(job_id, gates, current_user))


@router.patch("/{job_id}/checklist/{gate}")
async def toggle_checklist_gate(
    job_id: int,
    gate: str,
    data: GateToggle,
    current_user: User = Depends(get_current_manager),
    service: ChecklistService = Depends(get_checklist_service),
):
    return checklist_response(service.toggle_gate(job_id, gate, data.value, current_user))


# ============================================================================
# REPORTS
# ============================================================================


def build_report_response(report) -> ReportResponse:
    return ReportResponse(
        id=report.id,
        jobId=report.job_id,
        equipmentId=report.equipment_id,
        type=report.type,
        fileUrl=report.file_url,
        fileName=report.file_name,
        fileSize=report.file_size,
        mimeType=report.mime_type,
        uploadedBy=report.uploaded_by,
        createdAt=report.created_at,
    )


@router.get("/{job_id}/reports", response_model=list[ReportResponse])
async def list_reports(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    job = service.get_job(job_id, current_user)
    return [build_report_response(report) for report in job.attachments]


@router.post("/{job_id}/reports", response_model=ReportResponse, status_code=201)
async def upload_report(
    job_id: int,
    data: ReportCreate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Record metadata for a report file that was already uploaded to storage"""
    report = service.save_report_metadata(job_id, data, current_user)
    return build_report_response(report)


@router.delete("/{job_id}/reports/{report_id}")
async def delete_report(
    job_id: int,
    report_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    service.delete_report(job_id, report_id, current_user)
    return {"message": "Report deleted successfully", "reportId": report_id}


# ============================================================================
# TECHNICIAN ENDPOINTS
# ============================================================================


@technician_router.get("", response_model=list[TechnicianJobItem])
async def list_my_jobs(
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return [
        TechnicianJobItem(
            id=job.id,
            jobNumber=job.job_number,
            title=job.title,
            status=job.status,
            scheduledStart=job.scheduled_start,
            assignmentStatus=assignment.status,
            isLead=bool(assignment.is_lead),
        )
        for job, assignment in service.list_technician_jobs(current_user)
    ]


@technician_router.post("/{job_id}/accept")
async def accept_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    assignment = service.accept_assignment(job_id, current_user)
    return {"success": True, "status": assignment.status, "respondedAt": assignment.responded_at}


@technician_router.post("/{job_id}/decline")
async def decline_job(
    job_id: int,
    data: Optional[DeclineRequest] = None,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    assignment = service.decline_assignment(job_id, current_user, data.reason if data else None)
    return {"success": True, "status": assignment.status, "respondedAt": assignment.responded_at}
