"""Job service - Business logic for jobs, technician responses and reports"""

import logging
import secrets
import string
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_job import Job, JobAttachment, JobContact, JobEquipment, JobSite, JobTechnician
from ...services.lifecycle import JOB_COMPLETED, JOB_CONFIRMED, JOB_PENDING, JOB_STATUSES
from ...services.notification_service import (
    DatabaseNotifier,
    NotificationEvent,
    Notifier,
    get_job_technician_ids,
    get_manager_user_ids,
    job_label,
)
from ...services.status_automation import mark_overdue_jobs
from ...utils.sanitization import sanitize_string
from .repository import JobRepository
from .schemas import JobCreate, JobUpdate, ReportCreate, TechnicianAssignment

logger = logging.getLogger(__name__)

BILLING_STATUSES = ("not_billed", "invoiced", "paid", "un_billable")

# JobUpdate field -> (column, label used in change summaries)
EDITABLE_FIELDS = {
    "title": ("title", "title"),
    "jobNumber": ("job_number", "job number"),
    "jobType": ("job_type", "job type"),
    "serviceType": ("service_type", "service type"),
    "notes": ("notes", "notes"),
    "poNumber": ("po_number", "PO number"),
    "estimateNumber": ("estimate_number", "estimate number"),
    "billingStatus": ("billing_status", "billing status"),
    "status": ("status", "status"),
    "scheduledStart": ("scheduled_start", "scheduled start"),
    "scheduledEnd": ("scheduled_end", "scheduled end"),
    "serviceLocationId": ("service_location_id", "site"),
}


def generate_job_number(now: Optional[datetime] = None) -> str:
    """JOB-<yyyymmdd>-<4 random chars>"""
    now = now or datetime.utcnow()
    suffix = "".join(secrets.choice(string.digits + string.ascii_uppercase) for _ in range(4))
    return f"JOB-{now:%Y%m%d}-{suffix}"


def _format_value(value) -> str:
    if value is None or value == "":
        return "none"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return str(value)


class JobService:
    """Service layer for job business logic"""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.repo = JobRepository()
        self.notifier = notifier or DatabaseNotifier(db)

    # ------------------------------------------------------------------
    # Manager operations
    # ------------------------------------------------------------------

    def get_job(self, job_id: int, user: User) -> Job:
        job = self.repo.get_job_by_id(self.db, job_id, user.organization_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    def list_manager_jobs(
        self,
        user: User,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        contract_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[Job]:
        """List jobs for the organization after flipping forgotten jobs to overdue"""
        mark_overdue_jobs(self.db, user.organization_id, notifier=self.notifier, now=now)
        return self.repo.get_jobs(self.db, user.organization_id, status, customer_id, contract_id)

    def report_counts(self, job: Job) -> tuple[int, int]:
        """(expected, uploaded) report totals across the job's units"""
        uploaded_by_unit = self.repo.count_unit_reports(self.db, job.id)
        expected = sum(unit.expected_reports or 0 for unit in job.units)
        uploaded = sum(uploaded_by_unit.get(unit.equipment_id, 0) for unit in job.units)
        return expected, uploaded

    def unit_report_counts(self, job: Job) -> dict[int, int]:
        return self.repo.count_unit_reports(self.db, job.id)

    def create_job(self, data: JobCreate, user: User) -> Job:
        logger.info(f"📝 Creating job for organization {user.organization_id}, customer {data.customerId}")

        if data.status not in JOB_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid job status: {data.status}")
        if data.billingStatus not in BILLING_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid billing status: {data.billingStatus}")
        if not self.repo.get_customer(self.db, data.customerId, user.organization_id):
            raise HTTPException(status_code=404, detail="Customer not found")
        if data.serviceAgreementId and not self.repo.get_contract(
            self.db, data.serviceAgreementId, user.organization_id
        ):
            raise HTTPException(status_code=404, detail="Contract not found")
        if data.serviceLocationId and not self.repo.get_location(
            self.db, data.serviceLocationId, user.organization_id
        ):
            raise HTTPException(status_code=404, detail="Service location not found")
        technicians = self._validate_technicians(data.technicians, user)
        for unit in data.units:
            if not self.repo.get_equipment(self.db, unit.equipmentId, user.organization_id):
                raise HTTPException(status_code=404, detail=f"Equipment {unit.equipmentId} not found")
        for site in data.sites:
            if not self.repo.get_location(self.db, site.serviceLocationId, user.organization_id):
                raise HTTPException(
                    status_code=404, detail=f"Service location {site.serviceLocationId} not found"
                )

        now = datetime.utcnow()
        job = Job(
            organization_id=user.organization_id,
            customer_id=data.customerId,
            service_agreement_id=data.serviceAgreementId,
            service_location_id=data.serviceLocationId,
            job_number=data.jobNumber or generate_job_number(now),
            title=data.title,
            job_type=data.jobType,
            service_type=data.serviceType,
            notes=sanitize_string(data.notes),
            po_number=data.poNumber,
            estimate_number=data.estimateNumber,
            billing_status=data.billingStatus,
            status=data.status,
            scheduled_start=data.scheduledStart,
            scheduled_end=data.scheduledEnd,
            completed_at=now if data.status == JOB_COMPLETED else None,
            created_by=user.id,
        )
        job.technicians = [
            JobTechnician(technician_id=assignment.technicianId, is_lead=assignment.isLead, status="pending")
            for assignment in data.technicians
        ]
        job.units = [
            JobEquipment(
                equipment_id=unit.equipmentId,
                expected_reports=unit.expectedReports,
                notes=sanitize_string(unit.notes),
            )
            for unit in data.units
        ]
        job.sites = [
            JobSite(service_location_id=site.serviceLocationId, notes=sanitize_string(site.notes))
            for site in data.sites
        ]
        job.contacts = [
            JobContact(name=contact.name, phone=contact.phone, email=contact.email)
            for contact in data.contacts
        ]
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        logger.info(f"✅ Job created: {job.id} ({job.job_number})")

        label = job_label(job)
        tech_names = ", ".join(tech.full_name or tech.email for tech in technicians) or "no technicians"
        self._notify(
            job,
            get_manager_user_ids(self.db, job.organization_id),
            "job_created",
            f"Job {label} confirmed, assigned to {tech_names}",
        )
        self._notify(
            job,
            [tech.id for tech in technicians],
            "job_created",
            f"Job {label} confirmed and assigned to you",
        )
        return job

    def update_job(self, job_id: int, data: JobUpdate, user: User) -> Job:
        """
        Edit a job and notify managers and technicians with a change summary.

        ``completed_at`` follows the status: stamped when the job becomes
        completed, cleared when it leaves completed.
        """
        job = self.get_job(job_id, user)
        changes = data.model_dump(exclude_unset=True)

        if "status" in changes and changes["status"] not in JOB_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid job status: {changes['status']}")
        if "billingStatus" in changes and changes["billingStatus"] not in BILLING_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid billing status: {changes['billingStatus']}")
        if changes.get("serviceLocationId") and not self.repo.get_location(
            self.db, changes["serviceLocationId"], user.organization_id
        ):
            raise HTTPException(status_code=404, detail="Service location not found")

        previous_status = job.status
        summary = []
        for key, value in changes.items():
            if key not in EDITABLE_FIELDS:
                continue
            if key == "status" and value is None:
                continue
            column, label = EDITABLE_FIELDS[key]
            if key == "notes":
                value = sanitize_string(value)
            old = getattr(job, column)
            if old != value:
                setattr(job, column, value)
                summary.append(f"{label}: {_format_value(old)} → {_format_value(value)}")

        if job.status == JOB_COMPLETED and previous_status != JOB_COMPLETED:
            job.completed_at = datetime.utcnow()
        elif job.status != JOB_COMPLETED:
            job.completed_at = None

        if data.technicians is not None:
            technicians = self._validate_technicians(data.technicians, user)
            if self._replace_technicians(job, data.technicians):
                names = ", ".join(tech.full_name or tech.email for tech in technicians) or "none"
                summary.append(f"technicians: {names}")

        self.db.commit()
        self.db.refresh(job)

        if not summary:
            return job

        logger.info(f"✅ Job {job.id} updated: {'; '.join(summary)}")
        recipients = self._job_recipients(job, exclude=user.id)
        self._notify(
            job,
            recipients,
            "job_updated",
            f'Job "{job.title or job.job_number}" was updated. Changes: {"; ".join(summary)}',
        )
        if job.status == JOB_COMPLETED and previous_status != JOB_COMPLETED:
            self._notify(
                job,
                get_job_technician_ids(self.db, job.id),
                "job_completed",
                f"Job {job_label(job)} has been marked completed",
            )
        return job

    def update_return_trip_decision(
        self, job_id: int, needed: bool, reason: Optional[str], user: User
    ) -> Job:
        job = self.get_job(job_id, user)
        job.manager_return_trip_needed = needed
        job.manager_return_trip_reason = sanitize_string(reason) if needed else None
        job.manager_return_trip_updated_at = datetime.utcnow()
        job.manager_return_trip_updated_by = user.id
        self.db.commit()
        self.db.refresh(job)
        logger.info(f"🔄 Return trip decision for job {job.id}: needed={needed}")
        return job

    def delete_job(self, job_id: int, user: User) -> None:
        job = self.get_job(job_id, user)
        self.db.delete(job)
        self.db.commit()
        logger.info(f"🗑️ Job {job_id} deleted by user {user.id}")

    # ------------------------------------------------------------------
    # Technician operations
    # ------------------------------------------------------------------

    def list_technician_jobs(self, user: User) -> list[tuple[Job, JobTechnician]]:
        return self.repo.get_technician_assignments(self.db, user.id)

    def accept_assignment(self, job_id: int, user: User) -> JobTechnician:
        """Accept an assignment; a pending job becomes confirmed"""
        job, assignment = self._get_assignment(job_id, user)
        assignment.status = "accepted"
        assignment.responded_at = datetime.utcnow()
        if job.status == JOB_PENDING:
            job.status = JOB_CONFIRMED
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(f"✅ Technician {user.id} accepted job {job.id}")

        self._notify(
            job,
            get_manager_user_ids(self.db, job.organization_id),
            "job_accepted",
            f"{user.full_name or user.email} accepted job {job_label(job)}",
        )
        return assignment

    def decline_assignment(self, job_id: int, user: User, reason: Optional[str] = None) -> JobTechnician:
        job, assignment = self._get_assignment(job_id, user)
        assignment.status = "declined"
        assignment.responded_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(f"⚠️ Technician {user.id} declined job {job.id}")

        message = f"{user.full_name or user.email} declined job {job_label(job)}"
        if reason:
            message = f"{message}: {sanitize_string(reason)}"
        self._notify(job, get_manager_user_ids(self.db, job.organization_id), "job_declined", message)
        return assignment

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def save_report_metadata(self, job_id: int, data: ReportCreate, user: User) -> JobAttachment:
        """Record a report that was uploaded to storage and tell everyone else on the job"""
        job = self.get_job(job_id, user)
        if data.equipmentId is not None and data.equipmentId not in {
            unit.equipment_id for unit in job.units
        }:
            raise HTTPException(status_code=400, detail="Equipment is not assigned to this job")

        mime_type = data.mimeType or ""
        report = JobAttachment(
            job_id=job.id,
            equipment_id=data.equipmentId,
            type="photo" if mime_type.startswith("image/") else "document",
            file_url=data.fileUrl,
            file_name=data.fileName,
            file_size=data.fileSize,
            mime_type=data.mimeType,
            uploaded_by=user.id,
        )
        self.db.add(report)
        self.db.commit()
        self.db.refresh(report)
        logger.info(f"📎 Report {report.id} uploaded to job {job.id} by user {user.id}")

        self._notify(
            job,
            self._job_recipients(job, exclude=user.id),
            "report_uploaded",
            f"Report uploaded to job {job_label(job)}",
        )
        return report

    def delete_report(self, job_id: int, report_id: int, user: User) -> None:
        """Managers can delete any report; technicians only their own uploads"""
        job = self.get_job(job_id, user)
        report = self.repo.get_report(self.db, job.id, report_id)
        if not report:
            raise HTTPException(status_code=404, detail="Report not found")
        if not user.is_manager and report.uploaded_by != user.id:
            raise HTTPException(status_code=403, detail="Not allowed to delete this report")

        self.db.delete(report)
        self.db.commit()
        logger.info(f"🗑️ Report {report_id} deleted from job {job.id} by user {user.id}")

        self._notify(
            job,
            self._job_recipients(job, exclude=user.id),
            "report_deleted",
            f"Report deleted from job {job_label(job)}",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_technicians(self, assignments: list[TechnicianAssignment], user: User) -> list[User]:
        ids = [assignment.technicianId for assignment in assignments]
        if len(ids) != len(set(ids)):
            raise HTTPException(status_code=400, detail="Technician assigned more than once")
        if sum(1 for assignment in assignments if assignment.isLead) > 1:
            raise HTTPException(status_code=400, detail="A job can have at most one lead technician")

        users = self.repo.get_org_users(self.db, ids, user.organization_id)
        if len(users) != len(ids):
            raise HTTPException(status_code=400, detail="Unknown technician")
        by_id = {tech.id: tech for tech in users}
        return [by_id[tech_id] for tech_id in ids]

    def _replace_technicians(self, job: Job, assignments: list[TechnicianAssignment]) -> bool:
        """Sync assignments in place, keeping response status for technicians that stay"""
        wanted = {assignment.technicianId: assignment.isLead for assignment in assignments}
        changed = False

        for existing in list(job.technicians):
            if existing.technician_id not in wanted:
                job.technicians.remove(existing)
                changed = True
            elif existing.is_lead != wanted[existing.technician_id]:
                existing.is_lead = wanted[existing.technician_id]
                changed = True

        current = {existing.technician_id for existing in job.technicians}
        for tech_id, is_lead in wanted.items():
            if tech_id not in current:
                job.technicians.append(
                    JobTechnician(technician_id=tech_id, is_lead=is_lead, status="pending")
                )
                changed = True
        return changed

    def _get_assignment(self, job_id: int, user: User) -> tuple[Job, JobTechnician]:
        job = self.get_job(job_id, user)
        assignment = self.repo.get_assignment(self.db, job.id, user.id)
        if not assignment:
            raise HTTPException(status_code=404, detail="You are not assigned to this job")
        if assignment.status == "cancelled":
            raise HTTPException(status_code=400, detail="This assignment was cancelled")
        return job, assignment

    def _job_recipients(self, job: Job, exclude: Optional[int] = None) -> list[int]:
        recipients = get_manager_user_ids(self.db, job.organization_id) + get_job_technician_ids(
            self.db, job.id
        )
        return [uid for uid in dict.fromkeys(recipients) if uid != exclude]

    def _notify(self, job: Job, recipients: list[int], notification_type: str, message: str) -> None:
        try:
            self.notifier.notify(
                NotificationEvent(
                    organization_id=job.organization_id,
                    recipient_user_ids=recipients,
                    type=notification_type,
                    message=message,
                    related_entity_type="job",
                    related_entity_id=job.id,
                )
            )
        except Exception as e:
            logger.error(f"❌ Failed to send {notification_type} notification for job {job.id}: {e}")
