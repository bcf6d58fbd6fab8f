"""
Completion checklist for jobs

Five visible gates must all be true for a job to be ``completed``:

    reports_uploaded           (auto: every unit has its expected reports)
    reports_sent_to_customer
    reports_saved_in_file
    invoiced                   (auto: billing status invoiced / paid / un_billable)
    parts_logistics_completed

The checklist is either ``Incomplete`` or ``Complete(previous_status)``.
Completing records the job's status so that unchecking any gate can put the
job back where it was. Write failures are returned as
``ChecklistResult(success=False, error=...)`` and never raised.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User
from ..models_job import CompletionChecklist, Job, JobAttachment, JobEquipment
from .lifecycle import JOB_COMPLETED, JOB_PENDING

logger = logging.getLogger(__name__)

GATES = (
    "reports_uploaded",
    "reports_sent_to_customer",
    "reports_saved_in_file",
    "invoiced",
    "parts_logistics_completed",
)
AUTO_GATES = ("reports_uploaded", "invoiced")
MANUAL_GATES = tuple(gate for gate in GATES if gate not in AUTO_GATES)
INVOICED_BILLING_STATUSES = ("invoiced", "paid", "un_billable")


@dataclass(frozen=True)
class Incomplete:
    pass


@dataclass(frozen=True)
class Complete:
    previous_status: str


ChecklistState = Union[Incomplete, Complete]


@dataclass
class ChecklistResult:
    success: bool
    data: Optional[dict] = None
    error: Optional[str] = None


def checklist_state(job_status: str, previous_status: Optional[str]) -> ChecklistState:
    if job_status == JOB_COMPLETED:
        return Complete(restore_status(previous_status))
    return Incomplete()


def restore_status(previous_status: Optional[str]) -> str:
    """Status a job returns to when its checklist is reopened"""
    if not previous_status or previous_status == JOB_COMPLETED:
        return JOB_PENDING
    return previous_status


def auto_gates(expected_reports: int, uploaded_reports: int, billing_status: Optional[str]) -> dict:
    return {
        "reports_uploaded": expected_reports == 0 or uploaded_reports >= expected_reports,
        "invoiced": billing_status in INVOICED_BILLING_STATUSES,
    }


def transition(state: ChecklistState, job_status: str, all_gates: bool) -> Optional[ChecklistState]:
    """
    Next checklist state, or None when nothing changes.

    Incomplete + all gates true  -> Complete(previous_status=job_status)
    Complete   + any gate false  -> Incomplete (job restored to previous_status)
    """
    if isinstance(state, Incomplete) and all_gates and job_status != JOB_COMPLETED:
        return Complete(job_status)
    if isinstance(state, Complete) and not all_gates:
        return Incomplete()
    return None


class ChecklistService:
    """Loads and saves completion checklists, keeping the job status in step"""

    def __init__(self, db: Session):
        self.db = db

    def load_checklist(self, job_id: int, user: User) -> ChecklistResult:
        """
        Return the checklist for a job, re-deriving the automatic gates.

        When an automatic gate no longer matches the job's reports or billing
        status, the corrected checklist is saved (which may complete or
        reopen the job).
        """
        try:
            job = self._get_job(job_id, user)
            if not job:
                return ChecklistResult(success=False, error="Job not found")

            checklist = self._get_checklist(job)
            derived = self._derive_auto_gates(job)
            current = self._gates(checklist)

            if any(current[gate] != value for gate, value in derived.items()):
                logger.info(f"🔄 Auto gates changed for job {job_id}: {derived}")
                return self._save(job, {**current, **derived}, user)

            return ChecklistResult(success=True, data=self._serialize(job, checklist))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error loading checklist for job {job_id}: {e}")
            return ChecklistResult(success=False, error=str(e))

    def update_checklist(self, job_id: int, gates: dict, user: User) -> ChecklistResult:
        """Save manual gate values; automatic gates always take their derived value"""
        unknown = set(gates) - set(GATES) - {"no_pending_return_visits"}
        if unknown:
            return ChecklistResult(success=False, error=f"Unknown checklist items: {sorted(unknown)}")

        try:
            job = self._get_job(job_id, user)
            if not job:
                return ChecklistResult(success=False, error="Job not found")

            checklist = self._get_checklist(job)
            values = {**self._gates(checklist), **gates, **self._derive_auto_gates(job)}
            return self._save(job, values, user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error updating checklist for job {job_id}: {e}")
            return ChecklistResult(success=False, error=str(e))

    def toggle_gate(self, job_id: int, gate: str, value: bool, user: User) -> ChecklistResult:
        if gate not in MANUAL_GATES:
            return ChecklistResult(success=False, error=f"{gate} cannot be toggled manually")
        return self.update_checklist(job_id, {gate: value}, user)

    def _get_job(self, job_id: int, user: User) -> Optional[Job]:
        return (
            self.db.query(Job)
            .filter(Job.id == job_id, Job.organization_id == user.organization_id)
            .first()
        )

    def _get_checklist(self, job: Job) -> Optional[CompletionChecklist]:
        return (
            self.db.query(CompletionChecklist)
            .filter(CompletionChecklist.job_id == job.id)
            .first()
        )

    def _gates(self, checklist: Optional[CompletionChecklist]) -> dict:
        values = {gate: bool(getattr(checklist, gate, False)) for gate in GATES}
        values["no_pending_return_visits"] = bool(
            getattr(checklist, "no_pending_return_visits", False)
        )
        return values

    def _report_counts(self, job: Job) -> tuple[int, int]:
        units = self.db.query(JobEquipment).filter(JobEquipment.job_id == job.id).all()
        expected = sum(unit.expected_reports or 0 for unit in units)
        uploaded = 0
        for unit in units:
            uploaded += (
                self.db.query(func.count(JobAttachment.id))
                .filter(
                    JobAttachment.job_id == job.id,
                    JobAttachment.equipment_id == unit.equipment_id,
                )
                .scalar()
                or 0
            )
        return expected, uploaded

    def _derive_auto_gates(self, job: Job) -> dict:
        expected, uploaded = self._report_counts(job)
        return auto_gates(expected, uploaded, job.billing_status)

    def _save(self, job: Job, values: dict, user: User) -> ChecklistResult:
        """Upsert the checklist and apply the resulting job status transition"""
        checklist = self._get_checklist(job)
        if checklist is None:
            checklist = CompletionChecklist(job_id=job.id, organization_id=job.organization_id)
            self.db.add(checklist)

        for gate, value in values.items():
            setattr(checklist, gate, bool(value))

        all_gates = all(values.get(gate) for gate in GATES)
        state = checklist_state(job.status, checklist.previous_status)
        next_state = transition(state, job.status, all_gates)
        now = datetime.utcnow()

        if isinstance(next_state, Complete):
            checklist.previous_status = next_state.previous_status
            checklist.completed_at = now
            checklist.completed_by = user.id
            job.status = JOB_COMPLETED
            job.completed_at = now
            logger.info(
                f"✅ Job {job.id} completed by checklist (was {next_state.previous_status})"
            )
        elif isinstance(next_state, Incomplete):
            restored = restore_status(checklist.previous_status)
            checklist.completed_at = None
            checklist.completed_by = None
            job.status = restored
            job.completed_at = None
            logger.info(f"🔄 Job {job.id} reopened by checklist: completed → {restored}")
        elif isinstance(state, Incomplete):
            # Track the live status while incomplete
            checklist.previous_status = job.status

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error saving checklist for job {job.id}: {e}")
            return ChecklistResult(success=False, error=str(e))

        self.db.refresh(checklist)
        self.db.refresh(job)
        return ChecklistResult(success=True, data=self._serialize(job, checklist))

    def _serialize(self, job: Job, checklist: Optional[CompletionChecklist]) -> dict:
        data = {
            "job_id": job.id,
            "job_status": job.status,
            **self._gates(checklist),
            "all_completed": all(bool(getattr(checklist, gate, False)) for gate in GATES),
            "previous_status": getattr(checklist, "previous_status", None),
            "completed_at": getattr(checklist, "completed_at", None),
            "completed_by": getattr(checklist, "completed_by", None),
            "completed_by_name": None,
        }
        if checklist is not None and checklist.completed_by:
            completed_by = self.db.query(User).filter(User.id == checklist.completed_by).first()
            if completed_by:
                data["completed_by_name"] = completed_by.full_name or completed_by.email
        return data
