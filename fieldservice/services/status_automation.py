"""
Automated status transitions for service agreements and jobs
Handles in_progress → renewal_needed / overdue / job_creation_needed for contracts
Handles pending/confirmed → overdue for jobs that were never completed
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import ServiceAgreement
from ..models_job import Job
from .lifecycle import (
    JOB_CREATION_ELIGIBLE,
    JOB_CREATION_NEEDED,
    JOB_OVERDUE,
    JOB_OVERDUE_EXCLUDED,
    OVERDUE,
    OVERDUE_EXCLUDED,
    RENEWAL_EXCLUDED,
    RENEWAL_NEEDED,
    contract_label,
    derive_contract_status,
    derive_job_overdue,
    next_job_due,
    overdue_cutoff,
    renewal_horizon,
    within_cooldown,
)
from .notification_service import (
    DatabaseNotifier,
    NotificationEvent,
    Notifier,
    get_job_technician_ids,
    get_manager_user_ids,
    job_label,
)

logger = logging.getLogger(__name__)


class ContractLifecycleScanner:
    """
    Brings contract statuses in line with their dates and notifies managers.

    Branches run in order (overdue, renewal, job creation due) and each one
    re-queries after the previous branch has committed. Every contract is
    updated and committed on its own so one bad row never aborts the scan.
    """

    def __init__(
        self,
        db: Session,
        notifier: Optional[Notifier] = None,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ):
        self.db = db
        self.notifier = notifier or DatabaseNotifier(db)
        self.now = now or datetime.utcnow()
        self.today = today or self.now.date()
        self._manager_ids: dict[int, list[int]] = {}

    def scan(self, organization_id: Optional[int] = None) -> dict:
        summary = {
            "overdue_contracts": 0,
            "expiring_contracts": 0,
            "active_contracts": 0,
            "marked_overdue": 0,
            "marked_renewal_needed": 0,
            "marked_job_creation_needed": 0,
            "notifications_sent": 0,
            "failed": 0,
        }

        # 1. OVERDUE: end date has passed
        overdue = self._query(
            "overdue",
            organization_id,
            ServiceAgreement.end_date < self.today,
            ServiceAgreement.status.notin_(OVERDUE_EXCLUDED),
        )
        summary["overdue_contracts"] = len(overdue)
        for contract in overdue:
            label = contract_label(contract)
            self._transition(
                contract,
                OVERDUE,
                "contract_overdue",
                f'Contract "{label}" has passed its end date',
                summary,
                "marked_overdue",
            )

        # 2. RENEWAL: end date within the renewal horizon (inclusive on both ends)
        expiring = self._query(
            "renewal",
            organization_id,
            ServiceAgreement.end_date >= self.today,
            ServiceAgreement.end_date <= renewal_horizon(self.today),
            ServiceAgreement.status.notin_(RENEWAL_EXCLUDED),
        )
        summary["expiring_contracts"] = len(expiring)
        for contract in expiring:
            label = contract_label(contract)
            self._transition(
                contract,
                RENEWAL_NEEDED,
                "contract_renewal_needed",
                f'Contract "{label}" expires on {contract.end_date.isoformat()} - renewal needed',
                summary,
                "marked_renewal_needed",
            )

        # 3. JOB CREATION DUE: next recurring service is less than a month away
        active = self._query(
            "job creation",
            organization_id,
            ServiceAgreement.status.in_(JOB_CREATION_ELIGIBLE),
        )
        summary["active_contracts"] = len(active)
        for contract in active:
            self._check_job_creation(contract, summary)

        logger.info(
            f"📊 Contract scan complete: {summary['marked_overdue']} overdue, "
            f"{summary['marked_renewal_needed']} renewal needed, "
            f"{summary['marked_job_creation_needed']} job creation needed"
        )
        return summary

    def _query(self, branch: str, organization_id: Optional[int], *criteria) -> list:
        """Run one branch query; a query failure counts as nothing found"""
        try:
            query = self.db.query(ServiceAgreement).filter(*criteria)
            if organization_id is not None:
                query = query.filter(ServiceAgreement.organization_id == organization_id)
            return query.order_by(ServiceAgreement.id).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error fetching contracts for {branch} check: {e}")
            return []

    def _last_job_date(self, contract: ServiceAgreement) -> Optional[date]:
        latest = (
            self.db.query(Job.scheduled_start)
            .filter(
                Job.service_agreement_id == contract.id,
                Job.scheduled_start.isnot(None),
            )
            .order_by(Job.scheduled_start.desc())
            .first()
        )
        return latest.scheduled_start.date() if latest else None

    def _check_job_creation(self, contract: ServiceAgreement, summary: dict) -> None:
        try:
            services = list(contract.services)
            if not services:
                return
            last_job_date = self._last_job_date(contract)
            target = derive_contract_status(contract, services, self.today, last_job_date)
            due = next_job_due(services, last_job_date, contract.start_date)
        except SQLAlchemyError as e:
            self.db.rollback()
            summary["failed"] += 1
            logger.error(f"❌ Error checking job schedule for contract {contract.id}: {e}")
            return

        if target != JOB_CREATION_NEEDED:
            return

        label = contract_label(contract)
        self._transition(
            contract,
            JOB_CREATION_NEEDED,
            "contract_job_needed",
            f'Contract "{label}" - schedule next service by {due.isoformat()}',
            summary,
            "marked_job_creation_needed",
        )

    def _transition(
        self,
        contract: ServiceAgreement,
        status: str,
        notification_type: str,
        message: str,
        summary: dict,
        counter: str,
    ) -> None:
        contract_id = contract.id
        organization_id = contract.organization_id
        previous = contract.status
        suppressed = within_cooldown(
            contract.last_notified_at, contract.last_notified_status, status, self.now
        )

        try:
            contract.status = status
            if not suppressed:
                contract.last_notified_at = self.now
                contract.last_notified_status = status
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            summary["failed"] += 1
            logger.error(f"❌ Failed to update contract {contract_id} to {status}: {e}")
            return

        summary[counter] += 1
        logger.info(f"✅ Contract {contract_id} transitioned: {previous} → {status}")

        if suppressed:
            logger.info(f"⏭️ Skipping {notification_type} for contract {contract_id}: notified recently")
            return

        summary["notifications_sent"] += self._notify(
            NotificationEvent(
                organization_id=organization_id,
                recipient_user_ids=self._managers(organization_id),
                type=notification_type,
                message=message,
                related_entity_type="contract",
                related_entity_id=contract_id,
            )
        )

    def _managers(self, organization_id: int) -> list[int]:
        if organization_id not in self._manager_ids:
            self._manager_ids[organization_id] = get_manager_user_ids(self.db, organization_id)
        return self._manager_ids[organization_id]

    def _notify(self, event: NotificationEvent) -> int:
        try:
            return self.notifier.notify(event) or 0
        except Exception as e:
            logger.error(f"❌ Failed to send {event.type} notification: {e}")
            return 0


def update_contract_statuses(
    db: Session,
    organization_id: Optional[int] = None,
    notifier: Optional[Notifier] = None,
    today: Optional[date] = None,
) -> dict:
    """
    Update contract statuses based on dates
    Should be run as a scheduled job (e.g., daily cron)

    Returns:
        dict: Summary of contracts found and transitions made per branch
    """
    scanner = ContractLifecycleScanner(db, notifier=notifier, today=today)
    return scanner.scan(organization_id)


def mark_overdue_jobs(
    db: Session,
    organization_id: Optional[int] = None,
    notifier: Optional[Notifier] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Flip forgotten jobs into ``overdue``.

    A job qualifies when its scheduled start is strictly older than the grace
    period and it is not completed, cancelled or already overdue. Managers
    and the job's technicians are notified once per job.

    Returns:
        dict: {"checked": jobs matched, "updated": jobs transitioned}
    """
    notifier = notifier or DatabaseNotifier(db)
    now = now or datetime.utcnow()
    summary = {"checked": 0, "updated": 0}

    try:
        query = db.query(Job).filter(
            Job.scheduled_start.isnot(None),
            Job.scheduled_start < overdue_cutoff(now),
            Job.status.notin_(JOB_OVERDUE_EXCLUDED),
        )
        if organization_id is not None:
            query = query.filter(Job.organization_id == organization_id)
        jobs = query.order_by(Job.id).all()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Error checking overdue jobs: {e}")
        return summary

    summary["checked"] = len(jobs)
    managers: dict[int, list[int]] = {}

    for job in jobs:
        if not derive_job_overdue(job, now):
            continue

        job_id = job.id
        org_id = job.organization_id
        label = job_label(job)
        try:
            job.status = JOB_OVERDUE
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to mark job {job_id} overdue: {e}")
            continue

        summary["updated"] += 1
        logger.info(f"⏰ Job {job_id} marked overdue")

        try:
            if org_id not in managers:
                managers[org_id] = get_manager_user_ids(db, org_id)
            recipients = managers[org_id] + get_job_technician_ids(db, job_id)
            notifier.notify(
                NotificationEvent(
                    organization_id=org_id,
                    recipient_user_ids=list(dict.fromkeys(recipients)),
                    type="job_overdue",
                    message=f'Job "{label}" is now overdue',
                    related_entity_type="job",
                    related_entity_id=job_id,
                )
            )
        except Exception as e:
            logger.error(f"❌ Failed to send overdue notification for job {job_id}: {e}")

    if summary["updated"]:
        logger.info(f"📊 Marked {summary['updated']} job(s) overdue")
    return summary
