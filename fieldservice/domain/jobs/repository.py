"""Job repository - Database operations for jobs and their assignments"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Customer, Equipment, ServiceAgreement, ServiceLocation, User
from ...models_job import Job, JobAttachment, JobTechnician


class JobRepository:
    """Repository for job database operations"""

    @staticmethod
    def get_jobs(
        db: Session,
        organization_id: int,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        contract_id: Optional[int] = None,
    ) -> list[Job]:
        query = db.query(Job).filter(Job.organization_id == organization_id)
        if status:
            query = query.filter(Job.status == status)
        if customer_id:
            query = query.filter(Job.customer_id == customer_id)
        if contract_id:
            query = query.filter(Job.service_agreement_id == contract_id)
        return query.order_by(Job.scheduled_start.desc(), Job.id.desc()).all()

    @staticmethod
    def get_job_by_id(db: Session, job_id: int, organization_id: int) -> Optional[Job]:
        return (
            db.query(Job)
            .filter(Job.id == job_id, Job.organization_id == organization_id)
            .first()
        )

    @staticmethod
    def get_customer(db: Session, customer_id: int, organization_id: int) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.organization_id == organization_id)
            .first()
        )

    @staticmethod
    def get_contract(db: Session, contract_id: int, organization_id: int) -> Optional[ServiceAgreement]:
        return (
            db.query(ServiceAgreement)
            .filter(
                ServiceAgreement.id == contract_id,
                ServiceAgreement.organization_id == organization_id,
            )
            .first()
        )

    @staticmethod
    def get_location(db: Session, location_id: int, organization_id: int) -> Optional[ServiceLocation]:
        return (
            db.query(ServiceLocation)
            .filter(
                ServiceLocation.id == location_id,
                ServiceLocation.organization_id == organization_id,
            )
            .first()
        )

    @staticmethod
    def get_equipment(db: Session, equipment_id: int, organization_id: int) -> Optional[Equipment]:
        return (
            db.query(Equipment)
            .filter(Equipment.id == equipment_id, Equipment.organization_id == organization_id)
            .first()
        )

    @staticmethod
    def get_org_users(db: Session, user_ids: list[int], organization_id: int) -> list[User]:
        if not user_ids:
            return []
        return (
            db.query(User)
            .filter(User.id.in_(user_ids), User.organization_id == organization_id)
            .all()
        )

    @staticmethod
    def get_assignment(db: Session, job_id: int, technician_id: int) -> Optional[JobTechnician]:
        return (
            db.query(JobTechnician)
            .filter(JobTechnician.job_id == job_id, JobTechnician.technician_id == technician_id)
            .first()
        )

    @staticmethod
    def get_technician_assignments(db: Session, technician_id: int) -> list[tuple[Job, JobTechnician]]:
        return (
            db.query(Job, JobTechnician)
            .join(JobTechnician, JobTechnician.job_id == Job.id)
            .filter(
                JobTechnician.technician_id == technician_id,
                JobTechnician.status != "cancelled",
            )
            .order_by(Job.scheduled_start.asc(), Job.id.asc())
            .all()
        )

    @staticmethod
    def count_unit_reports(db: Session, job_id: int) -> dict[int, int]:
        """Uploaded report count per equipment id for a job"""
        rows = (
            db.query(JobAttachment.equipment_id, func.count(JobAttachment.id))
            .filter(JobAttachment.job_id == job_id, JobAttachment.equipment_id.isnot(None))
            .group_by(JobAttachment.equipment_id)
            .all()
        )
        return {equipment_id: count for equipment_id, count in rows}

    @staticmethod
    def get_report(db: Session, job_id: int, report_id: int) -> Optional[JobAttachment]:
        return (
            db.query(JobAttachment)
            .filter(JobAttachment.id == report_id, JobAttachment.job_id == job_id)
            .first()
        )
