"""Contract repository - Database operations for service agreements"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ContractService, Customer, ServiceAgreement, Vendor
from ...models_job import CompletionChecklist, Job


class ContractRepository:
    """Repository for contract database operations"""

    @staticmethod
    def get_contracts(
        db: Session,
        organization_id: int,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        coverage_plan: Optional[str] = None,
        view_mode: str = "active",
    ) -> list[ServiceAgreement]:
        """Get contracts for an organization; ended view shows ended/cancelled only"""
        query = db.query(ServiceAgreement).filter(
            ServiceAgreement.organization_id == organization_id
        )

        if view_mode == "ended":
            query = query.filter(ServiceAgreement.status.in_(("ended", "cancelled")))
        else:
            query = query.filter(ServiceAgreement.status.notin_(("ended", "cancelled")))

        if status:
            query = query.filter(ServiceAgreement.status == status)
        if customer_id:
            query = query.filter(ServiceAgreement.customer_id == customer_id)
        if coverage_plan:
            query = query.filter(ServiceAgreement.type == coverage_plan)

        return query.order_by(ServiceAgreement.created_at.desc(), ServiceAgreement.id.desc()).all()

    @staticmethod
    def get_contract_by_id(
        db: Session, contract_id: int, organization_id: int
    ) -> Optional[ServiceAgreement]:
        return (
            db.query(ServiceAgreement)
            .filter(
                ServiceAgreement.id == contract_id,
                ServiceAgreement.organization_id == organization_id,
            )
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
    def get_vendor(db: Session, vendor_id: int, organization_id: int) -> Optional[Vendor]:
        return (
            db.query(Vendor)
            .filter(Vendor.id == vendor_id, Vendor.organization_id == organization_id)
            .first()
        )

    @staticmethod
    def agreement_number_exists(db: Session, agreement_number: str) -> bool:
        return (
            db.query(ServiceAgreement.id)
            .filter(ServiceAgreement.agreement_number == agreement_number)
            .first()
            is not None
        )

    @staticmethod
    def create_contract(db: Session, services: list[dict], **contract_data) -> ServiceAgreement:
        contract = ServiceAgreement(**contract_data)
        contract.services = [
            ContractService(organization_id=contract.organization_id, **service)
            for service in services
        ]
        db.add(contract)
        db.commit()
        db.refresh(contract)
        return contract

    @staticmethod
    def update_contract(
        db: Session,
        contract: ServiceAgreement,
        services: Optional[list[dict]] = None,
        **updates,
    ) -> ServiceAgreement:
        """Update provided fields; a services list replaces the existing set"""
        for key, value in updates.items():
            if hasattr(contract, key):
                setattr(contract, key, value)

        if services is not None:
            contract.services = [
                ContractService(organization_id=contract.organization_id, **service)
                for service in services
            ]

        db.commit()
        db.refresh(contract)
        return contract

    @staticmethod
    def get_contract_jobs(db: Session, contract_id: int) -> list[tuple[Job, Optional[CompletionChecklist]]]:
        """Jobs for a contract, most recently scheduled first, with their checklist"""
        return (
            db.query(Job, CompletionChecklist)
            .outerjoin(CompletionChecklist, CompletionChecklist.job_id == Job.id)
            .filter(Job.service_agreement_id == contract_id)
            .order_by(Job.scheduled_start.desc(), Job.id.desc())
            .all()
        )
