"""Contract service - Business logic for service agreement operations"""

import logging
import secrets
import string
import time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import ServiceAgreement, User
from ...services.lifecycle import CANCELLED, CONTRACT_STATUSES, JOB_CREATION_NEEDED, contract_label
from ...services.notification_service import (
    DatabaseNotifier,
    NotificationEvent,
    Notifier,
    get_manager_user_ids,
)
from ...utils.sanitization import sanitize_fields
from .repository import ContractRepository
from .schemas import ContractCreate, ContractServiceInput, ContractUpdate

logger = logging.getLogger(__name__)

FREE_TEXT_FIELDS = ("description", "unit_information", "terms", "notes")

# ContractCreate/ContractUpdate field -> column
FIELD_MAP = {
    "customerId": "customer_id",
    "vendorId": "vendor_id",
    "name": "name",
    "description": "description",
    "type": "type",
    "billingType": "billing_type",
    "billingFrequency": "billing_frequency",
    "serviceFrequency": "service_frequency",
    "status": "status",
    "startDate": "start_date",
    "endDate": "end_date",
    "agreementLengthYears": "agreement_length_years",
    "pmDueNext": "pm_due_next",
    "unitInformation": "unit_information",
    "terms": "terms",
    "notes": "notes",
}

_BASE36 = string.digits + string.ascii_uppercase


def generate_agreement_number() -> str:
    """AGR-<epoch millis>-<4 random base36 chars>"""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"AGR-{int(time.time() * 1000)}-{suffix}"


def calculate_service_count(services: list[ContractServiceInput], years: Optional[int]) -> int:
    return sum(service.frequencyMonths for service in services) * (years or 1)


def _service_rows(services: list[ContractServiceInput]) -> list[dict]:
    return [
        {"service_type": service.serviceType, "frequency_months": service.frequencyMonths}
        for service in services
    ]


class ContractService:
    """Service layer for contract business logic"""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.repo = ContractRepository()
        self.notifier = notifier or DatabaseNotifier(db)

    def get_contracts(
        self,
        user: User,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        coverage_plan: Optional[str] = None,
        view_mode: str = "active",
    ) -> list[ServiceAgreement]:
        return self.repo.get_contracts(
            self.db, user.organization_id, status, customer_id, coverage_plan, view_mode
        )

    def get_contract(self, contract_id: int, user: User) -> ServiceAgreement:
        contract = self.repo.get_contract_by_id(self.db, contract_id, user.organization_id)
        if not contract:
            raise HTTPException(status_code=404, detail="Contract not found")
        return contract

    def get_contract_jobs(self, contract: ServiceAgreement):
        return self.repo.get_contract_jobs(self.db, contract.id)

    def create_contract(self, data: ContractCreate, user: User) -> ServiceAgreement:
        """Create a new service agreement with its recurring services"""
        logger.info(
            f"📝 Creating contract for organization {user.organization_id}, customer {data.customerId}"
        )
        self._validate_references(data.customerId, data.vendorId, user)
        if data.endDate < data.startDate:
            raise HTTPException(status_code=400, detail="End date must be on or after start date")
        if data.status and data.status not in CONTRACT_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid contract status: {data.status}")

        agreement_number = generate_agreement_number()
        while self.repo.agreement_number_exists(self.db, agreement_number):
            agreement_number = generate_agreement_number()

        contract_data = {
            FIELD_MAP[key]: value
            for key, value in data.model_dump(exclude={"services"}).items()
            if key in FIELD_MAP
        }
        contract_data = sanitize_fields(contract_data, FREE_TEXT_FIELDS)
        contract_data.update(
            {
                "organization_id": user.organization_id,
                "agreement_number": agreement_number,
                "status": data.status or JOB_CREATION_NEEDED,
                "billing_type": data.billingType or "due_on_receipt",
                "service_count": calculate_service_count(data.services, data.agreementLengthYears),
                "created_by": user.id,
            }
        )

        contract = self.repo.create_contract(
            self.db, services=_service_rows(data.services), **contract_data
        )
        logger.info(f"✅ Contract created: {contract.id} ({agreement_number})")

        self._notify_managers(
            contract, "contract_created", f'New contract "{contract_label(contract)}" created'
        )
        return contract

    def update_contract(self, contract_id: int, data: ContractUpdate, user: User) -> ServiceAgreement:
        """Apply a partial update; a services list replaces the full set"""
        contract = self.get_contract(contract_id, user)
        changes = data.model_dump(exclude_unset=True)

        if "status" in changes and changes["status"] not in CONTRACT_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid contract status: {changes['status']}")
        if "customerId" in changes or "vendorId" in changes:
            self._validate_references(
                changes.get("customerId", contract.customer_id), changes.get("vendorId"), user
            )

        updates = {FIELD_MAP[key]: value for key, value in changes.items() if key in FIELD_MAP}
        if "customer_id" in updates and updates["customer_id"] is None:
            raise HTTPException(status_code=400, detail="Customer is required")
        updates = sanitize_fields(updates, FREE_TEXT_FIELDS)

        start_date = updates.get("start_date", contract.start_date)
        end_date = updates.get("end_date", contract.end_date)
        if start_date and end_date and end_date < start_date:
            raise HTTPException(status_code=400, detail="End date must be on or after start date")

        services = None
        if data.services is not None:
            services = _service_rows(data.services)
            years = updates.get("agreement_length_years", contract.agreement_length_years)
            updates["service_count"] = calculate_service_count(data.services, years)
        elif "agreement_length_years" in updates:
            per_year = sum(service.frequency_months or 0 for service in contract.services)
            updates["service_count"] = per_year * (updates["agreement_length_years"] or 1)

        contract = self.repo.update_contract(self.db, contract, services=services, **updates)
        logger.info(f"✅ Contract {contract.id} updated: {sorted(changes)}")

        label = contract.agreement_number or contract.name or contract.id
        self._notify_managers(contract, "contract_updated", f"Contract {label} updated")
        return contract

    def delete_contract(self, contract_id: int, user: User) -> ServiceAgreement:
        """Soft delete: the row is kept with status cancelled"""
        contract = self.get_contract(contract_id, user)
        contract = self.repo.update_contract(self.db, contract, status=CANCELLED)
        logger.info(f"🗑️ Contract {contract.id} cancelled by user {user.id}")
        return contract

    def _validate_references(self, customer_id: int, vendor_id: Optional[int], user: User) -> None:
        if customer_id is not None and not self.repo.get_customer(
            self.db, customer_id, user.organization_id
        ):
            raise HTTPException(status_code=404, detail="Customer not found")
        if vendor_id is not None and not self.repo.get_vendor(
            self.db, vendor_id, user.organization_id
        ):
            raise HTTPException(status_code=404, detail="Vendor not found")

    def _notify_managers(self, contract: ServiceAgreement, notification_type: str, message: str) -> None:
        try:
            self.notifier.notify(
                NotificationEvent(
                    organization_id=contract.organization_id,
                    recipient_user_ids=get_manager_user_ids(self.db, contract.organization_id),
                    type=notification_type,
                    message=message,
                    related_entity_type="contract",
                    related_entity_id=contract.id,
                )
            )
        except Exception as e:
            logger.error(f"❌ Failed to send {notification_type} notification: {e}")
