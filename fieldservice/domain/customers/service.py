"""Customer service - Business logic for customer operations"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Customer, User
from ...utils.sanitization import sanitize_fields
from .repository import CustomerRepository
from .schemas import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)

FREE_TEXT_FIELDS = ("address", "notes")

# CustomerCreate/CustomerUpdate field -> column
FIELD_MAP = {
    "type": "type",
    "customerType": "customer_type",
    "firstName": "first_name",
    "lastName": "last_name",
    "companyName": "company_name",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "notes": "notes",
    "isActive": "is_active",
}


def _has_name(company_name, first_name, last_name) -> bool:
    return any((value or "").strip() for value in (company_name, first_name, last_name))


class CustomerService:
    """Service layer for customer business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def get_customers(self, user: User, include_inactive: bool = False) -> list[Customer]:
        return self.repo.get_customers(self.db, user.organization_id, include_inactive)

    def get_customer(self, customer_id: int, user: User) -> Customer:
        customer = self.repo.get_customer_by_id(self.db, customer_id, user.organization_id)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer

    def create_customer(self, data: CustomerCreate, user: User) -> Customer:
        if not _has_name(data.companyName, data.firstName, data.lastName):
            raise HTTPException(status_code=400, detail="A company name or customer name is required")

        customer_data = {FIELD_MAP[key]: value for key, value in data.model_dump().items()}
        customer_data = sanitize_fields(customer_data, FREE_TEXT_FIELDS)
        customer = self.repo.create_customer(
            self.db, organization_id=user.organization_id, is_active=True, **customer_data
        )
        logger.info(f"✅ Customer created: {customer.id} for organization {user.organization_id}")
        return customer

    def update_customer(self, customer_id: int, data: CustomerUpdate, user: User) -> Customer:
        customer = self.get_customer(customer_id, user)
        updates = {FIELD_MAP[key]: value for key, value in data.model_dump(exclude_unset=True).items()}
        if updates.get("is_active") is None:
            updates.pop("is_active", None)

        if not _has_name(
            updates.get("company_name", customer.company_name),
            updates.get("first_name", customer.first_name),
            updates.get("last_name", customer.last_name),
        ):
            raise HTTPException(status_code=400, detail="A company name or customer name is required")

        updates = sanitize_fields(updates, FREE_TEXT_FIELDS)
        customer = self.repo.update_customer(self.db, customer, **updates)
        logger.info(f"✅ Customer {customer.id} updated: {sorted(updates)}")
        return customer
