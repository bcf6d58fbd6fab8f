"""Customer repository - Database operations for customers"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Customer


class CustomerRepository:
    """Repository for customer database operations"""

    @staticmethod
    def get_customers(db: Session, organization_id: int, include_inactive: bool = False) -> list[Customer]:
        """Customers for an organization ordered by company name, active only by default"""
        query = db.query(Customer).filter(Customer.organization_id == organization_id)
        if not include_inactive:
            query = query.filter(Customer.is_active.is_(True))
        return query.order_by(
            Customer.company_name, Customer.last_name, Customer.first_name, Customer.id
        ).all()

    @staticmethod
    def get_customer_by_id(db: Session, customer_id: int, organization_id: int) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.organization_id == organization_id)
            .first()
        )

    @staticmethod
    def create_customer(db: Session, **customer_data) -> Customer:
        customer = Customer(**customer_data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def update_customer(db: Session, customer: Customer, **updates) -> Customer:
        for key, value in updates.items():
            if hasattr(customer, key):
                setattr(customer, key, value)
        db.commit()
        db.refresh(customer)
        return customer
