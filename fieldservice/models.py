"""
Core models: organizations, users, customers and service agreements
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Roles that receive manager notifications and can manage jobs/contracts
MANAGER_ROLES = ("owner", "admin", "manager", "dispatcher")

# Roles that can add and edit technician accounts
ADMIN_ROLES = ("owner", "admin", "manager")


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    timezone = Column(String(64), default="UTC")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

    users = relationship("User", back_populates="organization")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    # owner | admin | manager | dispatcher | technician | viewer
    role = Column(String(50), default="technician", nullable=False)
    login_code = Column(String(32), unique=True, nullable=True, index=True)
    specialty = Column(String(100), nullable=True)  # technicians only
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

    organization = relationship("Organization", back_populates="users")

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    type = Column(String(50), default="commercial")  # residential, commercial
    customer_type = Column(String(50), default="direct")  # direct, subcontract
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    company_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

    contracts = relationship("ServiceAgreement", back_populates="customer")

    @property
    def display_name(self) -> str:
        if self.company_name:
            return self.company_name
        full_name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full_name or "Unknown"


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())


class ServiceLocation(Base):
    """A customer site where work is performed"""

    __tablename__ = "service_locations"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    name = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Equipment(Base):
    """A serviceable unit installed at a customer site"""

    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    serial_number = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class ServiceAgreement(Base):
    """Recurring maintenance contract between the organization and a customer"""

    __tablename__ = "service_agreements"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True)

    name = Column(String(255), nullable=True)
    agreement_number = Column(String(50), unique=True, index=True, nullable=True)
    description = Column(Text, nullable=True)
    type = Column(String(100), nullable=True)  # coverage plan
    billing_type = Column(String(50), default="due_on_receipt")
    billing_frequency = Column(String(50), nullable=True)
    service_frequency = Column(String(50), nullable=True)

    # Status workflow: job_creation_needed → in_progress → renewal_needed → ended
    # overdue: end date passed without renewal
    # on_hold: paused manually, ignored by the lifecycle scan
    # cancelled: soft deleted
    # active: legacy value, treated like in_progress
    status = Column(String(50), default="job_creation_needed", nullable=False, index=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False, index=True)
    agreement_length_years = Column(Integer, default=1)
    service_count = Column(Integer, default=0)  # total occurrences over the agreement
    pm_due_next = Column(Date, nullable=True)

    unit_information = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Notification cooldown bookkeeping for the lifecycle scan
    last_notified_at = Column(DateTime, nullable=True)
    last_notified_status = Column(String(50), nullable=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="contracts")
    vendor = relationship("Vendor")
    services = relationship(
        "ContractService",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="ContractService.id",
    )
    jobs = relationship("Job", back_populates="contract")


class ContractService(Base):
    """One recurring service on a contract (e.g. MJPM twice a year)"""

    __tablename__ = "contract_services"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    contract_id = Column(Integer, ForeignKey("service_agreements.id"), nullable=False, index=True)
    service_type = Column(String(20), nullable=False)  # MJPM, MNPM
    frequency_months = Column(Integer, nullable=False, default=1)  # occurrences per year
    created_at = Column(DateTime, server_default=func.now())

    contract = relationship("ServiceAgreement", back_populates="services")
