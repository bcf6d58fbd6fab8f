"""
Job Management Models for Contract Execution
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Job(Base):
    """A unit of field work, optionally generated from a service agreement"""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    service_agreement_id = Column(
        Integer, ForeignKey("service_agreements.id"), nullable=True, index=True
    )
    service_location_id = Column(Integer, ForeignKey("service_locations.id"), nullable=True)

    job_number = Column(String(50), index=True, nullable=True)
    title = Column(String(255), nullable=True)
    job_type = Column(String(50), nullable=True)  # pm, repair, install, inspection
    service_type = Column(String(50), nullable=True)  # MJPM, MNPM
    notes = Column(Text, nullable=True)
    po_number = Column(String(100), nullable=True)
    estimate_number = Column(String(100), nullable=True)

    # not_billed → invoiced → paid, or un_billable
    billing_status = Column(String(50), default="not_billed")

    # Status workflow: pending → confirmed → completed
    # overdue: scheduled start passed by the grace period without completion
    # on_hold / cancelled: set manually
    status = Column(String(50), default="pending", nullable=False, index=True)

    scheduled_start = Column(DateTime, nullable=True, index=True)
    scheduled_end = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)  # set only while status == completed

    # Manager decision on whether another trip to the site is required
    manager_return_trip_needed = Column(Boolean, nullable=True)
    manager_return_trip_reason = Column(Text, nullable=True)
    manager_return_trip_updated_at = Column(DateTime, nullable=True)
    manager_return_trip_updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    contract = relationship("ServiceAgreement", back_populates="jobs")
    customer = relationship("Customer")
    technicians = relationship(
        "JobTechnician", back_populates="job", cascade="all, delete-orphan"
    )
    units = relationship("JobEquipment", back_populates="job", cascade="all, delete-orphan")
    sites = relationship("JobSite", back_populates="job", cascade="all, delete-orphan")
    contacts = relationship("JobContact", back_populates="job", cascade="all, delete-orphan")
    attachments = relationship(
        "JobAttachment", back_populates="job", cascade="all, delete-orphan"
    )
    checklist = relationship(
        "CompletionChecklist", back_populates="job", uselist=False, cascade="all, delete-orphan"
    )


class JobTechnician(Base):
    __tablename__ = "job_technicians"
    __table_args__ = (UniqueConstraint("job_id", "technician_id", name="uq_job_technician"),)

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    technician_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), default="pending")  # pending, accepted, declined, cancelled
    is_lead = Column(Boolean, default=False)  # at most one lead per job
    assigned_at = Column(DateTime, server_default=func.now())
    responded_at = Column(DateTime, nullable=True)

    job = relationship("Job", back_populates="technicians")
    technician = relationship("User")


class JobEquipment(Base):
    """A unit serviced on a job, with the number of reports expected for it"""

    __tablename__ = "job_equipment"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=False)
    expected_reports = Column(Integer, default=0)
    notes = Column(Text, nullable=True)

    job = relationship("Job", back_populates="units")
    equipment = relationship("Equipment")


class JobSite(Base):
    __tablename__ = "job_sites"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    service_location_id = Column(Integer, ForeignKey("service_locations.id"), nullable=False)
    notes = Column(Text, nullable=True)

    job = relationship("Job", back_populates="sites")
    location = relationship("ServiceLocation")


class JobContact(Base):
    __tablename__ = "job_contacts"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)

    job = relationship("Job", back_populates="contacts")


class JobAttachment(Base):
    """Metadata for a report file already stored in object storage"""

    __tablename__ = "job_attachments"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=True, index=True)
    type = Column(String(20), default="document")  # photo, document, video, other
    file_url = Column(String(1000), nullable=False)
    file_name = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    job = relationship("Job", back_populates="attachments")


class CompletionChecklist(Base):
    """Per-job completion gates; all five true means the job is completed"""

    __tablename__ = "completion_checklists"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), unique=True, nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)

    reports_uploaded = Column(Boolean, default=False, nullable=False)  # derived from attachments
    reports_sent_to_customer = Column(Boolean, default=False, nullable=False)
    reports_saved_in_file = Column(Boolean, default=False, nullable=False)
    invoiced = Column(Boolean, default=False, nullable=False)  # derived from billing status
    parts_logistics_completed = Column(Boolean, default=False, nullable=False)
    no_pending_return_visits = Column(Boolean, default=False, nullable=False)  # legacy, hidden

    # Job status captured when the checklist completed the job
    previous_status = Column(String(50), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    job = relationship("Job", back_populates="checklist")
