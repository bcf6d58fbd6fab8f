"""Job domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TechnicianAssignment(BaseModel):
    technicianId: int
    isLead: bool = False


class UnitAssignment(BaseModel):
    equipmentId: int
    expectedReports: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class SiteAssignment(BaseModel):
    serviceLocationId: int
    notes: Optional[str] = None


class ContactInput(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None


class JobCreate(BaseModel):
    """Schema for creating a job"""

    customerId: int
    serviceAgreementId: Optional[int] = None
    serviceLocationId: Optional[int] = None
    jobNumber: Optional[str] = None
    title: Optional[str] = None
    jobType: Optional[str] = None
    serviceType: Optional[str] = None
    notes: Optional[str] = None
    poNumber: Optional[str] = None
    estimateNumber: Optional[str] = None
    billingStatus: str = "not_billed"
    status: str = "pending"
    scheduledStart: Optional[datetime] = None
    scheduledEnd: Optional[datetime] = None
    technicians: list[TechnicianAssignment] = []
    units: list[UnitAssignment] = []
    sites: list[SiteAssignment] = []
    contacts: list[ContactInput] = []


class JobUpdate(BaseModel):
    """Schema for editing a job; technicians replace the full assignment set"""

    title: Optional[str] = None
    jobNumber: Optional[str] = None
    jobType: Optional[str] = None
    serviceType: Optional[str] = None
    notes: Optional[str] = None
    poNumber: Optional[str] = None
    estimateNumber: Optional[str] = None
    billingStatus: Optional[str] = None
    status: Optional[str] = None
    scheduledStart: Optional[datetime] = None
    scheduledEnd: Optional[datetime] = None
    serviceLocationId: Optional[int] = None
    technicians: Optional[list[TechnicianAssignment]] = None


class ReturnTripDecision(BaseModel):
    needed: bool
    reason: Optional[str] = None


class DeclineRequest(BaseModel):
    reason: Optional[str] = None


class ReportCreate(BaseModel):
    """Metadata for a report file that is already in storage"""

    fileUrl: str
    fileName: Optional[str] = None
    fileSize: Optional[int] = Field(default=None, ge=0)
    mimeType: Optional[str] = None
    equipmentId: Optional[int] = None


class ChecklistUpdate(BaseModel):
    reports_sent_to_customer: Optional[bool] = None
    reports_saved_in_file: Optional[bool] = None
    parts_logistics_completed: Optional[bool] = None
    no_pending_return_visits: Optional[bool] = None


class GateToggle(BaseModel):
    value: bool


class JobTechnicianResponse(BaseModel):
    technicianId: int
    name: Optional[str]
    status: str
    isLead: bool
    respondedAt: Optional[datetime]


class JobUnitResponse(BaseModel):
    id: int
    equipmentId: int
    name: Optional[str]
    expectedReports: int
    uploadedReports: int
    notes: Optional[str]


class JobSiteResponse(BaseModel):
    id: int
    serviceLocationId: int
    name: Optional[str]
    address: Optional[str]
    notes: Optional[str]


class JobContactResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str]
    email: Optional[str]


class JobListItem(BaseModel):
    id: int
    jobNumber: Optional[str]
    title: Optional[str]
    status: str
    billingStatus: Optional[str]
    customerId: int
    customerName: str
    serviceAgreementId: Optional[int]
    scheduledStart: Optional[datetime]
    completedAt: Optional[datetime]
    technicianCount: int
    acceptedCount: int
    declinedCount: int
    pendingCount: int
    expectedReports: int
    uploadedReports: int


class JobDetailResponse(BaseModel):
    id: int
    jobNumber: Optional[str]
    title: Optional[str]
    jobType: Optional[str]
    serviceType: Optional[str]
    status: str
    billingStatus: Optional[str]
    customerId: int
    customerName: str
    serviceAgreementId: Optional[int]
    serviceLocationId: Optional[int]
    notes: Optional[str]
    poNumber: Optional[str]
    estimateNumber: Optional[str]
    scheduledStart: Optional[datetime]
    scheduledEnd: Optional[datetime]
    completedAt: Optional[datetime]
    returnTripNeeded: Optional[bool]
    returnTripReason: Optional[str]
    technicians: list[JobTechnicianResponse]
    units: list[JobUnitResponse]
    sites: list[JobSiteResponse]
    contacts: list[JobContactResponse]


class TechnicianJobItem(BaseModel):
    id: int
    jobNumber: Optional[str]
    title: Optional[str]
    status: str
    scheduledStart: Optional[datetime]
    assignmentStatus: str
    isLead: bool


class ReportResponse(BaseModel):
    id: int
    jobId: int
    equipmentId: Optional[int]
    type: str
    fileUrl: str
    fileName: Optional[str]
    fileSize: Optional[int]
    mimeType: Optional[str]
    uploadedBy: Optional[int]
    createdAt: Optional[datetime]

    class Config:
        from_attributes = True
