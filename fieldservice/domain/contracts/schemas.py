"""Contract domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ContractServiceInput(BaseModel):
    """One recurring service line on a contract"""

    serviceType: Literal["MJPM", "MNPM"]
    frequencyMonths: int = Field(ge=0, le=52, description="Occurrences per year")


class ContractCreate(BaseModel):
    """Schema for creating a new service agreement"""

    customerId: int
    vendorId: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None  # coverage plan
    billingType: str = "due_on_receipt"
    billingFrequency: Optional[str] = None
    serviceFrequency: Optional[str] = None
    status: Optional[str] = None
    startDate: date
    endDate: date
    agreementLengthYears: int = Field(default=1, ge=1)
    pmDueNext: Optional[date] = None
    unitInformation: Optional[str] = None
    terms: Optional[str] = None
    notes: Optional[str] = None
    services: list[ContractServiceInput] = []


class ContractUpdate(BaseModel):
    """Schema for updating an existing service agreement; services replace the full set"""

    customerId: Optional[int] = None
    vendorId: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    billingType: Optional[str] = None
    billingFrequency: Optional[str] = None
    serviceFrequency: Optional[str] = None
    status: Optional[str] = None
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    agreementLengthYears: Optional[int] = Field(default=None, ge=1)
    pmDueNext: Optional[date] = None
    unitInformation: Optional[str] = None
    terms: Optional[str] = None
    notes: Optional[str] = None
    services: Optional[list[ContractServiceInput]] = None


class ContractServiceResponse(BaseModel):
    id: int
    serviceType: str
    frequencyMonths: int


class ContractJobSummary(BaseModel):
    id: int
    jobNumber: Optional[str]
    title: Optional[str]
    status: str
    scheduledStart: Optional[datetime]
    completedAt: Optional[datetime]
    checklistCompletedAt: Optional[datetime] = None


class ContractResponse(BaseModel):
    """Schema for contract response"""

    id: int
    agreementNumber: Optional[str]
    name: Optional[str]
    description: Optional[str]
    type: Optional[str]
    billingType: Optional[str]
    status: str
    customerId: int
    customerName: str
    vendorId: Optional[int]
    vendorName: Optional[str]
    startDate: date
    endDate: date
    agreementLengthYears: Optional[int]
    serviceCount: Optional[int]
    pmDueNext: Optional[date]
    services: list[ContractServiceResponse]
    createdAt: Optional[datetime]


class ContractDetailResponse(ContractResponse):
    unitInformation: Optional[str]
    terms: Optional[str]
    notes: Optional[str]
    billingFrequency: Optional[str]
    serviceFrequency: Optional[str]
    jobs: list[ContractJobSummary]


class ContractScanResponse(BaseModel):
    success: bool
    overdueContracts: int
    expiringContracts: int
    activeContracts: int
