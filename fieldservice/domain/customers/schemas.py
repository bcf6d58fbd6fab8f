"""Customer domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class CustomerCreate(BaseModel):
    """Schema for creating a new customer; a company name or a person name is required"""

    type: Literal["residential", "commercial"] = "commercial"
    customerType: Literal["direct", "subcontract"] = "direct"
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    companyName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class CustomerUpdate(BaseModel):
    """Schema for updating an existing customer"""

    type: Optional[Literal["residential", "commercial"]] = None
    customerType: Optional[Literal["direct", "subcontract"]] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    companyName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    isActive: Optional[bool] = None


class CustomerResponse(BaseModel):
    """Schema for customer response"""

    id: int
    type: Optional[str]
    customerType: Optional[str]
    firstName: Optional[str]
    lastName: Optional[str]
    companyName: Optional[str]
    displayName: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]
    isActive: bool
    createdAt: Optional[datetime]
