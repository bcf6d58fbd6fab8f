"""Technician domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class TechnicianInput(BaseModel):
    """
    Create and update share one shape: an update replaces every field.
    Name and email are checked in the service so a blank value is a 400.
    """

    fullName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    specialty: Optional[str] = None
    isActive: Optional[bool] = None


class TechnicianResponse(BaseModel):
    id: int
    fullName: Optional[str]
    email: str
    phone: Optional[str]
    specialty: Optional[str]
    isActive: bool
    loginCode: Optional[str]
    createdAt: Optional[datetime]
