"""Vendor domain schemas - Pydantic models for validation"""

from pydantic import BaseModel, Field


class VendorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class VendorResponse(BaseModel):
    id: int
    name: str
