"""Staff schemas."""

import datetime as dt
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class StaffRole(str, Enum):
    """Staff role enumeration."""

    NURSE = "nurse"
    RECEPTIONIST = "receptionist"
    TECHNICIAN = "technician"
    ASSISTANT = "assistant"
    OTHER = "other"


class StaffBase(BaseModel):
    """Base staff schema with common fields."""

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=254)
    phone: str | None = Field(None, max_length=20)
    role: StaffRole = StaffRole.NURSE
    specialization: str | None = Field(None, max_length=200)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Lower-case and sanity-check the address."""
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Valid email is required")
        return v


class StaffCreate(StaffBase):
    """Schema for adding a staff member."""


class StaffUpdate(BaseModel):
    """Schema for updating a staff member."""

    name: str | None = Field(None, min_length=1, max_length=200)
    email: str | None = Field(None, min_length=3, max_length=254)
    phone: str | None = Field(None, max_length=20)
    role: StaffRole | None = None
    specialization: str | None = Field(None, max_length=200)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        """Lower-case and sanity-check the address."""
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Valid email is required")
        return v


class StaffResponse(StaffBase):
    """Schema for staff response."""

    id: UUID
    doctor_id: UUID
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}
