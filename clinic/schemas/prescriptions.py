"""Prescription schemas."""

import datetime as dt
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class MedicineEntry(BaseModel):
    """One prescribed medicine."""

    name: RequiredText
    dosage: RequiredText
    frequency: RequiredText
    duration_days: int = Field(..., ge=1)
    notes: str | None = Field(None, max_length=500)


class PrescriptionCreate(BaseModel):
    """Schema for issuing a prescription."""

    medicines: list[MedicineEntry] = Field(..., min_length=1)
    notes: str | None = Field(None, max_length=1000)


class PrescriptionResponse(BaseModel):
    """Schema for prescription response."""

    id: UUID
    appointment_id: UUID
    patient_id: UUID
    doctor_id: UUID
    medicines: list[MedicineEntry]
    notes: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime

    # Joined appointment details
    appointment_date: dt.date | None = None
    appointment_slot: str | None = None
    appointment_status: str | None = None

    model_config = {"from_attributes": True}
