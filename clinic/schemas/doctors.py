"""Doctor and availability schemas for request/response validation."""

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from clinic.core.slots import TimeRange, Weekday

# ============================================================================
# Availability Schemas
# ============================================================================


class AvailabilityEntry(BaseModel):
    """Declared slots for one weekday."""

    day: Weekday
    slots: list[str] = Field(..., min_length=1)

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, v: list[str]) -> list[str]:
        """Each slot must be a well-formed HH:MM-HH:MM range."""
        for slot in v:
            TimeRange.parse(slot)
        return v


class AvailabilityUpdate(BaseModel):
    """Full replacement of a doctor's weekly availability."""

    availability: list[AvailabilityEntry] = Field(..., min_length=1)

    @field_validator("availability")
    @classmethod
    def validate_unique_days(cls, v: list[AvailabilityEntry]) -> list[AvailabilityEntry]:
        """One entry per weekday."""
        seen: set[Weekday] = set()
        for entry in v:
            if entry.day in seen:
                raise ValueError(f"Duplicate availability entry for {entry.day.value}")
            seen.add(entry.day)
        return v


class OrphanedAppointment(BaseModel):
    """Future active appointment whose slot is no longer declared."""

    id: UUID
    date: dt.date
    slot: str
    status: str


class AvailabilityResponse(BaseModel):
    """Stored availability, plus bookings left outside it after an update."""

    availability: list[AvailabilityEntry]
    orphaned_appointments: list[OrphanedAppointment] = Field(default_factory=list)


# ============================================================================
# Doctor Schemas
# ============================================================================


class DoctorListItem(BaseModel):
    """Doctor as shown to patients choosing whom to book."""

    id: UUID
    name: str
    specialization: str
    availability: list[AvailabilityEntry] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class PatientSummary(BaseModel):
    """Patient as seen by their doctor."""

    id: UUID
    name: str
    email: str
    phone: str | None = None

    model_config = {"from_attributes": True}
