"""Appointment schemas for request/response validation."""

import datetime as dt
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from clinic.core.clock import as_utc
from clinic.core.slots import DATE_PATTERN, SLOT_PATTERN
from clinic.core.state_machine import AppointmentStatus

__all__ = [
    "AppointmentCreate",
    "AppointmentFilters",
    "AppointmentResponse",
    "AppointmentStatus",
    "AppointmentStatusUpdate",
    "parse_calendar_date",
]


def parse_calendar_date(value: Any) -> Any:
    """Accept only ``YYYY-MM-DD`` strings (or date objects) for calendar dates."""
    if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    return dt.date.fromisoformat(value)


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment."""

    doctor_id: UUID
    date: dt.date
    slot: str = Field(..., pattern=SLOT_PATTERN.pattern)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> Any:
        """Validate date format."""
        return parse_calendar_date(v)


class AppointmentStatusUpdate(BaseModel):
    """Schema for a doctor or staff status change."""

    status: AppointmentStatus
    session_start_time: dt.datetime | None = None
    session_end_time: dt.datetime | None = None
    notes: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_session_window(self) -> "AppointmentStatusUpdate":
        """End of session cannot precede its start when both are given."""
        if (
            self.session_start_time
            and self.session_end_time
            and as_utc(self.session_end_time) < as_utc(self.session_start_time)
        ):
            raise ValueError("session_end_time must not be before session_start_time")
        return self


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    date: dt.date
    slot: str
    status: AppointmentStatus
    session_start_time: dt.datetime | None = None
    session_end_time: dt.datetime | None = None
    notes: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime

    # Populated from joins where the caller needs the counterpart's details
    doctor_name: str | None = None
    doctor_specialization: str | None = None
    patient_name: str | None = None
    patient_email: str | None = None
    patient_phone: str | None = None

    model_config = {"from_attributes": True}


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    date: dt.date | None = None
    from_date: dt.date | None = None
    to_date: dt.date | None = None
    status: AppointmentStatus | None = None

    @field_validator("date", "from_date", "to_date", mode="before")
    @classmethod
    def validate_dates(cls, v: Any) -> Any:
        """Validate date format."""
        return None if v is None else parse_calendar_date(v)
