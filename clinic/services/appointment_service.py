"""Appointment service for business logic."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.clock import Clock, as_utc
from clinic.core.exceptions import (
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from clinic.core.security import Principal
from clinic.core.state_machine import (
    AppointmentStatus,
    check_patient_cancellation,
    check_transition,
)
from clinic.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from clinic.schemas.doctors import PatientSummary
from clinic.services.appointment_store import AppointmentStore
from clinic.services.booking_validator import BookingValidator

logger = structlog.get_logger()


class AppointmentService:
    """Service for booking appointments and driving their lifecycle."""

    def __init__(self, db: AsyncSession, clock: Clock):
        """Initialize service with database session and clock."""
        self.db = db
        self.clock = clock
        self.store = AppointmentStore(db)
        self.validator = BookingValidator(db, self.store, clock)

    async def book_appointment(
        self,
        patient_id: UUID,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Book a slot for a patient.

        Args:
            patient_id: ID of the patient booking
            data: Requested doctor, date and slot

        Returns:
            The new appointment, in ``pending``
        """
        await self.validator.validate(patient_id, data)

        row = await self.store.insert_pending(
            patient_id=patient_id,
            doctor_id=data.doctor_id,
            day=data.date,
            slot=data.slot,
            notes=data.notes,
        )

        logger.info(
            "appointment_booked",
            appointment_id=str(row["id"]),
            doctor_id=str(data.doctor_id),
            date=data.date.isoformat(),
            slot=data.slot,
        )
        return AppointmentResponse.model_validate(row)

    async def list_patient_appointments(
        self,
        patient_id: UUID,
        filters: AppointmentFilters,
    ) -> list[AppointmentResponse]:
        """List a patient's own appointments."""
        rows = await self.store.list_for_patient(patient_id, filters)
        return [AppointmentResponse.model_validate(row) for row in rows]

    async def list_doctor_appointments(
        self,
        doctor_id: UUID,
        filters: AppointmentFilters,
    ) -> list[AppointmentResponse]:
        """List appointments booked with a doctor."""
        rows = await self.store.list_for_doctor(doctor_id, filters)
        return [AppointmentResponse.model_validate(row) for row in rows]

    async def get_appointment(
        self,
        principal: Principal,
        appointment_id: UUID,
    ) -> AppointmentResponse:
        """
        Get an appointment of the principal's doctor.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If it belongs to another doctor
        """
        row = await self.store.get_owned(appointment_id, principal.doctor_id)
        return AppointmentResponse.model_validate(row)

    async def list_doctor_patients(self, doctor_id: UUID) -> list[PatientSummary]:
        """Patients who have booked with the doctor."""
        rows = await self.store.list_patients_for_doctor(doctor_id)
        return [PatientSummary.model_validate(row) for row in rows]

    async def update_status(
        self,
        principal: Principal,
        appointment_id: UUID,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Move an appointment along its lifecycle on behalf of a doctor or staff member.

        Args:
            principal: Doctor or staff caller
            appointment_id: Appointment ID
            data: Requested status and optional session timestamps

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If not owned, or the role may not set the status
            InvalidTransitionException: If the change is not allowed from the current status
        """
        current = await self.store.get_owned(appointment_id, principal.doctor_id)
        target = check_transition(current["status"], data.status, principal.role)

        values: dict[str, Any] = {"status": target.value}

        if target is AppointmentStatus.IN_SESSION:
            values["session_start_time"] = as_utc(data.session_start_time or self.clock.now())

        if target is AppointmentStatus.COMPLETED:
            end = as_utc(data.session_end_time or self.clock.now())
            start = current["session_start_time"]
            if start is not None and end < as_utc(start):
                raise ValidationException(
                    "session_end_time must not be before the session start",
                    details=[{"field": "session_end_time"}],
                )
            values["session_end_time"] = end

        if data.notes:
            values["notes"] = data.notes

        updated = await self.store.compare_and_set(
            appointment_id,
            expected_status=current["status"],
            expected_version=current["version"],
            values=values,
        )
        if updated is None:
            # Someone else changed the row between our read and write
            fresh = await self.store.get(appointment_id)
            raise InvalidTransitionException(
                fresh["status"] if fresh else current["status"], target.value
            )

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=current["status"],
            new_status=target.value,
            role=principal.role.value,
        )
        return AppointmentResponse.model_validate(updated)

    async def cancel_by_patient(
        self,
        patient_id: UUID,
        appointment_id: UUID,
    ) -> AppointmentResponse:
        """
        Cancel a patient's own appointment.

        Only ``pending`` or ``confirmed`` appointments dated today or later
        can be cancelled this way.

        Raises:
            NotFoundException: If the appointment is missing or not the patient's
            InvalidTransitionException: If the status does not allow cancellation
            ValidationException: ``PAST_APPOINTMENT`` for past dates
        """
        current = await self.store.get(appointment_id)
        if current is None or current["patient_id"] != patient_id:
            raise NotFoundException("Appointment not found")

        check_patient_cancellation(current["status"])

        if current["date"] < self.clock.today():
            raise ValidationException(
                "Cannot cancel past appointments",
                code="PAST_APPOINTMENT",
            )

        updated = await self.store.compare_and_set(
            appointment_id,
            expected_status=current["status"],
            expected_version=current["version"],
            values={"status": AppointmentStatus.CANCELLED.value},
        )
        if updated is None:
            fresh = await self.store.get(appointment_id)
            raise InvalidTransitionException(
                fresh["status"] if fresh else current["status"],
                AppointmentStatus.CANCELLED.value,
            )

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=current["status"],
            new_status=AppointmentStatus.CANCELLED.value,
            role="patient",
        )
        return AppointmentResponse.model_validate(updated)
