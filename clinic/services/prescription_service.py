"""Prescription service for business logic."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from clinic.core.state_machine import AppointmentStatus
from clinic.models import appointments, prescriptions
from clinic.schemas.prescriptions import PrescriptionCreate, PrescriptionResponse
from clinic.services.appointment_store import AppointmentStore

logger = structlog.get_logger()

# A prescription is written during or right after the consultation
PRESCRIBABLE_STATUSES = frozenset({AppointmentStatus.IN_SESSION, AppointmentStatus.COMPLETED})


class PrescriptionService:
    """Service for issuing and reading prescriptions."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.store = AppointmentStore(db)

    @staticmethod
    def _select():
        return select(
            prescriptions,
            appointments.c.date.label("appointment_date"),
            appointments.c.slot.label("appointment_slot"),
            appointments.c.status.label("appointment_status"),
        ).join(appointments, prescriptions.c.appointment_id == appointments.c.id)

    async def _fetch_one(self, *conditions: Any) -> dict[str, Any] | None:
        result = await self.db.execute(self._select().where(and_(*conditions)))
        row = result.mappings().first()
        return dict(row) if row else None

    async def _fetch_all(self, *conditions: Any) -> list[PrescriptionResponse]:
        stmt = self._select().where(and_(*conditions)).order_by(prescriptions.c.created_at.desc())
        result = await self.db.execute(stmt)
        return [PrescriptionResponse.model_validate(dict(row)) for row in result.mappings().all()]

    async def create_prescription(
        self,
        doctor_id: UUID,
        appointment_id: UUID,
        data: PrescriptionCreate,
    ) -> PrescriptionResponse:
        """
        Issue the single prescription of an appointment.

        Args:
            doctor_id: Doctor issuing the prescription
            appointment_id: Appointment being prescribed for
            data: Medicines and notes

        Returns:
            Created prescription

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the appointment belongs to another doctor
            ValidationException: ``INVALID_STATUS`` unless in session or completed
            ConflictException: ``PRESCRIPTION_EXISTS``
        """
        appointment = await self.store.get_owned(appointment_id, doctor_id)

        if AppointmentStatus(appointment["status"]) not in PRESCRIBABLE_STATUSES:
            raise ValidationException(
                "Prescriptions can only be issued for appointments in session or completed",
                code="INVALID_STATUS",
                details=[{"status": appointment["status"]}],
            )

        existing = await self.db.execute(
            select(prescriptions.c.id).where(prescriptions.c.appointment_id == appointment_id)
        )
        if existing.first():
            raise ConflictException(
                "Prescription already exists for this appointment",
                code="PRESCRIPTION_EXISTS",
            )

        stmt = (
            insert(prescriptions)
            .values(
                appointment_id=appointment_id,
                patient_id=appointment["patient_id"],
                doctor_id=doctor_id,
                medicines=[medicine.model_dump(mode="json") for medicine in data.medicines],
                notes=data.notes,
            )
            .returning(prescriptions.c.id)
        )

        try:
            prescription_id = (await self.db.execute(stmt)).scalar_one()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException(
                "Prescription already exists for this appointment",
                code="PRESCRIPTION_EXISTS",
            )

        logger.info(
            "prescription_created",
            prescription_id=str(prescription_id),
            appointment_id=str(appointment_id),
            medicines=len(data.medicines),
        )

        row = await self._fetch_one(prescriptions.c.id == prescription_id)
        return PrescriptionResponse.model_validate(row)

    async def list_for_doctor(self, doctor_id: UUID) -> list[PrescriptionResponse]:
        """Prescriptions issued by a doctor, newest first."""
        return await self._fetch_all(prescriptions.c.doctor_id == doctor_id)

    async def list_for_patient(self, patient_id: UUID) -> list[PrescriptionResponse]:
        """Prescriptions issued to a patient, newest first."""
        return await self._fetch_all(prescriptions.c.patient_id == patient_id)

    async def get_for_doctor(self, doctor_id: UUID, prescription_id: UUID) -> PrescriptionResponse:
        """
        Get a prescription issued by the caller's doctor.

        Raises:
            NotFoundException: If prescription not found
            ForbiddenException: If issued by another doctor
        """
        row = await self._fetch_one(prescriptions.c.id == prescription_id)
        return self._owned(row, doctor_id)

    async def get_by_appointment(
        self, doctor_id: UUID, appointment_id: UUID
    ) -> PrescriptionResponse:
        """Get the prescription of an appointment of the caller's doctor."""
        row = await self._fetch_one(prescriptions.c.appointment_id == appointment_id)
        return self._owned(row, doctor_id)

    @staticmethod
    def _owned(row: dict[str, Any] | None, doctor_id: UUID) -> PrescriptionResponse:
        if row is None:
            raise NotFoundException("Prescription not found")
        if row["doctor_id"] != doctor_id:
            raise ForbiddenException("Not authorized to view this prescription")
        return PrescriptionResponse.model_validate(row)
