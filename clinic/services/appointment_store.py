"""Appointment persistence.

The partial unique index on ``(doctor_id, date, slot)`` over non-cancelled
rows is the authoritative double-booking guard; an insert that trips it is
reported as ``SLOT_TAKEN`` no matter what the advisory pre-checks saw.
Status writes are compare-and-set on ``(status, version)`` so two callers
working from the same read cannot both apply a transition.
"""

import datetime as dt
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import ConflictException, ForbiddenException, NotFoundException
from clinic.core.state_machine import AppointmentStatus
from clinic.models import appointments, doctors, patients
from clinic.schemas.appointments import AppointmentFilters

logger = structlog.get_logger()

_ACTIVE = appointments.c.status != AppointmentStatus.CANCELLED.value


class AppointmentStore:
    """Reads and constrained writes for the appointments table."""

    def __init__(self, db: AsyncSession):
        """Initialize store with database session."""
        self.db = db

    @staticmethod
    def _detail_select():
        return (
            select(
                appointments,
                doctors.c.name.label("doctor_name"),
                doctors.c.specialization.label("doctor_specialization"),
                patients.c.name.label("patient_name"),
                patients.c.email.label("patient_email"),
                patients.c.phone.label("patient_phone"),
            )
            .join(doctors, appointments.c.doctor_id == doctors.c.id)
            .join(patients, appointments.c.patient_id == patients.c.id)
        )

    async def get(self, appointment_id: UUID) -> dict[str, Any] | None:
        """Fetch one appointment with doctor and patient details."""
        stmt = self._detail_select().where(appointments.c.id == appointment_id)
        row = (await self.db.execute(stmt)).mappings().first()
        return dict(row) if row else None

    async def get_owned(self, appointment_id: UUID, doctor_id: UUID | None) -> dict[str, Any]:
        """
        Fetch an appointment on behalf of a doctor (or their staff).

        Raises:
            NotFoundException: If the appointment does not exist
            ForbiddenException: If it belongs to another doctor
        """
        appointment = await self.get(appointment_id)
        if appointment is None:
            raise NotFoundException("Appointment not found")
        if appointment["doctor_id"] != doctor_id:
            raise ForbiddenException("Not authorized to access this appointment")
        return appointment

    async def find_active_for_slot(
        self, doctor_id: UUID, day: dt.date, slot: str
    ) -> dict[str, Any] | None:
        """Active appointment holding the doctor's slot on ``day``, if any."""
        stmt = select(appointments).where(
            and_(
                appointments.c.doctor_id == doctor_id,
                appointments.c.date == day,
                appointments.c.slot == slot,
                _ACTIVE,
            )
        )
        row = (await self.db.execute(stmt)).mappings().first()
        return dict(row) if row else None

    async def find_active_for_patient(
        self, patient_id: UUID, day: dt.date, slot: str
    ) -> dict[str, Any] | None:
        """Active appointment of the patient at ``day``/``slot`` with any doctor."""
        stmt = select(appointments).where(
            and_(
                appointments.c.patient_id == patient_id,
                appointments.c.date == day,
                appointments.c.slot == slot,
                _ACTIVE,
            )
        )
        row = (await self.db.execute(stmt)).mappings().first()
        return dict(row) if row else None

    async def insert_pending(
        self,
        patient_id: UUID,
        doctor_id: UUID,
        day: dt.date,
        slot: str,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """
        Insert a new ``pending`` appointment.

        Returns:
            The stored row

        Raises:
            ConflictException: ``SLOT_TAKEN`` when the active-slot index rejects the row
        """
        stmt = (
            insert(appointments)
            .values(
                patient_id=patient_id,
                doctor_id=doctor_id,
                date=day,
                slot=slot,
                notes=notes,
                status=AppointmentStatus.PENDING.value,
                version=1,
            )
            .returning(appointments.c.id)
        )

        try:
            result = await self.db.execute(stmt)
            appointment_id = result.scalar_one()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(
                "booking_constraint_rejected",
                doctor_id=str(doctor_id),
                date=day.isoformat(),
                slot=slot,
                error=str(e.orig),
            )
            raise ConflictException("This slot is already booked", code="SLOT_TAKEN")

        return await self.get(appointment_id)  # type: ignore[return-value]

    async def compare_and_set(
        self,
        appointment_id: UUID,
        expected_status: str,
        expected_version: int,
        values: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Apply ``values`` only if the row is still at the status/version read.

        Returns:
            The updated row, or None when a concurrent write got there first
        """
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.status == expected_status,
                    appointments.c.version == expected_version,
                )
            )
            .values(
                **values,
                version=appointments.c.version + 1,
                updated_at=func.now(),
            )
            .returning(appointments.c.id)
        )

        result = await self.db.execute(stmt)
        updated_id = result.scalar_one_or_none()
        await self.db.commit()

        if updated_id is None:
            return None
        return await self.get(updated_id)

    async def list_for_doctor(
        self, doctor_id: UUID, filters: AppointmentFilters
    ) -> list[dict[str, Any]]:
        """Doctor's appointments ordered by date and slot."""
        conditions = [appointments.c.doctor_id == doctor_id]

        if filters.date:
            conditions.append(appointments.c.date == filters.date)

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        stmt = (
            self._detail_select()
            .where(and_(*conditions))
            .order_by(appointments.c.date.asc(), appointments.c.slot.asc())
        )
        return [dict(row) for row in (await self.db.execute(stmt)).mappings().all()]

    async def list_for_patient(
        self, patient_id: UUID, filters: AppointmentFilters
    ) -> list[dict[str, Any]]:
        """Patient's appointments, newest first."""
        conditions = [appointments.c.patient_id == patient_id]

        if filters.from_date:
            conditions.append(appointments.c.date >= filters.from_date)

        if filters.to_date:
            conditions.append(appointments.c.date <= filters.to_date)

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        stmt = (
            self._detail_select()
            .where(and_(*conditions))
            .order_by(appointments.c.date.desc(), appointments.c.slot.desc())
        )
        return [dict(row) for row in (await self.db.execute(stmt)).mappings().all()]

    async def list_upcoming_for_doctor(
        self, doctor_id: UUID, from_date: dt.date
    ) -> list[dict[str, Any]]:
        """Not-yet-started appointments of a doctor on or after ``from_date``."""
        stmt = (
            select(appointments)
            .where(
                and_(
                    appointments.c.doctor_id == doctor_id,
                    appointments.c.date >= from_date,
                    appointments.c.status.in_(
                        [AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value]
                    ),
                )
            )
            .order_by(appointments.c.date.asc(), appointments.c.slot.asc())
        )
        return [dict(row) for row in (await self.db.execute(stmt)).mappings().all()]

    async def list_patients_for_doctor(self, doctor_id: UUID) -> list[dict[str, Any]]:
        """Distinct patients who have booked with the doctor."""
        stmt = (
            select(patients.c.id, patients.c.name, patients.c.email, patients.c.phone)
            .where(
                patients.c.id.in_(
                    select(appointments.c.patient_id).where(appointments.c.doctor_id == doctor_id)
                )
            )
            .order_by(patients.c.name.asc())
        )
        return [dict(row) for row in (await self.db.execute(stmt)).mappings().all()]
