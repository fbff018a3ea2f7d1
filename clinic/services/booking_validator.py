"""Pre-insert checks for a booking request."""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.clock import Clock
from clinic.core.exceptions import ConflictException, NotFoundException, ValidationException
from clinic.core.slots import is_slot_declared, weekday_token
from clinic.models import doctors
from clinic.schemas.appointments import AppointmentCreate
from clinic.services.appointment_store import AppointmentStore

logger = structlog.get_logger()


class BookingValidator:
    """
    Decide whether a (patient, doctor, date, slot) request may be booked.

    Checks run in a fixed order and the first failure wins. They only read;
    the store's unique index still has the final say at insert time.
    """

    def __init__(self, db: AsyncSession, store: AppointmentStore, clock: Clock):
        """Initialize validator with database session, store and clock."""
        self.db = db
        self.store = store
        self.clock = clock

    async def validate(self, patient_id: UUID, data: AppointmentCreate) -> None:
        """
        Run every booking check.

        Args:
            patient_id: Patient requesting the booking
            data: Requested doctor, date and slot

        Raises:
            ValidationException: ``INVALID_DATE`` or ``INVALID_SLOT``
            NotFoundException: If the doctor does not exist
            ConflictException: ``SLOT_TAKEN`` or ``PATIENT_CONFLICT``
        """
        # Same-day bookings are allowed whatever the time of day
        if data.date < self.clock.today():
            self._reject("INVALID_DATE", data)
            raise ValidationException(
                "Cannot book appointment in the past",
                code="INVALID_DATE",
            )

        result = await self.db.execute(
            select(doctors.c.availability).where(doctors.c.id == data.doctor_id)
        )
        doctor = result.first()
        if doctor is None:
            raise NotFoundException("Doctor not found")

        weekday = weekday_token(data.date)
        if not is_slot_declared(doctor.availability, weekday, data.slot):
            self._reject("INVALID_SLOT", data)
            raise ValidationException(
                "Selected slot is not available for this doctor on this day",
                code="INVALID_SLOT",
                details=[{"day": weekday.value, "slot": data.slot}],
            )

        if await self.store.find_active_for_slot(data.doctor_id, data.date, data.slot):
            self._reject("SLOT_TAKEN", data)
            raise ConflictException("This slot is already booked", code="SLOT_TAKEN")

        if await self.store.find_active_for_patient(patient_id, data.date, data.slot):
            self._reject("PATIENT_CONFLICT", data)
            raise ConflictException(
                "You already have an appointment at this time",
                code="PATIENT_CONFLICT",
            )

    @staticmethod
    def _reject(code: str, data: AppointmentCreate) -> None:
        logger.info(
            "booking_rejected",
            code=code,
            doctor_id=str(data.doctor_id),
            date=data.date.isoformat(),
            slot=data.slot,
        )
