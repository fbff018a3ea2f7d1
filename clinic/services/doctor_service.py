"""Doctor service: weekly availability and the bookable-doctor listing."""

from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.clock import Clock
from clinic.core.exceptions import NotFoundException, ValidationException
from clinic.core.redis_client import CacheManager
from clinic.core.slots import declared_slots, find_overlap, weekday_token
from clinic.models import doctors
from clinic.schemas.doctors import (
    AvailabilityEntry,
    AvailabilityResponse,
    DoctorListItem,
    OrphanedAppointment,
)
from clinic.services.appointment_store import AppointmentStore

logger = structlog.get_logger()


class DoctorService:
    """Service for doctor availability."""

    DOCTOR_LIST_CACHE_KEY = "doctor:list"

    def __init__(
        self,
        db: AsyncSession,
        cache_manager: CacheManager | None = None,
        cache_ttl: int = 300,
    ):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager
        self.cache_ttl = cache_ttl

    async def _get_doctor(self, doctor_id: UUID) -> dict:
        result = await self.db.execute(select(doctors).where(doctors.c.id == doctor_id))
        doctor = result.mappings().first()
        if not doctor:
            raise NotFoundException("Doctor not found")
        return dict(doctor)

    async def get_availability(self, doctor_id: UUID) -> list[AvailabilityEntry]:
        """Stored weekly availability, or an empty list."""
        doctor = await self._get_doctor(doctor_id)
        return [AvailabilityEntry.model_validate(entry) for entry in doctor["availability"] or []]

    async def set_availability(
        self,
        doctor_id: UUID,
        entries: list[AvailabilityEntry],
        clock: Clock,
    ) -> AvailabilityResponse:
        """
        Replace a doctor's weekly availability.

        Existing bookings are never cancelled by an edit. Upcoming ones whose
        slot is no longer declared are kept and returned so the clinic can
        follow up with the patient.

        Args:
            doctor_id: Doctor whose availability is replaced
            entries: New availability, already shape-validated
            clock: Time source deciding which bookings are upcoming

        Returns:
            The stored availability and any orphaned upcoming appointments

        Raises:
            NotFoundException: If the doctor does not exist
            ValidationException: ``SLOT_OVERLAP`` if two slots of one day intersect
        """
        await self._get_doctor(doctor_id)

        for entry in entries:
            overlap = find_overlap(entry.slots)
            if overlap:
                raise ValidationException(
                    f"Overlapping slots found on {entry.day.value}",
                    code="SLOT_OVERLAP",
                    details=[{"day": entry.day.value, "slots": list(overlap)}],
                )

        availability = [entry.model_dump(mode="json") for entry in entries]
        await self.db.execute(
            update(doctors)
            .where(doctors.c.id == doctor_id)
            .values(availability=availability, updated_at=func.now())
        )
        await self.db.commit()

        if self.cache:
            self.cache.delete(self.DOCTOR_LIST_CACHE_KEY)

        logger.info(
            "availability_updated",
            doctor_id=str(doctor_id),
            days=[entry["day"] for entry in availability],
        )

        orphaned = await self._find_orphaned(doctor_id, availability, clock)
        if orphaned:
            logger.warning(
                "availability_orphaned_appointments",
                doctor_id=str(doctor_id),
                appointment_ids=[str(a.id) for a in orphaned],
            )

        return AvailabilityResponse(availability=entries, orphaned_appointments=orphaned)

    async def _find_orphaned(
        self,
        doctor_id: UUID,
        availability: list[dict],
        clock: Clock,
    ) -> list[OrphanedAppointment]:
        declared = declared_slots(availability)
        upcoming = await AppointmentStore(self.db).list_upcoming_for_doctor(
            doctor_id, clock.today()
        )
        return [
            OrphanedAppointment(
                id=row["id"], date=row["date"], slot=row["slot"], status=row["status"]
            )
            for row in upcoming
            if row["slot"] not in declared.get(weekday_token(row["date"]).value, set())
        ]

    async def list_doctors(self) -> list[DoctorListItem]:
        """All doctors with their availability, for patients choosing a booking."""
        if self.cache:
            cached = self.cache.get_json(self.DOCTOR_LIST_CACHE_KEY)
            if cached is not None:
                return [DoctorListItem.model_validate(item) for item in cached]

        result = await self.db.execute(
            select(
                doctors.c.id,
                doctors.c.name,
                doctors.c.specialization,
                doctors.c.availability,
            ).order_by(doctors.c.name.asc())
        )
        items = [DoctorListItem.model_validate(dict(row)) for row in result.mappings().all()]

        if self.cache:
            self.cache.set_json(
                self.DOCTOR_LIST_CACHE_KEY,
                [item.model_dump(mode="json") for item in items],
                ttl=self.cache_ttl,
            )

        return items
