"""Staff service: a doctor's team."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import ConflictException, NotFoundException
from clinic.models import staff
from clinic.schemas.staff import StaffCreate, StaffResponse, StaffUpdate

logger = structlog.get_logger()


class StaffService:
    """Service for managing the staff members of a doctor."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_staff(self, doctor_id: UUID) -> list[StaffResponse]:
        """Staff members of a doctor, by name."""
        result = await self.db.execute(
            select(staff).where(staff.c.doctor_id == doctor_id).order_by(staff.c.name.asc())
        )
        return [StaffResponse.model_validate(dict(row)) for row in result.mappings().all()]

    async def add_staff(self, doctor_id: UUID, data: StaffCreate) -> StaffResponse:
        """
        Add a staff member to a doctor's team.

        Raises:
            ConflictException: ``STAFF_EXISTS`` if the email is already on the team
        """
        stmt = (
            insert(staff)
            .values(doctor_id=doctor_id, **data.model_dump(mode="json"))
            .returning(staff)
        )
        row = await self._write(stmt)
        logger.info("staff_added", doctor_id=str(doctor_id), staff_id=str(row["id"]))
        return StaffResponse.model_validate(row)

    async def update_staff(
        self,
        doctor_id: UUID,
        staff_id: UUID,
        data: StaffUpdate,
    ) -> StaffResponse:
        """
        Update a staff member of the doctor.

        Raises:
            NotFoundException: If the staff member is not on the doctor's team
            ConflictException: ``STAFF_EXISTS`` if the new email is taken
        """
        update_values = {
            field: value
            for field, value in data.model_dump(mode="json", exclude_unset=True).items()
            if value is not None
        }

        if not update_values:
            return await self._get(doctor_id, staff_id)

        await self._get(doctor_id, staff_id)
        stmt = (
            update(staff)
            .where(and_(staff.c.id == staff_id, staff.c.doctor_id == doctor_id))
            .values(**update_values, updated_at=func.now())
            .returning(staff)
        )
        return StaffResponse.model_validate(await self._write(stmt))

    async def remove_staff(self, doctor_id: UUID, staff_id: UUID) -> None:
        """Remove a staff member from the doctor's team."""
        await self._get(doctor_id, staff_id)
        await self.db.execute(
            delete(staff).where(and_(staff.c.id == staff_id, staff.c.doctor_id == doctor_id))
        )
        await self.db.commit()
        logger.info("staff_removed", doctor_id=str(doctor_id), staff_id=str(staff_id))

    async def _get(self, doctor_id: UUID, staff_id: UUID) -> StaffResponse:
        result = await self.db.execute(
            select(staff).where(and_(staff.c.id == staff_id, staff.c.doctor_id == doctor_id))
        )
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Staff member not found")
        return StaffResponse.model_validate(dict(row))

    async def _write(self, stmt: Any) -> dict[str, Any]:
        try:
            row = (await self.db.execute(stmt)).mappings().one()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException(
                "A staff member with this email already exists", code="STAFF_EXISTS"
            )
        return dict(row)
