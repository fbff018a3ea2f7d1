"""Billing service: one bill per completed appointment, and its payment."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.clock import Clock
from clinic.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from clinic.core.payment import PaymentMethod, PaymentState, compute_totals
from clinic.core.state_machine import AppointmentStatus
from clinic.models import appointments, bills, prescriptions
from clinic.schemas.bills import BillCreate, BillResponse
from clinic.services.appointment_store import AppointmentStore

logger = structlog.get_logger()


class BillingService:
    """Service for creating bills and recording payments."""

    def __init__(self, db: AsyncSession, clock: Clock):
        """Initialize service with database session and clock."""
        self.db = db
        self.clock = clock
        self.store = AppointmentStore(db)

    @staticmethod
    def _select():
        return select(
            bills,
            appointments.c.date.label("appointment_date"),
            appointments.c.slot.label("appointment_slot"),
        ).join(appointments, bills.c.appointment_id == appointments.c.id)

    async def _fetch_one(self, bill_id: UUID) -> dict[str, Any] | None:
        result = await self.db.execute(self._select().where(bills.c.id == bill_id))
        row = result.mappings().first()
        return dict(row) if row else None

    async def _fetch_all(self, *conditions: Any) -> list[BillResponse]:
        stmt = self._select().where(and_(*conditions)).order_by(bills.c.created_at.desc())
        result = await self.db.execute(stmt)
        return [BillResponse.model_validate(dict(row)) for row in result.mappings().all()]

    async def create_bill(
        self,
        doctor_id: UUID,
        appointment_id: UUID,
        data: BillCreate,
    ) -> BillResponse:
        """
        Create the bill of a completed appointment.

        Args:
            doctor_id: Doctor the staff member works for
            appointment_id: Appointment being billed
            data: Line items and tax percentage

        Returns:
            Created bill, linked to the appointment's prescription if one exists

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the appointment belongs to another doctor
            ValidationException: ``INVALID_STATUS`` unless the appointment is completed
            ConflictException: ``BILL_EXISTS``
        """
        appointment = await self.store.get_owned(appointment_id, doctor_id)

        if appointment["status"] != AppointmentStatus.COMPLETED.value:
            raise ValidationException(
                "Bills can only be created for completed appointments",
                code="INVALID_STATUS",
                details=[{"status": appointment["status"]}],
            )

        existing = await self.db.execute(
            select(bills.c.id).where(bills.c.appointment_id == appointment_id)
        )
        if existing.first():
            raise ConflictException(
                "Bill already exists for this appointment", code="BILL_EXISTS"
            )

        items = [item.model_dump() for item in data.items]
        totals = compute_totals(items, data.tax_percent)

        prescription_id = (
            await self.db.execute(
                select(prescriptions.c.id).where(prescriptions.c.appointment_id == appointment_id)
            )
        ).scalar_one_or_none()

        stmt = (
            insert(bills)
            .values(
                appointment_id=appointment_id,
                patient_id=appointment["patient_id"],
                doctor_id=doctor_id,
                prescription_id=prescription_id,
                items=items,
                subtotal=totals.subtotal,
                tax=totals.tax,
                total=totals.total,
                tax_percent=data.tax_percent,
                issued_at=self.clock.now(),
                **PaymentState.issued().as_columns(),
            )
            .returning(bills.c.id)
        )

        try:
            bill_id = (await self.db.execute(stmt)).scalar_one()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException(
                "Bill already exists for this appointment", code="BILL_EXISTS"
            )

        logger.info(
            "bill_created",
            bill_id=str(bill_id),
            appointment_id=str(appointment_id),
            total=totals.total,
        )
        return BillResponse.model_validate(await self._fetch_one(bill_id))

    async def update_payment(
        self,
        doctor_id: UUID,
        bill_id: UUID,
        payment_method: str,
    ) -> BillResponse:
        """
        Record the payment channel chosen at the front desk.

        Cash settles immediately; online leaves the bill awaiting the
        patient's payment.

        Raises:
            NotFoundException: If bill not found
            ForbiddenException: If the bill belongs to another doctor
            ConflictException: ``ALREADY_PAID``
        """
        bill = await self._fetch_one(bill_id)
        if bill is None:
            raise NotFoundException("Bill not found")
        if bill["doctor_id"] != doctor_id:
            raise ForbiddenException("Not authorized to update this bill")

        state = PaymentState.from_row(bill)
        if state.is_paid:
            raise ConflictException("Bill is already paid", code="ALREADY_PAID")

        if PaymentMethod(payment_method) is PaymentMethod.CASH:
            return await self._apply(bill, state, state.settle_cash(), paid=True)
        return await self._apply(bill, state, state.await_online(), paid=False)

    async def pay_bill(self, patient_id: UUID, bill_id: UUID) -> BillResponse:
        """
        Settle a patient's bill online.

        The payment gateway is simulated: the charge always succeeds.

        Raises:
            NotFoundException: If the bill is missing or not the patient's
            ConflictException: ``ALREADY_PAID``
        """
        bill = await self._fetch_one(bill_id)
        if bill is None or bill["patient_id"] != patient_id:
            raise NotFoundException("Bill not found")

        state = PaymentState.from_row(bill)
        if state.is_paid:
            raise ConflictException("Bill is already paid", code="ALREADY_PAID")

        return await self._apply(bill, state, state.settle_online(), paid=True)

    async def _apply(
        self,
        bill: dict[str, Any],
        old: PaymentState,
        new: PaymentState,
        paid: bool,
    ) -> BillResponse:
        values: dict[str, Any] = {**new.as_columns(), "updated_at": func.now()}
        if paid:
            values["paid_at"] = self.clock.now()

        # Guard on the state we read so a concurrent payment cannot be overwritten
        stmt = (
            update(bills)
            .where(
                and_(
                    bills.c.id == bill["id"],
                    bills.c.payment_status == old.payment_status.value,
                    bills.c.payment_method == old.method.value,
                )
            )
            .values(**values)
            .returning(bills.c.id)
        )
        updated = (await self.db.execute(stmt)).scalar_one_or_none()
        await self.db.commit()

        if updated is None:
            raise ConflictException("Bill is already paid", code="ALREADY_PAID")

        logger.info(
            "bill_payment_updated",
            bill_id=str(bill["id"]),
            payment_method=new.method.value,
            payment_status=new.payment_status.value,
        )
        return BillResponse.model_validate(await self._fetch_one(bill["id"]))

    async def list_for_patient(self, patient_id: UUID) -> list[BillResponse]:
        """Bills of a patient, newest first."""
        return await self._fetch_all(bills.c.patient_id == patient_id)

    async def list_for_doctor(self, doctor_id: UUID) -> list[BillResponse]:
        """Bills of a doctor's appointments, newest first."""
        return await self._fetch_all(bills.c.doctor_id == doctor_id)
