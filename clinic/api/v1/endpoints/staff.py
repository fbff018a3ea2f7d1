"""Staff endpoints: front-desk work on the employing doctor's records."""

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic.dependencies import CurrentClock, CurrentStaff, DatabaseSession
from clinic.schemas.appointments import (
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from clinic.schemas.bills import BillCreate, BillResponse, PaymentUpdate
from clinic.schemas.common import SuccessResponse
from clinic.schemas.prescriptions import PrescriptionResponse
from clinic.services.appointment_service import AppointmentService
from clinic.services.billing_service import BillingService
from clinic.services.prescription_service import PrescriptionService

router = APIRouter()


@router.get(
    "/appointments",
    response_model=SuccessResponse[list[AppointmentResponse]],
    status_code=status.HTTP_200_OK,
    summary="List the doctor's appointments",
)
async def list_appointments(
    member: CurrentStaff,
    db: DatabaseSession,
    clock: CurrentClock,
    date: dt.date | None = Query(None, description="Only appointments on this day"),
) -> SuccessResponse[list[AppointmentResponse]]:
    """List appointments of the staff member's doctor."""
    service = AppointmentService(db, clock)
    filters = AppointmentFilters(date=date)
    return SuccessResponse(data=await service.list_doctor_appointments(member.doctor_id, filters))


@router.get(
    "/appointments/{appointment_id}",
    response_model=SuccessResponse[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Get appointment",
)
async def get_appointment(
    appointment_id: UUID,
    member: CurrentStaff,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[AppointmentResponse]:
    """Get one appointment of the staff member's doctor."""
    service = AppointmentService(db, clock)
    return SuccessResponse(data=await service.get_appointment(member, appointment_id))


@router.put(
    "/appointments/{appointment_id}/status",
    response_model=SuccessResponse[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    member: CurrentStaff,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[AppointmentResponse]:
    """
    Move an appointment along its lifecycle.

    Staff may also record a `no_show` for a confirmed appointment.
    """
    service = AppointmentService(db, clock)
    return SuccessResponse(data=await service.update_status(member, appointment_id, data))


@router.get(
    "/prescriptions",
    response_model=SuccessResponse[list[PrescriptionResponse]],
    status_code=status.HTTP_200_OK,
    summary="List the doctor's prescriptions",
)
async def list_prescriptions(
    member: CurrentStaff,
    db: DatabaseSession,
) -> SuccessResponse[list[PrescriptionResponse]]:
    """List prescriptions issued by the staff member's doctor."""
    service = PrescriptionService(db)
    return SuccessResponse(data=await service.list_for_doctor(member.doctor_id))


@router.get(
    "/prescriptions/appointment/{appointment_id}",
    response_model=SuccessResponse[PrescriptionResponse],
    status_code=status.HTTP_200_OK,
    summary="Get prescription of an appointment",
)
async def get_prescription_by_appointment(
    appointment_id: UUID,
    member: CurrentStaff,
    db: DatabaseSession,
) -> SuccessResponse[PrescriptionResponse]:
    """Get the prescription written for an appointment."""
    service = PrescriptionService(db)
    return SuccessResponse(
        data=await service.get_by_appointment(member.doctor_id, appointment_id)
    )


@router.get(
    "/prescriptions/{prescription_id}",
    response_model=SuccessResponse[PrescriptionResponse],
    status_code=status.HTTP_200_OK,
    summary="Get prescription",
)
async def get_prescription(
    prescription_id: UUID,
    member: CurrentStaff,
    db: DatabaseSession,
) -> SuccessResponse[PrescriptionResponse]:
    """Get a prescription issued by the staff member's doctor."""
    service = PrescriptionService(db)
    return SuccessResponse(data=await service.get_for_doctor(member.doctor_id, prescription_id))


@router.get(
    "/bills",
    response_model=SuccessResponse[list[BillResponse]],
    status_code=status.HTTP_200_OK,
    summary="List the doctor's bills",
)
async def list_bills(
    member: CurrentStaff,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[list[BillResponse]]:
    """List bills of the staff member's doctor."""
    service = BillingService(db, clock)
    return SuccessResponse(data=await service.list_for_doctor(member.doctor_id))


@router.post(
    "/bills/{appointment_id}",
    response_model=SuccessResponse[BillResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create bill",
)
async def create_bill(
    appointment_id: UUID,
    data: BillCreate,
    member: CurrentStaff,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[BillResponse]:
    """
    Bill a completed appointment.

    - **items**: line items with `label`, `qty` and `unit_price` in minor units
    - **tax_percent**: tax rate between 0 and 100
    """
    service = BillingService(db, clock)
    return SuccessResponse(data=await service.create_bill(member.doctor_id, appointment_id, data))


@router.put(
    "/bills/{bill_id}/payment",
    response_model=SuccessResponse[BillResponse],
    status_code=status.HTTP_200_OK,
    summary="Record payment method",
)
async def update_payment(
    bill_id: UUID,
    data: PaymentUpdate,
    member: CurrentStaff,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[BillResponse]:
    """Record a cash payment, or mark the bill as awaiting online payment."""
    service = BillingService(db, clock)
    result = await service.update_payment(member.doctor_id, bill_id, data.payment_method)
    return SuccessResponse(data=result)
