"""Patient endpoints: choosing a doctor, booking, and reading own records."""

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic.config import settings
from clinic.dependencies import Cache, CurrentClock, CurrentPatient, DatabaseSession
from clinic.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentResponse,
)
from clinic.schemas.bills import BillResponse
from clinic.schemas.common import SuccessResponse
from clinic.schemas.doctors import DoctorListItem
from clinic.schemas.prescriptions import PrescriptionResponse
from clinic.services.appointment_service import AppointmentService
from clinic.services.billing_service import BillingService
from clinic.services.doctor_service import DoctorService
from clinic.services.prescription_service import PrescriptionService

router = APIRouter()


@router.get(
    "/doctors",
    response_model=SuccessResponse[list[DoctorListItem]],
    status_code=status.HTTP_200_OK,
    summary="List bookable doctors",
)
async def list_doctors(
    patient: CurrentPatient,
    db: DatabaseSession,
    cache: Cache,
) -> SuccessResponse[list[DoctorListItem]]:
    """
    List doctors with their weekly availability.

    Served from the Redis cache when it is reachable.
    """
    service = DoctorService(db, cache_manager=cache, cache_ttl=settings.doctor_cache_ttl)
    return SuccessResponse(data=await service.list_doctors())


@router.post(
    "/appointments",
    response_model=SuccessResponse[AppointmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def book_appointment(
    data: AppointmentCreate,
    patient: CurrentPatient,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[AppointmentResponse]:
    """
    Book a declared slot of a doctor.

    Args:
        data: Doctor, date and slot requested
        patient: Authenticated patient
        db: Database session
        clock: Time source

    Returns:
        The appointment, created in ``pending``
    """
    service = AppointmentService(db, clock)
    return SuccessResponse(data=await service.book_appointment(patient.id, data))


@router.get(
    "/appointments",
    response_model=SuccessResponse[list[AppointmentResponse]],
    status_code=status.HTTP_200_OK,
    summary="List own appointments",
)
async def list_appointments(
    patient: CurrentPatient,
    db: DatabaseSession,
    clock: CurrentClock,
    from_date: dt.date | None = Query(None, alias="from"),
    to_date: dt.date | None = Query(None, alias="to"),
) -> SuccessResponse[list[AppointmentResponse]]:
    """List the patient's appointments, newest first, optionally within a date range."""
    filters = AppointmentFilters(from_date=from_date, to_date=to_date)
    service = AppointmentService(db, clock)
    return SuccessResponse(data=await service.list_patient_appointments(patient.id, filters))


@router.delete(
    "/appointments/{appointment_id}",
    response_model=SuccessResponse[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Cancel own appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    patient: CurrentPatient,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[AppointmentResponse]:
    """
    Cancel a pending or confirmed appointment dated today or later.

    The row is kept with status ``cancelled`` and its slot becomes bookable again.
    """
    service = AppointmentService(db, clock)
    return SuccessResponse(data=await service.cancel_by_patient(patient.id, appointment_id))


@router.get(
    "/prescriptions",
    response_model=SuccessResponse[list[PrescriptionResponse]],
    status_code=status.HTTP_200_OK,
    summary="List own prescriptions",
)
async def list_prescriptions(
    patient: CurrentPatient,
    db: DatabaseSession,
) -> SuccessResponse[list[PrescriptionResponse]]:
    """List prescriptions issued to the patient."""
    service = PrescriptionService(db)
    return SuccessResponse(data=await service.list_for_patient(patient.id))


@router.get(
    "/bills",
    response_model=SuccessResponse[list[BillResponse]],
    status_code=status.HTTP_200_OK,
    summary="List own bills",
)
async def list_bills(
    patient: CurrentPatient,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[list[BillResponse]]:
    """List the patient's bills."""
    service = BillingService(db, clock)
    return SuccessResponse(data=await service.list_for_patient(patient.id))


@router.post(
    "/bills/{bill_id}/pay",
    response_model=SuccessResponse[BillResponse],
    status_code=status.HTTP_200_OK,
    summary="Pay a bill online",
)
async def pay_bill(
    bill_id: UUID,
    patient: CurrentPatient,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[BillResponse]:
    """
    Settle one of the patient's bills online.

    Raises:
        NotFoundException: If the bill is not the patient's
        ConflictException: ``ALREADY_PAID``
    """
    service = BillingService(db, clock)
    return SuccessResponse(data=await service.pay_bill(patient.id, bill_id))
