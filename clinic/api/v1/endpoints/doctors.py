"""Doctor endpoints: availability, appointments, prescriptions and staff."""

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic.config import settings
from clinic.dependencies import Cache, CurrentClock, CurrentDoctor, DatabaseSession
from clinic.schemas.appointments import (
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from clinic.schemas.common import SuccessResponse
from clinic.schemas.doctors import (
    AvailabilityEntry,
    AvailabilityResponse,
    AvailabilityUpdate,
    PatientSummary,
)
from clinic.schemas.prescriptions import PrescriptionCreate, PrescriptionResponse
from clinic.schemas.staff import StaffCreate, StaffResponse, StaffUpdate
from clinic.services.appointment_service import AppointmentService
from clinic.services.doctor_service import DoctorService
from clinic.services.prescription_service import PrescriptionService
from clinic.services.staff_service import StaffService

router = APIRouter()


# ============================================================================
# Availability
# ============================================================================


@router.get(
    "/availability",
    response_model=SuccessResponse[list[AvailabilityEntry]],
    status_code=status.HTTP_200_OK,
    summary="Get weekly availability",
)
async def get_availability(
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> SuccessResponse[list[AvailabilityEntry]]:
    """Return the doctor's declared weekly slots, or an empty list."""
    service = DoctorService(db)
    return SuccessResponse(data=await service.get_availability(doctor.id))


@router.put(
    "/availability",
    response_model=SuccessResponse[AvailabilityResponse],
    status_code=status.HTTP_200_OK,
    summary="Replace weekly availability",
)
async def set_availability(
    data: AvailabilityUpdate,
    doctor: CurrentDoctor,
    db: DatabaseSession,
    clock: CurrentClock,
    cache: Cache,
) -> SuccessResponse[AvailabilityResponse]:
    """
    Replace the doctor's weekly availability.

    - **availability**: one entry per weekday (`Mon`..`Sun`), each with
      `HH:MM-HH:MM` slots that must not overlap within the day

    Upcoming bookings on slots that are no longer declared are kept and
    listed under `orphaned_appointments`.
    """
    service = DoctorService(db, cache_manager=cache, cache_ttl=settings.doctor_cache_ttl)
    result = await service.set_availability(doctor.id, data.availability, clock)
    return SuccessResponse(data=result)


# ============================================================================
# Appointments
# ============================================================================


@router.get(
    "/appointments",
    response_model=SuccessResponse[list[AppointmentResponse]],
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    doctor: CurrentDoctor,
    db: DatabaseSession,
    clock: CurrentClock,
    date: dt.date | None = Query(None, description="Only appointments on this day"),
) -> SuccessResponse[list[AppointmentResponse]]:
    """List the doctor's appointments ordered by date and slot."""
    service = AppointmentService(db, clock)
    filters = AppointmentFilters(date=date)
    return SuccessResponse(data=await service.list_doctor_appointments(doctor.id, filters))


@router.get(
    "/appointments/{appointment_id}",
    response_model=SuccessResponse[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Get appointment",
)
async def get_appointment(
    appointment_id: UUID,
    doctor: CurrentDoctor,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[AppointmentResponse]:
    """Get one of the doctor's appointments with patient details."""
    service = AppointmentService(db, clock)
    return SuccessResponse(data=await service.get_appointment(doctor, appointment_id))


@router.put(
    "/appointments/{appointment_id}/status",
    response_model=SuccessResponse[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    doctor: CurrentDoctor,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[AppointmentResponse]:
    """
    Move an appointment along its lifecycle.

    Doctors may confirm, start, complete or cancel; `no_show` is left to staff.
    """
    service = AppointmentService(db, clock)
    return SuccessResponse(data=await service.update_status(doctor, appointment_id, data))


@router.get(
    "/patients",
    response_model=SuccessResponse[list[PatientSummary]],
    status_code=status.HTTP_200_OK,
    summary="List patients",
)
async def list_patients(
    doctor: CurrentDoctor,
    db: DatabaseSession,
    clock: CurrentClock,
) -> SuccessResponse[list[PatientSummary]]:
    """Distinct patients who have booked with the doctor."""
    service = AppointmentService(db, clock)
    return SuccessResponse(data=await service.list_doctor_patients(doctor.id))


# ============================================================================
# Prescriptions
# ============================================================================


@router.post(
    "/prescriptions/{appointment_id}",
    response_model=SuccessResponse[PrescriptionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Issue prescription",
)
async def create_prescription(
    appointment_id: UUID,
    data: PrescriptionCreate,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> SuccessResponse[PrescriptionResponse]:
    """
    Issue the prescription of an appointment.

    - **medicines**: at least one of `name`, `dosage`, `frequency`, `duration_days`
    - **notes**: optional free text
    """
    service = PrescriptionService(db)
    result = await service.create_prescription(doctor.id, appointment_id, data)
    return SuccessResponse(data=result)


@router.get(
    "/prescriptions",
    response_model=SuccessResponse[list[PrescriptionResponse]],
    status_code=status.HTTP_200_OK,
    summary="List issued prescriptions",
)
async def list_prescriptions(
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> SuccessResponse[list[PrescriptionResponse]]:
    """List prescriptions issued by the doctor."""
    service = PrescriptionService(db)
    return SuccessResponse(data=await service.list_for_doctor(doctor.id))


# ============================================================================
# Staff
# ============================================================================


@router.get(
    "/staff",
    response_model=SuccessResponse[list[StaffResponse]],
    status_code=status.HTTP_200_OK,
    summary="List staff",
)
async def list_staff(
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> SuccessResponse[list[StaffResponse]]:
    """List the doctor's staff members."""
    service = StaffService(db)
    return SuccessResponse(data=await service.list_staff(doctor.id))


@router.post(
    "/staff",
    response_model=SuccessResponse[StaffResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add staff member",
)
async def add_staff(
    data: StaffCreate,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> SuccessResponse[StaffResponse]:
    """Add a staff member; the email must be new to the doctor's team."""
    service = StaffService(db)
    return SuccessResponse(data=await service.add_staff(doctor.id, data))


@router.put(
    "/staff/{staff_id}",
    response_model=SuccessResponse[StaffResponse],
    status_code=status.HTTP_200_OK,
    summary="Update staff member",
)
async def update_staff(
    staff_id: UUID,
    data: StaffUpdate,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> SuccessResponse[StaffResponse]:
    """Update a staff member of the doctor."""
    service = StaffService(db)
    return SuccessResponse(data=await service.update_staff(doctor.id, staff_id, data))


@router.delete(
    "/staff/{staff_id}",
    response_model=SuccessResponse[dict[str, str]],
    status_code=status.HTTP_200_OK,
    summary="Remove staff member",
)
async def remove_staff(
    staff_id: UUID,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> SuccessResponse[dict[str, str]]:
    """Remove a staff member from the doctor's team."""
    service = StaffService(db)
    await service.remove_staff(doctor.id, staff_id)
    return SuccessResponse(data={"message": "Staff member removed"})
