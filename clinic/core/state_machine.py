"""Appointment status lifecycle.

A single transition table governs every caller. Roles only narrow which
target statuses a caller may ask for; they never widen the table.
"""

from enum import Enum

from clinic.core.exceptions import ForbiddenException, InvalidTransitionException


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_SESSION = "in_session"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class Role(str, Enum):
    """Caller roles asserted by the identity layer."""

    PATIENT = "patient"
    DOCTOR = "doctor"
    STAFF = "staff"


TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.IN_SESSION,
            AppointmentStatus.NO_SHOW,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.IN_SESSION: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

ROLE_TARGETS: dict[Role, frozenset[AppointmentStatus]] = {
    Role.STAFF: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.IN_SESSION,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    Role.DOCTOR: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.IN_SESSION,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
        }
    ),
    # Patients go through the narrower cancellation path instead
    Role.PATIENT: frozenset(),
}

PATIENT_CANCELLABLE = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})

# Statuses that still hold their (doctor, date, slot)
ACTIVE_STATUSES = frozenset(s for s in AppointmentStatus if s is not AppointmentStatus.CANCELLED)


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Check whether ``current -> target`` is an edge of the lifecycle."""
    return target in TRANSITIONS[current]


def check_transition(
    current: AppointmentStatus | str,
    target: AppointmentStatus | str,
    role: Role,
) -> AppointmentStatus:
    """
    Validate a status change requested by ``role``.

    Args:
        current: Status read from storage
        target: Requested status
        role: Role of the caller

    Returns:
        The target status

    Raises:
        ForbiddenException: If the role may not request this target
        InvalidTransitionException: If the edge is not in the table
    """
    current = AppointmentStatus(current)
    target = AppointmentStatus(target)

    if target not in ROLE_TARGETS[role]:
        raise ForbiddenException(f"Role {role.value} cannot set status {target.value}")

    if not can_transition(current, target):
        raise InvalidTransitionException(current.value, target.value)

    return target


def check_patient_cancellation(current: AppointmentStatus | str) -> None:
    """Patients may cancel only before the appointment is underway."""
    current = AppointmentStatus(current)
    if current not in PATIENT_CANCELLABLE:
        raise InvalidTransitionException(current.value, AppointmentStatus.CANCELLED.value)
