"""Database models."""

from clinic.models.appointments import appointments
from clinic.models.base import metadata
from clinic.models.bills import bills
from clinic.models.doctors import doctors
from clinic.models.patients import patients
from clinic.models.prescriptions import prescriptions
from clinic.models.staff import staff

__all__ = [
    "appointments",
    "bills",
    "doctors",
    "metadata",
    "patients",
    "prescriptions",
    "staff",
]
