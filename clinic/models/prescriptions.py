"""Prescriptions table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Table, Text, Uuid, func

from clinic.models.base import metadata

prescriptions = Table(
    "prescriptions",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id"),
        nullable=False,
        unique=True,
    ),
    Column("patient_id", Uuid, ForeignKey("patients.id"), nullable=False, index=True),
    Column("doctor_id", Uuid, ForeignKey("doctors.id"), nullable=False, index=True),
    # [{"name", "dosage", "frequency", "duration_days", "notes"}, ...]
    Column("medicines", JSON, nullable=False),
    Column("notes", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
