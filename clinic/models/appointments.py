"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from clinic.models.base import metadata

ACTIVE_PREDICATE = text("status <> 'cancelled'")

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references (immutable after creation)
    Column("patient_id", Uuid, ForeignKey("patients.id"), nullable=False, index=True),
    Column("doctor_id", Uuid, ForeignKey("doctors.id"), nullable=False, index=True),
    # Booking
    Column("date", Date, nullable=False),
    Column("slot", String(11), nullable=False),
    # Status management
    Column("status", Text, nullable=False, server_default="pending"),
    Column("session_start_time", DateTime(timezone=True), nullable=True),
    Column("session_end_time", DateTime(timezone=True), nullable=True),
    Column("notes", Text, nullable=True),
    # Bumped on every status write; guards compare-and-set updates
    Column("version", Integer, nullable=False, server_default=text("1")),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'in_session', 'completed', 'cancelled', 'no_show')",
        name="appointments_status_check",
    ),
    # At most one active appointment per doctor, date and slot
    Index(
        "uq_appointments_active_slot",
        "doctor_id",
        "date",
        "slot",
        unique=True,
        postgresql_where=ACTIVE_PREDICATE,
        sqlite_where=ACTIVE_PREDICATE,
    ),
    Index("idx_appointments_patient_date_slot", "patient_id", "date", "slot"),
)
