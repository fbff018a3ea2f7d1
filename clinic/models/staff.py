"""Staff model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)

from clinic.models.base import metadata

staff = Table(
    "staff",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("name", Text, nullable=False),
    Column("email", Text, nullable=False),
    Column("phone", String(20)),
    Column("role", Text, nullable=False, server_default="nurse"),
    Column("specialization", Text),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("doctor_id", "email", name="uq_staff_doctor_email"),
    CheckConstraint(
        "role IN ('nurse', 'receptionist', 'technician', 'assistant', 'other')",
        name="staff_role_check",
    ),
)
