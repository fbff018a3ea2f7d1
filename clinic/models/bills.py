"""Bills table model using SQLAlchemy Core.

All money columns hold integer minor currency units.
"""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    Table,
    Text,
    Uuid,
    func,
)

from clinic.models.base import metadata

bills = Table(
    "bills",
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
    Column("prescription_id", Uuid, ForeignKey("prescriptions.id"), nullable=True),
    # [{"label", "qty", "unit_price"}, ...]
    Column("items", JSON, nullable=False),
    Column("subtotal", BigInteger, nullable=False),
    Column("tax", BigInteger, nullable=False),
    Column("total", BigInteger, nullable=False),
    Column("tax_percent", Numeric(5, 2), nullable=False),
    # Payment state
    Column("status", Text, nullable=False, server_default="unpaid"),
    Column("payment_method", Text, nullable=False, server_default="pending"),
    Column("payment_status", Text, nullable=False, server_default="pending"),
    Column("issued_at", DateTime(timezone=True), nullable=False),
    Column("paid_at", DateTime(timezone=True), nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("subtotal >= 0 AND tax >= 0 AND total >= 0", name="bills_amounts_check"),
    CheckConstraint("status IN ('unpaid', 'paid', 'void')", name="bills_status_check"),
    CheckConstraint(
        "payment_method IN ('pending', 'cash', 'online')",
        name="bills_payment_method_check",
    ),
    CheckConstraint(
        "payment_status IN ('pending', 'paid', 'failed')",
        name="bills_payment_status_check",
    ),
)
