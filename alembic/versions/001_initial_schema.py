"""Initial schema - patients, doctors, staff, appointments, prescriptions, bills.

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
    )


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "patients",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.VARCHAR(length=20), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_patients_email", "patients", ["email"])

    op.create_table(
        "doctors",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("specialization", sa.VARCHAR(length=200), nullable=False),
        sa.Column("availability", sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_doctors_email", "doctors", ["email"])
    op.create_index("ix_doctors_specialization", "doctors", ["specialization"])

    op.create_table(
        "staff",
        _id_column(),
        sa.Column("doctor_id", postgresql.UUID(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.VARCHAR(length=20), nullable=True),
        sa.Column("role", sa.Text(), server_default="nurse", nullable=False),
        sa.Column("specialization", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint(
            "role IN ('nurse', 'receptionist', 'technician', 'assistant', 'other')",
            name="staff_role_check",
        ),
        sa.ForeignKeyConstraint(["doctor_id"], ["doctors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("doctor_id", "email", name="uq_staff_doctor_email"),
    )
    op.create_index("ix_staff_doctor_id", "staff", ["doctor_id"])

    op.create_table(
        "appointments",
        _id_column(),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("doctor_id", postgresql.UUID(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("slot", sa.VARCHAR(length=11), nullable=False),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("session_start_time", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("session_end_time", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        *_audit_columns(),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_session', 'completed', 'cancelled', 'no_show')",
            name="appointments_status_check",
        ),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"]),
        sa.ForeignKeyConstraint(["doctor_id"], ["doctors.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_doctor_id", "appointments", ["doctor_id"])
    op.create_index(
        "idx_appointments_patient_date_slot", "appointments", ["patient_id", "date", "slot"]
    )
    # Double-booking guard: cancelled rows release their slot
    op.create_index(
        "uq_appointments_active_slot",
        "appointments",
        ["doctor_id", "date", "slot"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
    )

    op.create_table(
        "prescriptions",
        _id_column(),
        sa.Column("appointment_id", postgresql.UUID(), nullable=False),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("doctor_id", postgresql.UUID(), nullable=False),
        sa.Column("medicines", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"]),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"]),
        sa.ForeignKeyConstraint(["doctor_id"], ["doctors.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("appointment_id"),
    )
    op.create_index("ix_prescriptions_patient_id", "prescriptions", ["patient_id"])
    op.create_index("ix_prescriptions_doctor_id", "prescriptions", ["doctor_id"])

    op.create_table(
        "bills",
        _id_column(),
        sa.Column("appointment_id", postgresql.UUID(), nullable=False),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("doctor_id", postgresql.UUID(), nullable=False),
        sa.Column("prescription_id", postgresql.UUID(), nullable=True),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("subtotal", sa.BigInteger(), nullable=False),
        sa.Column("tax", sa.BigInteger(), nullable=False),
        sa.Column("total", sa.BigInteger(), nullable=False),
        sa.Column("tax_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("status", sa.Text(), server_default="unpaid", nullable=False),
        sa.Column("payment_method", sa.Text(), server_default="pending", nullable=False),
        sa.Column("payment_status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("issued_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("paid_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint("subtotal >= 0 AND tax >= 0 AND total >= 0", name="bills_amounts_check"),
        sa.CheckConstraint("status IN ('unpaid', 'paid', 'void')", name="bills_status_check"),
        sa.CheckConstraint(
            "payment_method IN ('pending', 'cash', 'online')",
            name="bills_payment_method_check",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed')",
            name="bills_payment_status_check",
        ),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"]),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"]),
        sa.ForeignKeyConstraint(["doctor_id"], ["doctors.id"]),
        sa.ForeignKeyConstraint(["prescription_id"], ["prescriptions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("appointment_id"),
    )
    op.create_index("ix_bills_patient_id", "bills", ["patient_id"])
    op.create_index("ix_bills_doctor_id", "bills", ["doctor_id"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("ix_bills_doctor_id", table_name="bills")
    op.drop_index("ix_bills_patient_id", table_name="bills")
    op.drop_table("bills")

    op.drop_index("ix_prescriptions_doctor_id", table_name="prescriptions")
    op.drop_index("ix_prescriptions_patient_id", table_name="prescriptions")
    op.drop_table("prescriptions")

    op.drop_index("uq_appointments_active_slot", table_name="appointments")
    op.drop_index("idx_appointments_patient_date_slot", table_name="appointments")
    op.drop_index("ix_appointments_doctor_id", table_name="appointments")
    op.drop_index("ix_appointments_patient_id", table_name="appointments")
    op.drop_table("appointments")

    op.drop_index("ix_staff_doctor_id", table_name="staff")
    op.drop_table("staff")

    op.drop_index("ix_doctors_specialization", table_name="doctors")
    op.drop_index("ix_doctors_email", table_name="doctors")
    op.drop_table("doctors")

    op.drop_index("ix_patients_email", table_name="patients")
    op.drop_table("patients")
