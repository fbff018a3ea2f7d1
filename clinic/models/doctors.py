"""Doctor model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, String, Table, Text, Uuid, func

from clinic.models.base import metadata

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("name", Text, nullable=False),
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("specialization", String(200), nullable=False, index=True),
    # Weekly availability: [{"day": "Mon", "slots": ["09:00-09:30", ...]}, ...]
    # Replaced wholesale on every update
    Column("availability", JSON, nullable=False, default=list),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
