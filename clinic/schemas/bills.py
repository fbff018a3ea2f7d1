"""Bill schemas. Amounts are integer minor currency units."""

import datetime as dt
from decimal import Decimal
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints, field_serializer

from clinic.core.payment import BillStatus, PaymentMethod, SettlementStatus


class BillItem(BaseModel):
    """Bill line item."""

    label: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    qty: int = Field(..., ge=1)
    unit_price: int = Field(..., ge=0, description="Price per unit in minor units")


class BillCreate(BaseModel):
    """Schema for creating a bill for a completed appointment."""

    items: list[BillItem] = Field(..., min_length=1)
    tax_percent: Decimal = Field(default=Decimal(0), ge=0, le=100, max_digits=5, decimal_places=2)


class PaymentUpdate(BaseModel):
    """Staff choice of payment channel."""

    payment_method: Literal["cash", "online"]


class BillResponse(BaseModel):
    """Schema for bill response."""

    id: UUID
    appointment_id: UUID
    patient_id: UUID
    doctor_id: UUID
    prescription_id: UUID | None = None
    items: list[BillItem]
    subtotal: int
    tax: int
    total: int
    tax_percent: Decimal
    status: BillStatus
    payment_method: PaymentMethod
    payment_status: SettlementStatus
    issued_at: dt.datetime
    paid_at: dt.datetime | None = None
    created_at: dt.datetime
    updated_at: dt.datetime

    # Joined appointment details
    appointment_date: dt.date | None = None
    appointment_slot: str | None = None

    model_config = {"from_attributes": True}

    @field_serializer("tax_percent", when_used="json")
    def serialize_tax_percent(self, value: Decimal) -> str:
        """Serialize Decimal as an exact string."""
        return format(value.normalize(), "f")
