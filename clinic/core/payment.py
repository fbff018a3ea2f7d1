"""Bill payment state and bill arithmetic in integer minor units."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


class BillStatus(str, Enum):
    """Ledger status of a bill."""

    UNPAID = "unpaid"
    PAID = "paid"
    VOID = "void"


class PaymentMethod(str, Enum):
    """Channel the bill is settled through."""

    PENDING = "pending"
    CASH = "cash"
    ONLINE = "online"


class SettlementStatus(str, Enum):
    """Settlement state reported by the payment channel."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class InvalidPaymentState(ValueError):
    """Combination of method, status and settlement is not allowed."""


_LEGAL_COMBINATIONS = frozenset(
    {
        (PaymentMethod.PENDING, BillStatus.UNPAID, SettlementStatus.PENDING),
        (PaymentMethod.CASH, BillStatus.PAID, SettlementStatus.PAID),
        (PaymentMethod.ONLINE, BillStatus.UNPAID, SettlementStatus.PENDING),
        (PaymentMethod.ONLINE, BillStatus.UNPAID, SettlementStatus.FAILED),
        (PaymentMethod.ONLINE, BillStatus.PAID, SettlementStatus.PAID),
        (PaymentMethod.PENDING, BillStatus.VOID, SettlementStatus.PENDING),
    }
)


@dataclass(frozen=True)
class PaymentState:
    """The three payment fields of a bill, kept consistent as one value."""

    method: PaymentMethod
    status: BillStatus
    payment_status: SettlementStatus

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", PaymentMethod(self.method))
        object.__setattr__(self, "status", BillStatus(self.status))
        object.__setattr__(self, "payment_status", SettlementStatus(self.payment_status))
        if (self.method, self.status, self.payment_status) not in _LEGAL_COMBINATIONS:
            raise InvalidPaymentState(
                f"method={self.method.value} status={self.status.value} "
                f"payment_status={self.payment_status.value} is not a valid payment state"
            )

    @classmethod
    def issued(cls) -> "PaymentState":
        return cls(PaymentMethod.PENDING, BillStatus.UNPAID, SettlementStatus.PENDING)

    @classmethod
    def from_row(cls, row: dict) -> "PaymentState":
        return cls(row["payment_method"], row["status"], row["payment_status"])

    @property
    def is_paid(self) -> bool:
        return self.payment_status is SettlementStatus.PAID

    def settle_cash(self) -> "PaymentState":
        return PaymentState(PaymentMethod.CASH, BillStatus.PAID, SettlementStatus.PAID)

    def await_online(self) -> "PaymentState":
        return PaymentState(PaymentMethod.ONLINE, BillStatus.UNPAID, SettlementStatus.PENDING)

    def settle_online(self) -> "PaymentState":
        return PaymentState(PaymentMethod.ONLINE, BillStatus.PAID, SettlementStatus.PAID)

    def as_columns(self) -> dict[str, str]:
        return {
            "payment_method": self.method.value,
            "status": self.status.value,
            "payment_status": self.payment_status.value,
        }


@dataclass(frozen=True)
class BillTotals:
    """Derived amounts of a bill, in minor units."""

    subtotal: int
    tax: int
    total: int


def compute_totals(items: list[dict], tax_percent: Decimal | int | str = 0) -> BillTotals:
    """
    Compute subtotal, tax and total for bill items.

    Args:
        items: Line items with integer ``qty`` and ``unit_price`` (minor units)
        tax_percent: Percentage, exact decimal

    Returns:
        Totals; tax is rounded half-up to a whole minor unit
    """
    subtotal = sum(int(item["qty"]) * int(item["unit_price"]) for item in items)
    raw_tax = Decimal(subtotal) * Decimal(str(tax_percent)) / Decimal(100)
    tax = int(raw_tax.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return BillTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)
