"""Tests for bill arithmetic and payment state."""

from decimal import Decimal

import pytest

from clinic.core.payment import (
    BillStatus,
    InvalidPaymentState,
    PaymentMethod,
    PaymentState,
    SettlementStatus,
    compute_totals,
)


def test_compute_totals():
    items = [
        {"label": "Consultation", "qty": 1, "unit_price": 10000},
        {"label": "Dressing", "qty": 2, "unit_price": 1500},
    ]
    totals = compute_totals(items, Decimal("18"))

    assert totals.subtotal == 13000
    assert totals.tax == 2340
    assert totals.total == 15340


def test_tax_rounds_half_up():
    # 250 * 5% = 12.5 -> 13
    totals = compute_totals([{"qty": 1, "unit_price": 250}], Decimal("5"))
    assert totals.tax == 13
    assert totals.total == 263


def test_fractional_tax_percent_is_exact():
    # 1000 * 12.5% = 125 exactly, no float drift
    totals = compute_totals([{"qty": 1, "unit_price": 1000}], "12.5")
    assert totals.tax == 125


def test_zero_tax():
    totals = compute_totals([{"qty": 3, "unit_price": 700}])
    assert (totals.subtotal, totals.tax, totals.total) == (2100, 0, 2100)


def test_issued_state():
    state = PaymentState.issued()
    assert state.method is PaymentMethod.PENDING
    assert state.status is BillStatus.UNPAID
    assert state.payment_status is SettlementStatus.PENDING
    assert not state.is_paid


def test_cash_settles_immediately():
    state = PaymentState.issued().settle_cash()
    assert state.as_columns() == {
        "payment_method": "cash",
        "status": "paid",
        "payment_status": "paid",
    }
    assert state.is_paid


def test_online_awaits_then_settles():
    awaiting = PaymentState.issued().await_online()
    assert not awaiting.is_paid
    assert awaiting.settle_online().is_paid


def test_from_row_coerces_strings():
    state = PaymentState.from_row(
        {"payment_method": "online", "status": "unpaid", "payment_status": "failed"}
    )
    assert state.payment_status is SettlementStatus.FAILED


@pytest.mark.parametrize(
    "combination",
    [
        ("cash", "unpaid", "pending"),
        ("pending", "paid", "paid"),
        ("online", "paid", "pending"),
        ("cash", "paid", "failed"),
        ("online", "void", "pending"),
    ],
)
def test_illegal_combinations_are_rejected(combination):
    with pytest.raises(InvalidPaymentState):
        PaymentState(*combination)
