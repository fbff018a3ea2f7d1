"""Tests for billing and payment endpoints."""

from typing import Any

import pytest
from httpx import AsyncClient


def create_url(appointment_id: Any) -> str:
    return f"/api/v1/staff/bills/{appointment_id}"


@pytest.fixture
def create_bill(client: AsyncClient, staff_headers: dict, make_appointment: Any, sample_bill_data):
    async def _create(**appointment_fields: Any) -> dict:
        appointment = await make_appointment(status="completed", **appointment_fields)
        response = await client.post(
            create_url(appointment["id"]), json=sample_bill_data, headers=staff_headers
        )
        assert response.status_code == 201
        return response.json()["data"]

    return _create


@pytest.mark.asyncio
async def test_create_bill(
    client: AsyncClient,
    staff_headers: dict,
    make_appointment: Any,
    sample_bill_data: dict,
) -> None:
    appointment = await make_appointment(status="completed")

    response = await client.post(
        create_url(appointment["id"]), json=sample_bill_data, headers=staff_headers
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["subtotal"] == 13000
    assert data["tax"] == 2340
    assert data["total"] == 15340
    assert data["tax_percent"] == "18"
    assert (data["payment_method"], data["status"], data["payment_status"]) == (
        "pending",
        "unpaid",
        "pending",
    )
    assert data["issued_at"].startswith("2030-01-01T10:00:00")
    assert data["paid_at"] is None
    assert data["prescription_id"] is None


@pytest.mark.asyncio
async def test_bill_links_prescription(
    client: AsyncClient,
    doctor_headers: dict,
    staff_headers: dict,
    make_appointment: Any,
    sample_bill_data: dict,
    sample_prescription_data: dict,
) -> None:
    appointment = await make_appointment(status="completed")
    prescription = await client.post(
        f"/api/v1/doctor/prescriptions/{appointment['id']}",
        json=sample_prescription_data,
        headers=doctor_headers,
    )

    response = await client.post(
        create_url(appointment["id"]), json=sample_bill_data, headers=staff_headers
    )

    assert response.json()["data"]["prescription_id"] == prescription.json()["data"]["id"]


@pytest.mark.parametrize("status", ["pending", "confirmed", "in_session", "cancelled", "no_show"])
@pytest.mark.asyncio
async def test_bill_requires_completed_appointment(
    client: AsyncClient,
    staff_headers: dict,
    make_appointment: Any,
    sample_bill_data: dict,
    status: str,
) -> None:
    appointment = await make_appointment(status=status)

    response = await client.post(
        create_url(appointment["id"]), json=sample_bill_data, headers=staff_headers
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_STATUS"


@pytest.mark.asyncio
async def test_second_bill_is_rejected_and_first_untouched(
    client: AsyncClient,
    staff_headers: dict,
    make_appointment: Any,
    sample_bill_data: dict,
) -> None:
    appointment = await make_appointment(status="completed")
    first = await client.post(
        create_url(appointment["id"]), json=sample_bill_data, headers=staff_headers
    )

    second = await client.post(
        create_url(appointment["id"]),
        json={"items": [{"label": "Extra", "qty": 1, "unit_price": 1}], "tax_percent": 0},
        headers=staff_headers,
    )

    assert second.status_code == 409
    assert second.json()["error"]["code"] == "BILL_EXISTS"

    bills = await client.get("/api/v1/staff/bills", headers=staff_headers)
    assert bills.json()["data"] == [first.json()["data"]]


@pytest.mark.parametrize(
    "payload",
    [
        {"items": []},
        {"items": [{"label": "", "qty": 1, "unit_price": 100}]},
        {"items": [{"label": "X", "qty": 0, "unit_price": 100}]},
        {"items": [{"label": "X", "qty": 1, "unit_price": -1}]},
        {"items": [{"label": "X", "qty": 1, "unit_price": 100}], "tax_percent": "100.5"},
        {"items": [{"label": "X", "qty": 1, "unit_price": 100}], "tax_percent": "-1"},
    ],
)
@pytest.mark.asyncio
async def test_invalid_bill_payload(
    client: AsyncClient,
    staff_headers: dict,
    make_appointment: Any,
    payload: dict,
) -> None:
    appointment = await make_appointment(status="completed")

    response = await client.post(create_url(appointment["id"]), json=payload, headers=staff_headers)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_other_doctors_staff_cannot_bill(
    client: AsyncClient,
    other_staff_headers: dict,
    make_appointment: Any,
    sample_bill_data: dict,
) -> None:
    appointment = await make_appointment(status="completed")

    response = await client.post(
        create_url(appointment["id"]), json=sample_bill_data, headers=other_staff_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cash_payment_settles(
    client: AsyncClient,
    staff_headers: dict,
    create_bill: Any,
) -> None:
    bill = await create_bill()

    response = await client.put(
        f"/api/v1/staff/bills/{bill['id']}/payment",
        json={"payment_method": "cash"},
        headers=staff_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["payment_method"], data["status"], data["payment_status"]) == (
        "cash",
        "paid",
        "paid",
    )
    assert data["paid_at"].startswith("2030-01-01T10:00:00")

    again = await client.put(
        f"/api/v1/staff/bills/{bill['id']}/payment",
        json={"payment_method": "online"},
        headers=staff_headers,
    )
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "ALREADY_PAID"


@pytest.mark.asyncio
async def test_online_payment_by_patient(
    client: AsyncClient,
    staff_headers: dict,
    patient_headers: dict,
    create_bill: Any,
) -> None:
    bill = await create_bill()

    awaiting = await client.put(
        f"/api/v1/staff/bills/{bill['id']}/payment",
        json={"payment_method": "online"},
        headers=staff_headers,
    )
    data = awaiting.json()["data"]
    assert (data["payment_method"], data["status"], data["payment_status"]) == (
        "online",
        "unpaid",
        "pending",
    )
    assert data["paid_at"] is None

    paid = await client.post(f"/api/v1/patient/bills/{bill['id']}/pay", headers=patient_headers)
    assert paid.status_code == 200
    data = paid.json()["data"]
    assert (data["payment_method"], data["status"], data["payment_status"]) == (
        "online",
        "paid",
        "paid",
    )

    again = await client.post(f"/api/v1/patient/bills/{bill['id']}/pay", headers=patient_headers)
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "ALREADY_PAID"


@pytest.mark.asyncio
async def test_patient_cannot_pay_someone_elses_bill(
    client: AsyncClient,
    other_patient_headers: dict,
    create_bill: Any,
) -> None:
    bill = await create_bill()

    response = await client.post(
        f"/api/v1/patient/bills/{bill['id']}/pay", headers=other_patient_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invalid_payment_method(
    client: AsyncClient,
    staff_headers: dict,
    create_bill: Any,
) -> None:
    bill = await create_bill()

    response = await client.put(
        f"/api/v1/staff/bills/{bill['id']}/payment",
        json={"payment_method": "card"},
        headers=staff_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_patient_lists_own_bills(
    client: AsyncClient,
    patient_headers: dict,
    other_patient_headers: dict,
    create_bill: Any,
) -> None:
    bill = await create_bill()

    mine = await client.get("/api/v1/patient/bills", headers=patient_headers)
    assert [b["id"] for b in mine.json()["data"]] == [bill["id"]]
    assert mine.json()["data"][0]["appointment_slot"] == "09:00-09:30"

    theirs = await client.get("/api/v1/patient/bills", headers=other_patient_headers)
    assert theirs.json()["data"] == []
