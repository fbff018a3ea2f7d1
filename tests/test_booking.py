"""Tests for booking and patient cancellation."""

import asyncio
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import ConflictException
from clinic.models import appointments
from clinic.services.appointment_store import AppointmentStore
from clinic.services.booking_validator import BookingValidator
from tests.helpers import NEXT_MONDAY, TODAY, TOMORROW, YESTERDAY

URL = "/api/v1/patient/appointments"


def booking(doctor: dict, day=TOMORROW, slot: str = "09:00-09:30") -> dict:
    return {"doctor_id": str(doctor["id"]), "date": day.isoformat(), "slot": slot}


async def count_active(session: AsyncSession, doctor_id, day, slot) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(appointments)
        .where(
            appointments.c.doctor_id == doctor_id,
            appointments.c.date == day,
            appointments.c.slot == slot,
            appointments.c.status != "cancelled",
        )
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_book_appointment(
    client: AsyncClient,
    patient_headers: dict,
    doctor: dict,
    patient: dict,
) -> None:
    response = await client.post(
        URL, json={**booking(doctor), "notes": "Persistent cough"}, headers=patient_headers
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["status"] == "pending"
    assert data["patient_id"] == str(patient["id"])
    assert data["date"] == TOMORROW.isoformat()
    assert data["slot"] == "09:00-09:30"
    assert data["doctor_name"] == "Dr. Asha Rao"
    assert data["notes"] == "Persistent cough"


@pytest.mark.asyncio
async def test_same_day_booking_is_allowed(
    client: AsyncClient, patient_headers: dict, doctor: dict
) -> None:
    response = await client.post(
        URL, json=booking(doctor, day=TODAY, slot="14:00-14:30"), headers=patient_headers
    )

    assert response.status_code == 201


@pytest.mark.asyncio
async def test_past_date_is_rejected(
    client: AsyncClient, patient_headers: dict, doctor: dict
) -> None:
    response = await client.post(URL, json=booking(doctor, day=YESTERDAY), headers=patient_headers)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_DATE"


@pytest.mark.asyncio
async def test_past_date_is_reported_before_undeclared_slot(
    client: AsyncClient, patient_headers: dict, doctor: dict
) -> None:
    response = await client.post(
        URL, json=booking(doctor, day=YESTERDAY, slot="18:00-18:30"), headers=patient_headers
    )

    assert response.json()["error"]["code"] == "INVALID_DATE"


@pytest.mark.parametrize(
    "payload_update",
    [
        {"date": "2030/01/02"},
        {"date": "02-01-2030"},
        {"slot": "9:00-9:30"},
        {"slot": "09:00 - 09:30"},
        {"slot": "\u0660\u0669:\u0660\u0660-\u0660\u0669:\u0663\u0660"},
        {"date": "\u0662\u0660\u0663\u0660-\u0660\u0661-\u0660\u0662"},
    ],
)
@pytest.mark.asyncio
async def test_malformed_request_is_rejected(
    client: AsyncClient,
    patient_headers: dict,
    doctor: dict,
    payload_update: dict,
) -> None:
    response = await client.post(
        URL, json={**booking(doctor), **payload_update}, headers=patient_headers
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]


@pytest.mark.asyncio
async def test_undeclared_slot_is_rejected(
    client: AsyncClient, patient_headers: dict, doctor: dict
) -> None:
    # 14:00-14:30 is only declared on Tuesdays
    response = await client.post(
        URL, json=booking(doctor, slot="14:00-14:30"), headers=patient_headers
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "INVALID_SLOT"
    assert error["details"] == [{"day": "Wed", "slot": "14:00-14:30"}]


@pytest.mark.asyncio
async def test_part_of_declared_slot_is_rejected(
    client: AsyncClient, patient_headers: dict, doctor: dict
) -> None:
    response = await client.post(
        URL, json=booking(doctor, day=NEXT_MONDAY, slot="09:00-09:15"), headers=patient_headers
    )

    assert response.json()["error"]["code"] == "INVALID_SLOT"


@pytest.mark.asyncio
async def test_unknown_doctor(client: AsyncClient, patient_headers: dict) -> None:
    response = await client.post(
        URL,
        json={
            "doctor_id": "00000000-0000-0000-0000-000000000000",
            "date": TOMORROW.isoformat(),
            "slot": "09:00-09:30",
        },
        headers=patient_headers,
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_taken_slot_is_rejected(
    client: AsyncClient,
    patient_headers: dict,
    other_patient_headers: dict,
    doctor: dict,
) -> None:
    first = await client.post(URL, json=booking(doctor), headers=patient_headers)
    assert first.status_code == 201

    second = await client.post(URL, json=booking(doctor), headers=other_patient_headers)

    assert second.status_code == 409
    assert second.json()["error"]["code"] == "SLOT_TAKEN"


@pytest.mark.asyncio
async def test_patient_cannot_hold_two_doctors_at_once(
    client: AsyncClient,
    patient_headers: dict,
    doctor: dict,
    other_doctor: dict,
) -> None:
    first = await client.post(URL, json=booking(doctor), headers=patient_headers)
    assert first.status_code == 201

    second = await client.post(URL, json=booking(other_doctor), headers=patient_headers)

    assert second.status_code == 409
    assert second.json()["error"]["code"] == "PATIENT_CONFLICT"


@pytest.mark.asyncio
async def test_cancellation_frees_the_slot(
    client: AsyncClient,
    patient_headers: dict,
    other_patient_headers: dict,
    doctor: dict,
) -> None:
    created = await client.post(URL, json=booking(doctor), headers=patient_headers)
    appointment_id = created.json()["data"]["id"]

    cancelled = await client.delete(f"{URL}/{appointment_id}", headers=patient_headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["data"]["status"] == "cancelled"

    rebooked = await client.post(URL, json=booking(doctor), headers=other_patient_headers)
    assert rebooked.status_code == 201


@pytest.mark.asyncio
async def test_concurrent_bookings_admit_exactly_one(
    client: AsyncClient,
    db_session: AsyncSession,
    patient_headers: dict,
    other_patient_headers: dict,
    doctor: dict,
) -> None:
    responses = await asyncio.gather(
        client.post(URL, json=booking(doctor), headers=patient_headers),
        client.post(URL, json=booking(doctor), headers=other_patient_headers),
    )

    assert sorted(r.status_code for r in responses) == [201, 409]
    loser = next(r for r in responses if r.status_code == 409)
    assert loser.json()["error"]["code"] == "SLOT_TAKEN"
    assert await count_active(db_session, doctor["id"], TOMORROW, "09:00-09:30") == 1


@pytest.mark.asyncio
async def test_storage_constraint_rejects_when_prechecks_are_skipped(
    client: AsyncClient,
    db_session: AsyncSession,
    patient_headers: dict,
    other_patient_headers: dict,
    doctor: dict,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def skip_checks(self: BookingValidator, patient_id: Any, data: Any) -> None:
        return None

    monkeypatch.setattr(BookingValidator, "validate", skip_checks)

    first = await client.post(URL, json=booking(doctor), headers=patient_headers)
    second = await client.post(URL, json=booking(doctor), headers=other_patient_headers)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "SLOT_TAKEN"
    assert await count_active(db_session, doctor["id"], TOMORROW, "09:00-09:30") == 1


@pytest.mark.asyncio
async def test_store_insert_translates_index_violation(
    db_session: AsyncSession,
    doctor: dict,
    patient: dict,
    other_patient: dict,
) -> None:
    store = AppointmentStore(db_session)
    await store.insert_pending(patient["id"], doctor["id"], TOMORROW, "09:00-09:30")

    with pytest.raises(ConflictException) as exc_info:
        await store.insert_pending(other_patient["id"], doctor["id"], TOMORROW, "09:00-09:30")

    assert exc_info.value.code == "SLOT_TAKEN"


@pytest.mark.asyncio
async def test_list_own_appointments_with_range(
    client: AsyncClient,
    patient_headers: dict,
    make_appointment: Any,
    other_patient: dict,
) -> None:
    await make_appointment(day=YESTERDAY, slot="09:00-09:30", status="completed")
    await make_appointment(day=TOMORROW, slot="09:00-09:30")
    await make_appointment(day=NEXT_MONDAY, slot="09:30-10:00")
    await make_appointment(day=NEXT_MONDAY, slot="09:00-09:30", patient_id=other_patient["id"])

    everything = await client.get(URL, headers=patient_headers)
    assert [a["date"] for a in everything.json()["data"]] == [
        NEXT_MONDAY.isoformat(),
        TOMORROW.isoformat(),
        YESTERDAY.isoformat(),
    ]

    upcoming = await client.get(
        URL,
        params={"from": TODAY.isoformat(), "to": TOMORROW.isoformat()},
        headers=patient_headers,
    )
    assert [a["date"] for a in upcoming.json()["data"]] == [TOMORROW.isoformat()]


@pytest.mark.parametrize("status", ["in_session", "completed", "no_show", "cancelled"])
@pytest.mark.asyncio
async def test_patient_cannot_cancel_after_the_fact(
    client: AsyncClient,
    patient_headers: dict,
    make_appointment: Any,
    status: str,
) -> None:
    appointment = await make_appointment(status=status)

    response = await client.delete(f"{URL}/{appointment['id']}", headers=patient_headers)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_patient_cannot_cancel_past_appointment(
    client: AsyncClient,
    patient_headers: dict,
    make_appointment: Any,
) -> None:
    appointment = await make_appointment(day=YESTERDAY, status="confirmed")

    response = await client.delete(f"{URL}/{appointment['id']}", headers=patient_headers)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "PAST_APPOINTMENT"


@pytest.mark.asyncio
async def test_patient_cannot_cancel_someone_elses_appointment(
    client: AsyncClient,
    other_patient_headers: dict,
    make_appointment: Any,
) -> None:
    appointment = await make_appointment()

    response = await client.delete(f"{URL}/{appointment['id']}", headers=other_patient_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_staff_cannot_book(client: AsyncClient, staff_headers: dict, doctor: dict) -> None:
    response = await client.post(URL, json=booking(doctor), headers=staff_headers)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ACCESS_DENIED"
