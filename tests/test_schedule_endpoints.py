"""Tests for provider directory, schedule and availability endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.models import providers

MONDAY = "2030-01-07"


async def configure_monday(client: AsyncClient, headers: dict) -> None:
    settings = await client.put(
        "/api/v1/schedule/settings",
        json={"slot_duration_minutes": 30, "buffer_minutes": 0, "timezone": "UTC"},
        headers=headers,
    )
    assert settings.status_code == 200, settings.text

    weekly = await client.put(
        "/api/v1/schedule/weekly",
        json={
            "schedule": {
                "MONDAY": {"available": True, "start_time": "09:00", "end_time": "12:00"},
            }
        },
        headers=headers,
    )
    assert weekly.status_code == 200, weekly.text

    tea = await client.post(
        "/api/v1/schedule/breaks",
        json={"name": "Tea", "day_of_week": "MONDAY", "start_time": "10:00", "end_time": "10:15"},
        headers=headers,
    )
    assert tea.status_code == 201, tea.text


@pytest.mark.asyncio
async def test_available_slots(
    client: AsyncClient,
    provider: dict,
    provider_headers: dict,
) -> None:
    await configure_monday(client, provider_headers)

    response = await client.get(
        f"/api/v1/providers/{provider['id']}/available-slots", params={"date": MONDAY}
    )

    assert response.status_code == 200
    slots = response.json()
    assert [s["start_time"][11:16] for s in slots] == [
        "09:00",
        "09:30",
        "10:00",
        "10:30",
        "11:00",
        "11:30",
    ]
    assert [s["available"] for s in slots] == [True, True, False, True, True, True]
    assert slots[2]["reason"] == "TEA"


@pytest.mark.asyncio
async def test_available_slots_reflect_new_booking(
    client: AsyncClient,
    provider: dict,
    provider_headers: dict,
    patient_headers: dict,
) -> None:
    await configure_monday(client, provider_headers)
    booked = await client.post(
        "/api/v1/bookings/",
        json={
            "provider_id": str(provider["id"]),
            "start_time": "2030-01-07T11:00:00Z",
            "end_time": "2030-01-07T11:30:00Z",
        },
        headers=patient_headers,
    )
    assert booked.status_code == 201

    response = await client.get(
        f"/api/v1/providers/{provider['id']}/available-slots", params={"date": MONDAY}
    )

    reasons = {s["start_time"][11:16]: s["reason"] for s in response.json() if not s["available"]}
    assert reasons == {"10:00": "TEA", "11:00": "BOOKED"}


@pytest.mark.asyncio
async def test_available_slots_errors(client: AsyncClient, provider: dict) -> None:
    unknown = await client.get(
        "/api/v1/providers/00000000-0000-0000-0000-000000000000/available-slots",
        params={"date": MONDAY},
    )
    bad_date = await client.get(
        f"/api/v1/providers/{provider['id']}/available-slots", params={"date": "07/01/2030"}
    )
    no_date = await client.get(f"/api/v1/providers/{provider['id']}/available-slots")

    assert unknown.status_code == 404
    assert bad_date.status_code == 422
    assert no_date.status_code == 422


@pytest.mark.asyncio
async def test_day_off_clears_slots(
    client: AsyncClient,
    provider: dict,
    provider_headers: dict,
) -> None:
    await configure_monday(client, provider_headers)

    added = await client.post(
        "/api/v1/schedule/exception-periods",
        json={
            "start_date": MONDAY,
            "end_date": MONDAY,
            "type": "HOLIDAY",
            "reason": "Public holiday",
        },
        headers=provider_headers,
    )
    assert added.status_code == 201
    period_id = added.json()["id"]

    slots = await client.get(
        f"/api/v1/providers/{provider['id']}/available-slots", params={"date": MONDAY}
    )
    assert slots.json() == []

    moved = await client.put(
        f"/api/v1/schedule/exception-periods/{period_id}",
        json={"start_date": "2030-01-14", "end_date": "2030-01-14", "type": "HOLIDAY"},
        headers=provider_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["start_date"] == "2030-01-14"

    deleted = await client.delete(
        f"/api/v1/schedule/exception-periods/{period_id}", headers=provider_headers
    )
    assert deleted.status_code == 204


@pytest.mark.asyncio
async def test_schedule_config(
    client: AsyncClient,
    provider: dict,
    provider_headers: dict,
) -> None:
    await configure_monday(client, provider_headers)

    response = await client.get(f"/api/v1/providers/{provider['id']}/schedule")

    assert response.status_code == 200
    data = response.json()
    assert data["settings"] == {"slot_duration_minutes": 30, "buffer_minutes": 0, "timezone": "UTC"}
    assert data["weekly_windows"][0]["day_of_week"] == "MONDAY"
    assert [b["name"] for b in data["breaks"]] == ["Tea"]


@pytest.mark.asyncio
async def test_schedule_writes_require_provider(
    client: AsyncClient,
    patient_headers: dict,
) -> None:
    as_patient = await client.put(
        "/api/v1/schedule/settings", json={"slot_duration_minutes": 30}, headers=patient_headers
    )
    anonymous = await client.put("/api/v1/schedule/settings", json={"slot_duration_minutes": 30})

    assert as_patient.status_code == 403
    assert anonymous.status_code == 401


@pytest.mark.asyncio
async def test_schedule_validation(client: AsyncClient, provider_headers: dict) -> None:
    bad_duration = await client.put(
        "/api/v1/schedule/settings", json={"slot_duration_minutes": 20}, headers=provider_headers
    )
    bad_timezone = await client.put(
        "/api/v1/schedule/settings", json={"timezone": "Nowhere/City"}, headers=provider_headers
    )
    empty_week = await client.put(
        "/api/v1/schedule/weekly", json={"schedule": {}}, headers=provider_headers
    )
    unordered_day = await client.put(
        "/api/v1/schedule/weekly",
        json={
            "schedule": {
                "FRIDAY": {"available": True, "start_time": "17:00", "end_time": "09:00"},
            }
        },
        headers=provider_headers,
    )

    for response in (bad_duration, bad_timezone, empty_week, unordered_day):
        assert response.status_code == 422


@pytest.mark.asyncio
async def test_break_ownership(
    client: AsyncClient,
    provider_headers: dict,
    other_provider: dict,
    headers_for,
) -> None:
    created = await client.post(
        "/api/v1/schedule/breaks",
        json={"name": "Lunch", "start_time": "12:00", "end_time": "13:00"},
        headers=provider_headers,
    )
    break_id = created.json()["id"]
    assert created.json()["day_of_week"] == "ALL"

    other_headers = headers_for(other_provider["id"], "provider")
    foreign_update = await client.put(
        f"/api/v1/schedule/breaks/{break_id}",
        json={"name": "Nap", "start_time": "12:00", "end_time": "12:30"},
        headers=other_headers,
    )
    foreign_delete = await client.delete(
        f"/api/v1/schedule/breaks/{break_id}", headers=other_headers
    )
    assert foreign_update.status_code == 403
    assert foreign_delete.status_code == 403

    updated = await client.put(
        f"/api/v1/schedule/breaks/{break_id}",
        json={"name": "Long lunch", "start_time": "12:00", "end_time": "14:00"},
        headers=provider_headers,
    )
    assert updated.json()["name"] == "Long lunch"

    deleted = await client.delete(f"/api/v1/schedule/breaks/{break_id}", headers=provider_headers)
    again = await client.delete(f"/api/v1/schedule/breaks/{break_id}", headers=provider_headers)
    assert deleted.status_code == 204
    assert again.status_code == 404


async def add_provider(
    db: AsyncSession, name: str, specialization: str, is_active: bool = True
) -> dict:
    provider_id = uuid4()
    values = {
        "id": provider_id,
        "full_name": name,
        "email": f"{provider_id.hex[:8]}@clinic.example.com",
        "specialization": specialization,
        "is_active": is_active,
    }
    await db.execute(insert(providers).values(**values))
    await db.commit()
    return values


@pytest.mark.asyncio
async def test_list_providers(
    client: AsyncClient,
    db_session: AsyncSession,
    provider: dict,
    other_provider: dict,
) -> None:
    await add_provider(db_session, "Dr. Ada Heart", "Cardiology")
    await add_provider(db_session, "Dr. Old Heart", "Cardiology", is_active=False)

    response = await client.get("/api/v1/providers/")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert [p["full_name"] for p in data["items"]] == [
        "Dr. Ada Heart",
        "Dr. Alan Grant",
        "Dr. Jane Smith",
    ]

    second_page = await client.get("/api/v1/providers/", params={"page": 2, "page_size": 2})
    assert second_page.status_code == 200
    assert second_page.json()["total"] == 3
    assert [p["full_name"] for p in second_page.json()["items"]] == ["Dr. Jane Smith"]


@pytest.mark.asyncio
async def test_list_providers_by_specialization(
    client: AsyncClient,
    db_session: AsyncSession,
    provider: dict,
) -> None:
    cardiologist = await add_provider(db_session, "Dr. Ada Heart", "Cardiology")
    await add_provider(db_session, "Dr. Old Heart", "Cardiology", is_active=False)

    response = await client.get("/api/v1/providers/", params={"specialization": "cardio"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == str(cardiologist["id"])
    assert data["items"][0]["specialization"] == "Cardiology"


@pytest.mark.asyncio
async def test_get_provider(
    client: AsyncClient,
    db_session: AsyncSession,
    provider: dict,
) -> None:
    response = await client.get(f"/api/v1/providers/{provider['id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["full_name"] == "Dr. Jane Smith"
    assert data["specialization"] == "General Practice"

    retired = await add_provider(db_session, "Dr. Old Heart", "Cardiology", is_active=False)
    assert (await client.get(f"/api/v1/providers/{retired['id']}")).status_code == 404
    assert (await client.get(f"/api/v1/providers/{uuid4()}")).status_code == 404
