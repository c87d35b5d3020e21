"""Tests for booking endpoints."""

import pytest
from httpx import AsyncClient

from clinicbook.core.locks import get_lock_manager
from clinicbook.main import app
from clinicbook.schemas.bookings import BookingEvent
from clinicbook.services.notification_service import get_dispatcher

REASON = "Provider unavailable, please pick another slot ok."


@pytest.fixture
def booking_data(provider: dict) -> dict:
    """Sample booking request for testing."""
    return {
        "provider_id": str(provider["id"]),
        "start_time": "2030-01-07T10:30:00Z",
        "end_time": "2030-01-07T11:00:00Z",
        "patient_notes": "Recurring headaches",
    }


async def create_booking(client: AsyncClient, headers: dict, data: dict) -> dict:
    response = await client.post("/api/v1/bookings/", json=data, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_detailed_health_with_local_locks(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health/detailed")
    assert response.status_code == 200
    data = response.json()
    assert data["database"] == "healthy"
    assert data["redis"] == "disabled"
    assert data["lock_backend"] == "local"


@pytest.mark.asyncio
async def test_ping(client: AsyncClient) -> None:
    response = await client.get("/api/v1/ping")
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_create_booking(
    client: AsyncClient,
    patient_headers: dict,
    patient: dict,
    booking_data: dict,
    notifier,
    dispatcher,
) -> None:
    """Test requesting a booking."""
    data = await create_booking(client, patient_headers, booking_data)

    assert data["status"] == "PENDING"
    assert data["patient_id"] == str(patient["id"])
    assert data["patient_notes"] == "Recurring headaches"
    assert "id" in data

    await dispatcher.drain()
    assert [event for _, event in notifier.events] == [BookingEvent.CREATED]


@pytest.mark.asyncio
async def test_create_overlapping_booking_conflicts(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    await create_booking(client, patient_headers, booking_data)

    overlapping = {
        **booking_data,
        "start_time": "2030-01-07T10:45:00Z",
        "end_time": "2030-01-07T11:15:00Z",
    }
    response = await client.post("/api/v1/bookings/", json=overlapping, headers=patient_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "ConflictException"


@pytest.mark.asyncio
async def test_create_booking_validation(
    client: AsyncClient,
    patient_headers: dict,
    booking_data: dict,
) -> None:
    naive = {**booking_data, "start_time": "2030-01-07T10:30:00"}
    reversed_interval = {
        **booking_data,
        "start_time": "2030-01-07T11:00:00Z",
        "end_time": "2030-01-07T10:30:00Z",
    }
    long_notes = {**booking_data, "patient_notes": "n" * 501}

    for payload in (naive, reversed_interval, long_notes):
        response = await client.post("/api/v1/bookings/", json=payload, headers=patient_headers)
        assert response.status_code == 422, payload


@pytest.mark.asyncio
async def test_create_booking_requires_patient(
    client: AsyncClient,
    provider_headers: dict,
    booking_data: dict,
) -> None:
    missing = await client.post("/api/v1/bookings/", json=booking_data)
    wrong_role = await client.post("/api/v1/bookings/", json=booking_data, headers=provider_headers)
    bad_token = await client.post(
        "/api/v1/bookings/",
        json=booking_data,
        headers={"Authorization": "Bearer not-a-token"},
    )

    assert missing.status_code == 401
    assert wrong_role.status_code == 403
    assert bad_token.status_code == 401


@pytest.mark.asyncio
async def test_booking_lifecycle_endpoints(
    client: AsyncClient,
    patient_headers: dict,
    provider_headers: dict,
    booking_data: dict,
) -> None:
    booking = await create_booking(client, patient_headers, booking_data)
    booking_id = booking["id"]

    early_complete = await client.put(
        f"/api/v1/bookings/{booking_id}/complete", headers=provider_headers
    )
    assert early_complete.status_code == 409
    assert early_complete.json()["error"] == "InvalidStateException"

    confirmed = await client.put(f"/api/v1/bookings/{booking_id}/confirm", headers=provider_headers)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "CONFIRMED"

    completed = await client.put(
        f"/api/v1/bookings/{booking_id}/complete", headers=provider_headers
    )
    assert completed.status_code == 200
    assert completed.json()["status"] == "COMPLETED"

    cancel = await client.put(f"/api/v1/bookings/{booking_id}/cancel", headers=patient_headers)
    assert cancel.status_code == 409


@pytest.mark.asyncio
async def test_reject_booking(
    client: AsyncClient,
    patient_headers: dict,
    provider_headers: dict,
    booking_data: dict,
) -> None:
    booking_id = (await create_booking(client, patient_headers, booking_data))["id"]

    short = await client.put(
        f"/api/v1/bookings/{booking_id}/reject",
        json={"rejection_reason": "Busy."},
        headers=provider_headers,
    )
    assert short.status_code == 422

    rejected = await client.put(
        f"/api/v1/bookings/{booking_id}/reject",
        json={"rejection_reason": REASON},
        headers=provider_headers,
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "REJECTED"
    assert rejected.json()["rejection_reason"] == REASON


@pytest.mark.asyncio
async def test_transitions_endpoint(
    client: AsyncClient,
    patient_headers: dict,
    provider_headers: dict,
    booking_data: dict,
) -> None:
    booking_id = (await create_booking(client, patient_headers, booking_data))["id"]

    by_patient = await client.post(
        f"/api/v1/bookings/{booking_id}/transitions",
        json={"action": "confirm"},
        headers=patient_headers,
    )
    assert by_patient.status_code == 403

    unknown_action = await client.post(
        f"/api/v1/bookings/{booking_id}/transitions",
        json={"action": "reschedule"},
        headers=provider_headers,
    )
    assert unknown_action.status_code == 422

    rejected = await client.post(
        f"/api/v1/bookings/{booking_id}/transitions",
        json={"action": "reject", "reason": REASON},
        headers=provider_headers,
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "REJECTED"

    cancelled = await client.post(
        f"/api/v1/bookings/{booking_id}/transitions",
        json={"action": "cancel"},
        headers=patient_headers,
    )
    assert cancelled.json()["status"] == "CANCELLED"


@pytest.mark.asyncio
async def test_other_provider_cannot_confirm(
    client: AsyncClient,
    patient_headers: dict,
    other_provider: dict,
    booking_data: dict,
    headers_for,
) -> None:
    booking_id = (await create_booking(client, patient_headers, booking_data))["id"]

    response = await client.put(
        f"/api/v1/bookings/{booking_id}/confirm",
        headers=headers_for(other_provider["id"], "provider"),
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_and_list_bookings(
    client: AsyncClient,
    patient_headers: dict,
    provider_headers: dict,
    other_patient: dict,
    booking_data: dict,
    headers_for,
) -> None:
    first = await create_booking(client, patient_headers, booking_data)
    later = {
        **booking_data,
        "start_time": "2030-01-07T11:00:00Z",
        "end_time": "2030-01-07T11:30:00Z",
    }
    second = await create_booking(client, patient_headers, later)

    fetched = await client.get(f"/api/v1/bookings/{first['id']}", headers=provider_headers)
    assert fetched.status_code == 200
    assert fetched.json()["id"] == first["id"]

    stranger = await client.get(
        f"/api/v1/bookings/{first['id']}",
        headers=headers_for(other_patient["id"], "patient"),
    )
    assert stranger.status_code == 403

    missing = await client.get(
        "/api/v1/bookings/00000000-0000-0000-0000-000000000000", headers=patient_headers
    )
    assert missing.status_code == 404

    listed = await client.get("/api/v1/bookings/", headers=patient_headers)
    assert listed.status_code == 200
    assert listed.json()["total"] == 2
    assert [b["id"] for b in listed.json()["items"]] == [second["id"], first["id"]]

    pending = await client.get("/api/v1/bookings/pending", headers=provider_headers)
    assert [b["id"] for b in pending.json()] == [first["id"], second["id"]]

    patient_pending = await client.get("/api/v1/bookings/pending", headers=patient_headers)
    assert patient_pending.status_code == 403

    await client.put(f"/api/v1/bookings/{first['id']}/confirm", headers=provider_headers)
    confirmed = await client.get(
        "/api/v1/bookings/", params={"status": "CONFIRMED"}, headers=provider_headers
    )
    assert [b["id"] for b in confirmed.json()["items"]] == [first["id"]]


@pytest.mark.asyncio
async def test_read_endpoints_need_no_locks_or_notifications(
    client: AsyncClient,
    patient_headers: dict,
    provider_headers: dict,
    booking_data: dict,
) -> None:
    created = await create_booking(client, patient_headers, booking_data)

    def unavailable():
        raise RuntimeError("not needed for reads")

    app.dependency_overrides[get_lock_manager] = unavailable
    app.dependency_overrides[get_dispatcher] = unavailable

    fetched = await client.get(f"/api/v1/bookings/{created['id']}", headers=patient_headers)
    listed = await client.get("/api/v1/bookings/", headers=patient_headers)
    pending = await client.get("/api/v1/bookings/pending", headers=provider_headers)

    assert fetched.status_code == 200
    assert listed.json()["total"] == 1
    assert [b["id"] for b in pending.json()] == [created["id"]]
