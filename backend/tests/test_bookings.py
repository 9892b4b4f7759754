"""
Tests for booking endpoints, including the conflict and lifecycle paths.
"""

import asyncio

import pytest
from httpx import AsyncClient


async def _book(client: AsyncClient, customer_id, vehicle_id, start, end, **extra):
    return await client.post(
        "/api/v1/bookings/",
        json={
            "customer_id": customer_id,
            "vehicle_id": vehicle_id,
            "start_date": start,
            "end_date": end,
            **extra,
        },
    )


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, customer, vehicle):
    """Successful booking returns a pending record with its history."""
    response = await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05", notes="Child seat")
    assert response.status_code == 201
    data = response.json()
    assert data["vehicle_id"] == vehicle.id
    assert data["start_date"] == "2025-06-01"
    assert data["end_date"] == "2025-06-05"
    assert data["rental_days"] == 4
    assert data["status"] == "pending"
    assert data["source"] == "direct"
    assert data["notes"] == "Child seat"
    assert data["booking_ref"].startswith("BK-")
    assert [h["status"] for h in data["status_history"]] == ["pending"]


@pytest.mark.asyncio
async def test_overlapping_booking_returns_409(client: AsyncClient, customer, vehicle):
    """Overlap with a held range returns 409 with the conflicting range."""
    first = await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")
    assert first.status_code == 201

    response = await _book(client, customer.id, vehicle.id, "2025-06-03", "2025-06-06")
    assert response.status_code == 409
    data = response.json()
    assert data["error"] == "booking_conflict"
    assert data["conflicts"] == [{"start_date": "2025-06-01", "end_date": "2025-06-05"}]


@pytest.mark.asyncio
async def test_back_to_back_bookings(client: AsyncClient, customer, vehicle):
    """Return day of one rental can be the pickup day of the next."""
    await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")
    response = await _book(client, customer.id, vehicle.id, "2025-06-05", "2025-06-08")
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_empty_range_returns_422(client: AsyncClient, customer, vehicle):
    response = await _book(client, customer.id, vehicle.id, "2025-06-05", "2025-06-05")
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_range"


@pytest.mark.asyncio
async def test_inverted_range_returns_422(client: AsyncClient, customer, vehicle):
    response = await _book(client, customer.id, vehicle.id, "2025-06-08", "2025-06-05")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_malformed_date_returns_422(client: AsyncClient, customer, vehicle):
    response = await _book(client, customer.id, vehicle.id, "June 1st", "2025-06-05")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_vehicle_returns_404(client: AsyncClient, customer):
    response = await _book(client, customer.id, 99999, "2025-06-01", "2025-06-05")
    assert response.status_code == 404
    assert response.json()["resource"] == "vehicle"


@pytest.mark.asyncio
async def test_unknown_customer_returns_404(client: AsyncClient, vehicle):
    response = await _book(client, 99999, vehicle.id, "2025-06-01", "2025-06-05")
    assert response.status_code == 404
    assert response.json()["resource"] == "customer"


@pytest.mark.asyncio
async def test_status_lifecycle(client: AsyncClient, customer, vehicle):
    """pending -> active -> completed, then completed -> active is rejected."""
    booking_id = (await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")).json()["id"]

    response = await client.patch(f"/api/v1/bookings/{booking_id}/status", json={"status": "active"})
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    response = await client.patch(f"/api/v1/bookings/{booking_id}/status", json={"status": "completed"})
    assert response.status_code == 200
    assert [h["status"] for h in response.json()["status_history"]] == ["pending", "active", "completed"]

    response = await client.patch(f"/api/v1/bookings/{booking_id}/status", json={"status": "active"})
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "illegal_transition"
    assert data["from"] == "completed"
    assert data["to"] == "active"


@pytest.mark.asyncio
async def test_pending_to_completed_rejected(client: AsyncClient, customer, vehicle):
    booking_id = (await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")).json()["id"]
    response = await client.patch(f"/api/v1/bookings/{booking_id}/status", json={"status": "completed"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_status_value_returns_422(client: AsyncClient, customer, vehicle):
    booking_id = (await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")).json()["id"]
    response = await client.patch(f"/api/v1/bookings/{booking_id}/status", json={"status": "confirmed"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_status_change_unknown_booking(client: AsyncClient):
    response = await client.patch("/api/v1/bookings/99999/status", json={"status": "active"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cancel_frees_dates(client: AsyncClient, customer, vehicle):
    """Cancelling releases the range; the overlapping request then succeeds."""
    booking_id = (await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")).json()["id"]
    assert (await _book(client, customer.id, vehicle.id, "2025-06-03", "2025-06-06")).status_code == 409

    response = await client.patch(f"/api/v1/bookings/{booking_id}/status", json={"status": "cancelled"})
    assert response.status_code == 200

    response = await _book(client, customer.id, vehicle.id, "2025-06-03", "2025-06-06")
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_concurrent_requests_one_booking(client: AsyncClient, customer, vehicle):
    """Five simultaneous overlapping requests: one 201, four 409."""
    responses = await asyncio.gather(*(
        _book(client, customer.id, vehicle.id, "2025-06-01", f"2025-06-{day:02d}")
        for day in range(3, 8)
    ))
    codes = sorted(r.status_code for r in responses)
    assert codes == [201, 409, 409, 409, 409]


@pytest.mark.asyncio
async def test_get_booking_and_by_ref(client: AsyncClient, customer, vehicle):
    created = (await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")).json()

    response = await client.get(f"/api/v1/bookings/{created['id']}")
    assert response.status_code == 200
    assert response.json()["booking_ref"] == created["booking_ref"]

    response = await client.get(f"/api/v1/bookings/ref/{created['booking_ref']}")
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]

    assert (await client.get("/api/v1/bookings/99999")).status_code == 404
    assert (await client.get("/api/v1/bookings/ref/BK-NOPE")).status_code == 404


@pytest.mark.asyncio
async def test_list_bookings_filters(client: AsyncClient, customer, vehicle, second_vehicle):
    first = (await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")).json()
    await _book(client, customer.id, second_vehicle.id, "2025-06-01", "2025-06-05")
    await client.patch(f"/api/v1/bookings/{first['id']}/status", json={"status": "cancelled"})

    response = await client.get("/api/v1/bookings/")
    assert len(response.json()) == 2

    response = await client.get(f"/api/v1/bookings/?vehicle_id={vehicle.id}")
    assert [b["id"] for b in response.json()] == [first["id"]]

    response = await client.get("/api/v1/bookings/?status=pending")
    assert [b["vehicle_id"] for b in response.json()] == [second_vehicle.id]


@pytest.mark.asyncio
async def test_calendar_view(client: AsyncClient, customer, vehicle):
    await _book(client, customer.id, vehicle.id, "2025-06-01", "2025-06-05")
    await _book(client, customer.id, vehicle.id, "2025-07-01", "2025-07-05")

    response = await client.get("/api/v1/bookings/calendar?start_date=2025-06-01&end_date=2025-07-01")
    assert response.status_code == 200
    assert [b["start_date"] for b in response.json()] == ["2025-06-01"]


@pytest.mark.asyncio
async def test_calendar_view_invalid_window(client: AsyncClient):
    response = await client.get("/api/v1/bookings/calendar?start_date=2025-07-01&end_date=2025-06-01")
    assert response.status_code == 422
