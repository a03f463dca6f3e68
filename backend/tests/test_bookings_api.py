"""
Tests for slot and booking endpoints.
"""

import datetime as dt

import pytest
from httpx import AsyncClient

from conftest import make_slot

TOMORROW = (dt.date.today() + dt.timedelta(days=1)).isoformat()


def booking_body(draft, slot_id: int) -> dict:
    return {
        "time_slot_id": slot_id,
        "user_id": draft.user_id,
        "vehicle_id": draft.vehicle_id,
        "service_type_id": draft.service_type_id,
        "notes": draft.notes,
    }


@pytest.mark.asyncio
async def test_create_and_list_slots(client: AsyncClient):
    response = await client.post(
        "/api/v1/slots/",
        json={"date": TOMORROW, "start_time": "11:00", "end_time": "12:00", "capacity": 3},
    )
    assert response.status_code == 201
    created = response.json()
    assert created["booked_count"] == 0
    assert created["remaining"] == 3

    await client.post(
        "/api/v1/slots/",
        json={"date": TOMORROW, "start_time": "08:00", "end_time": "09:00", "capacity": 1},
    )

    listing = await client.get("/api/v1/slots/", params={"date": TOMORROW})
    assert listing.status_code == 200
    data = listing.json()
    assert data["cached"] is False
    assert [s["start_time"] for s in data["slots"]] == ["08:00:00", "11:00:00"]


@pytest.mark.asyncio
async def test_create_slot_rejects_bad_times(client: AsyncClient):
    response = await client.post(
        "/api/v1/slots/",
        json={"date": TOMORROW, "start_time": "12:00", "end_time": "11:00", "capacity": 3},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_slot_rejects_zero_capacity(client: AsyncClient):
    response = await client.post(
        "/api/v1/slots/",
        json={"date": TOMORROW, "start_time": "11:00", "end_time": "12:00", "capacity": 0},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_book_slot(client: AsyncClient, slot, draft):
    """Successful booking is pending and claims one place."""
    response = await client.post("/api/v1/bookings/", json=booking_body(draft, slot.id))
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["time_slot_id"] == slot.id

    slot_response = await client.get(f"/api/v1/slots/{slot.id}")
    assert slot_response.json()["booked_count"] == 1
    assert slot_response.json()["remaining"] == 1


@pytest.mark.asyncio
async def test_book_full_slot(client: AsyncClient, session_factory, draft):
    full = await make_slot(session_factory, capacity=1, booked_count=1)

    response = await client.post("/api/v1/bookings/", json=booking_body(draft, full.id))
    assert response.status_code == 409
    assert "fully booked" in response.json()["detail"]


@pytest.mark.asyncio
async def test_book_nonexistent_slot(client: AsyncClient, draft):
    response = await client.post("/api/v1/bookings/", json=booking_body(draft, 99999))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_book_incompatible_service(client: AsyncClient, slot, customer, car, bike_tune_up):
    response = await client.post(
        "/api/v1/bookings/",
        json={
            "time_slot_id": slot.id,
            "user_id": customer.id,
            "vehicle_id": car.id,
            "service_type_id": bike_tune_up.id,
        },
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_booking_with_reference_data(client: AsyncClient, booking):
    response = await client.get(f"/api/v1/bookings/{booking.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["vehicle"]["registration_number"] == "KA01AB1234"
    assert data["service_type"]["name"] == "Oil Change"
    assert data["time_slot"]["id"] == booking.time_slot_id


@pytest.mark.asyncio
async def test_get_missing_booking(client: AsyncClient):
    response = await client.get("/api/v1/bookings/424242")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_user_bookings(client: AsyncClient, booking, customer, other_customer):
    response = await client.get("/api/v1/bookings/", params={"user_id": customer.id})
    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == [booking.id]

    response = await client.get("/api/v1/bookings/", params={"user_id": other_customer.id})
    assert response.json() == []


@pytest.mark.asyncio
async def test_cancel_booking(client: AsyncClient, slot, booking, customer, dispatcher, lifecycle):
    """Customer cancellation restores the slot's capacity and is recorded."""
    response = await client.post(
        f"/api/v1/bookings/{booking.id}/cancel",
        json={"changed_by": customer.id, "notes": "Car sold"},
    )
    assert response.status_code == 200
    assert response.json()["old_status"] == "pending"
    assert response.json()["new_status"] == "cancelled"

    slot_response = await client.get(f"/api/v1/slots/{slot.id}")
    assert slot_response.json()["booked_count"] == 0

    await lifecycle.drain()
    assert dispatcher.calls == [(booking.id, "cancelled")]


@pytest.mark.asyncio
async def test_cancel_twice(client: AsyncClient, booking):
    await client.post(f"/api/v1/bookings/{booking.id}/cancel", json={})

    response = await client.post(f"/api/v1/bookings/{booking.id}/cancel", json={})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_booking_history(client: AsyncClient, booking, staff):
    await client.patch(
        f"/api/v1/admin/bookings/{booking.id}/status",
        json={"status": "confirmed", "changed_by": staff.id},
    )
    await client.patch(
        f"/api/v1/admin/bookings/{booking.id}/status",
        json={"status": "in_progress", "changed_by": staff.id},
    )

    response = await client.get(f"/api/v1/bookings/{booking.id}/history")
    assert response.status_code == 200
    assert [(h["old_status"], h["new_status"]) for h in response.json()] == [
        ("pending", "confirmed"),
        ("confirmed", "in_progress"),
    ]


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}
