"""Integration tests for API endpoints."""

from datetime import date, time
from uuid import uuid4

import pytest


@pytest.mark.asyncio
async def test_create_booking_endpoint(test_client, auth_headers, passenger, trip):
    """Test the booking creation endpoint."""
    response = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 3, "notes": "Leaving from the north exit"},
        headers=auth_headers(passenger.id)
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["credits_used"] == 3
    assert data["passenger_id"] == str(passenger.id)
    assert data["trip_id"] == str(trip.id)
    assert "id" in data
    assert "created_at" in data


@pytest.mark.asyncio
async def test_create_booking_missing_auth(test_client, trip):
    """Test booking creation without authentication."""
    response = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 3}
    )

    assert response.status_code == 401
    data = response.json()
    assert data["status"] == 401
    assert data["title"] == "Authentication Required"
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_create_booking_invalid_token(test_client, trip):
    response = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 3},
        headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_booking_invalid_data(test_client, auth_headers, passenger, trip):
    """Test booking creation with invalid data."""
    response = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 0},
        headers=auth_headers(passenger.id)
    )

    assert response.status_code == 422
    assert response.headers["content-type"].startswith("application/problem+json")
    data = response.json()
    assert data["status"] == 422
    assert any("credits_used" in v["path"] for v in data["violations"])


@pytest.mark.asyncio
async def test_create_booking_insufficient_credits(test_client, auth_headers, passenger, trip):
    """Test business-rule failures map to 400 with a stable code."""
    response = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 50},
        headers=auth_headers(passenger.id)
    )

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "INSUFFICIENT_CREDITS"
    assert data["type"].endswith("/insufficient-credits")


@pytest.mark.asyncio
async def test_create_booking_unknown_trip(test_client, auth_headers, passenger):
    response = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(uuid4()), "credits_used": 1},
        headers=auth_headers(passenger.id)
    )

    assert response.status_code == 404
    assert response.json()["resource_type"] == "trip"


@pytest.mark.asyncio
async def test_booking_lifecycle_endpoints(test_client, auth_headers, passenger, driver, trip):
    """Test create, get, confirm, complete through the API."""
    created = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 2},
        headers=auth_headers(passenger.id)
    )
    booking_id = created.json()["id"]

    response = await test_client.post(
        "/v1/booking/get", json={"booking_id": booking_id}, headers=auth_headers(passenger.id)
    )
    assert response.status_code == 200
    assert response.json()["id"] == booking_id

    # The passenger is not the driver
    response = await test_client.post(
        "/v1/booking/confirm", json={"booking_id": booking_id}, headers=auth_headers(passenger.id)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "NOT_TRIP_DRIVER"

    response = await test_client.post(
        "/v1/booking/confirm", json={"booking_id": booking_id}, headers=auth_headers(driver.id)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"

    response = await test_client.post(
        "/v1/booking/complete", json={"booking_id": booking_id}, headers=auth_headers(driver.id)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"

    response = await test_client.post(
        "/v1/booking/cancel", json={"booking_id": booking_id}, headers=auth_headers(passenger.id)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_get_booking_of_another_user(test_client, auth_headers, make_user, passenger, trip):
    """Test bookings outside the requester's scope look absent, except to administrators."""
    stranger = await make_user()
    created = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 2},
        headers=auth_headers(passenger.id)
    )
    booking_id = created.json()["id"]

    response = await test_client.post(
        "/v1/booking/get", json={"booking_id": booking_id}, headers=auth_headers(stranger.id)
    )
    assert response.status_code == 404

    response = await test_client.post(
        "/v1/booking/get",
        json={"booking_id": booking_id},
        headers=auth_headers(stranger.id, roles=["administrator"])
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_cancel_and_list_endpoints(test_client, auth_headers, passenger, trip):
    created = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 2},
        headers=auth_headers(passenger.id)
    )
    booking_id = created.json()["id"]

    response = await test_client.post(
        "/v1/booking/cancel", json={"booking_id": booking_id}, headers=auth_headers(passenger.id)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"

    response = await test_client.post(
        "/v1/booking/cancel", json={"booking_id": booking_id}, headers=auth_headers(passenger.id)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "ALREADY_CANCELLED"

    response = await test_client.post("/v1/booking/list", headers=auth_headers(passenger.id))
    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["id"] for item in items] == [booking_id]


@pytest.mark.asyncio
async def test_update_booking_endpoint(test_client, auth_headers, passenger, trip):
    created = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 2},
        headers=auth_headers(passenger.id)
    )
    booking_id = created.json()["id"]

    response = await test_client.post(
        "/v1/booking/update",
        json={"booking_id": booking_id, "notes": "Two bags"},
        headers=auth_headers(passenger.id)
    )
    assert response.status_code == 200
    assert response.json()["notes"] == "Two bags"

    response = await test_client.post(
        "/v1/booking/update",
        json={"booking_id": booking_id, "status": "CONFIRMED"},
        headers=auth_headers(passenger.id)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_bookings_by_trip_driver_only(test_client, auth_headers, passenger, driver, trip):
    await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 2},
        headers=auth_headers(passenger.id)
    )

    response = await test_client.post(
        "/v1/booking/by-trip", json={"trip_id": str(trip.id)}, headers=auth_headers(driver.id)
    )
    assert response.status_code == 200
    assert len(response.json()["items"]) == 1

    response = await test_client.post(
        "/v1/booking/by-trip", json={"trip_id": str(trip.id)}, headers=auth_headers(passenger.id)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_booking_requires_administrator(test_client, auth_headers, passenger, trip):
    created = await test_client.post(
        "/v1/booking/create",
        json={"trip_id": str(trip.id), "credits_used": 2},
        headers=auth_headers(passenger.id)
    )
    booking_id = created.json()["id"]

    response = await test_client.post(
        "/v1/booking/delete", json={"booking_id": booking_id}, headers=auth_headers(passenger.id)
    )
    assert response.status_code == 403

    admin_headers = auth_headers(uuid4(), roles=["administrator"])
    response = await test_client.post("/v1/booking/delete", json={"booking_id": booking_id}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"booking_id": booking_id, "deleted": True}

    response = await test_client.post("/v1/booking/delete", json={"booking_id": booking_id}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_trip_search_endpoint(test_client, trip):
    """Test the trip search endpoint."""
    response = await test_client.post(
        "/v1/trip/search",
        json={"departure_city": "paris", "arrival_city": "lyon", "departure_date": "2025-07-20"}
    )

    assert response.status_code == 200
    data = response.json()
    assert [item["id"] for item in data["items"]] == [str(trip.id)]
    assert data["items"][0]["departure_datetime"] == "2025-07-20T09:00:00"
    assert data["items"][0]["is_ecological"] is True
    assert data["alternatives"] == []


@pytest.mark.asyncio
async def test_trip_search_falls_back_to_alternatives(test_client, make_trip, driver):
    """Test an empty search result carries trips from neighbouring days."""
    next_day = await make_trip(driver, departure_date=date(2025, 7, 21), departure_hour=time(7, 30))

    response = await test_client.post(
        "/v1/trip/search",
        json={"departure_city": "Paris", "arrival_city": "Lyon", "departure_date": "2025-07-20"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert [item["id"] for item in data["alternatives"]] == [str(next_day.id)]

    response = await test_client.post(
        "/v1/trip/alternatives",
        json={"departure_city": "Paris", "arrival_city": "Lyon", "departure_date": "2025-07-22"}
    )
    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [str(next_day.id)]


@pytest.mark.asyncio
async def test_trip_get_endpoint(test_client, trip):
    response = await test_client.post("/v1/trip/get", json={"trip_id": str(trip.id)})

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(trip.id)
    assert data["status"] == "AVAILABLE"
    assert data["bookings"] == []

    response = await test_client.post("/v1/trip/get", json={"trip_id": str(uuid4())})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_keyword_search_endpoint(test_client, trip):
    response = await test_client.post("/v1/search/all", json={"query": "part-dieu"})

    assert response.status_code == 200
    items = response.json()["items"]
    assert [(item["type"], item["id"]) for item in items] == [("trip", str(trip.id))]

    response = await test_client.post("/v1/search/all", json={"query": "driver", "type": "car"})
    assert response.status_code == 200
    assert response.json()["items"] == []
