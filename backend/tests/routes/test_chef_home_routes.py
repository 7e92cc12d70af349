# backend/tests/routes/test_chef_home_routes.py
"""HTTP surface of /api/v1/chef-home."""

from datetime import timedelta

import pytest

from chefhome.core.timeutils import marketplace_today
from tests.conftest import auth_headers_for
from tests.factories.builders import create_chef, create_location

CHEF_HOME = "/api/v1/chef-home"


def location_payload(**overrides) -> dict:
    payload = {
        "title": "Atelier Montmartre",
        "description": "Tasting menu at the chef's counter",
        "street": "12 rue Lepic",
        "city": "Paris",
        "zip_code": "75018",
        "min_guests": 2,
        "max_guests": 6,
        "base_price": "80.00",
        "price_per_guest": "25.00",
        "days_of_week": ["Friday", "saturday"],
        "time_slots": [{"start": "19:00", "end": "23:00"}],
        "lead_time_days": 2,
        "advance_booking_limit_days": 60,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def location(db, chef):
    return create_location(db, chef)


@pytest.fixture
def visit_day():
    return marketplace_today() + timedelta(days=10)


def appointment_payload(visit_day, start="19:00", end="21:00", guests=4) -> dict:
    return {
        "requested_date": visit_day.isoformat(),
        "start_time": start,
        "end_time": end,
        "guests": guests,
        "message": "Anniversary dinner",
    }


def test_chef_creates_location(client, auth_headers_chef, chef):
    response = client.post(CHEF_HOME, json=location_payload(), headers=auth_headers_chef)

    assert response.status_code == 201
    data = response.json()
    assert data["chef_id"] == chef.id
    assert data["days_of_week"] == ["friday", "saturday"]
    assert data["time_slots"] == [{"start": "19:00", "end": "23:00"}]
    assert data["base_price"] == 80.0
    assert data["is_active"] is True

    mine = client.get(f"{CHEF_HOME}/mine", headers=auth_headers_chef)
    assert [loc["id"] for loc in mine.json()] == [data["id"]]


def test_client_cannot_create_location(client, auth_headers_client):
    response = client.post(CHEF_HOME, json=location_payload(), headers=auth_headers_client)

    assert response.status_code == 403


def test_inverted_guest_bounds_are_rejected(client, auth_headers_chef):
    response = client.post(
        CHEF_HOME, json=location_payload(min_guests=8, max_guests=4), headers=auth_headers_chef
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_public_listing_filters_by_city(client, db, chef, location):
    create_location(db, create_chef(db), city="Lyon", zip_code="69001")

    response = client.get(CHEF_HOME, params={"city": "Paris"})

    assert response.status_code == 200
    assert [loc["id"] for loc in response.json()] == [location.id]


def test_update_and_deactivate_location(client, auth_headers_chef, location):
    updated = client.put(
        f"{CHEF_HOME}/{location.id}", json={"max_guests": 10, "title": "Grande table"}, headers=auth_headers_chef
    )
    assert updated.status_code == 200
    assert updated.json()["max_guests"] == 10
    assert updated.json()["title"] == "Grande table"

    removed = client.delete(f"{CHEF_HOME}/{location.id}", headers=auth_headers_chef)
    assert removed.status_code == 200
    assert removed.json()["is_active"] is False

    assert client.get(f"{CHEF_HOME}/{location.id}").status_code == 404


def test_other_chef_cannot_update_location(client, db, location):
    intruder = create_chef(db)
    headers = auth_headers_for(intruder.user)

    response = client.put(f"{CHEF_HOME}/{location.id}", json={"max_guests": 3}, headers=headers)

    assert response.status_code == 403


def test_request_appointment_quotes_estimate(client, auth_headers_client, location, visit_day):
    response = client.post(
        f"{CHEF_HOME}/{location.id}/appointments",
        json=appointment_payload(visit_day),
        headers=auth_headers_client,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["estimated_price"] == 180.0
    assert data["start_time"] == "19:00"
    assert data["location_id"] == location.id


def test_appointment_outside_slots_is_rejected(client, auth_headers_client, location, visit_day):
    response = client.post(
        f"{CHEF_HOME}/{location.id}/appointments",
        json=appointment_payload(visit_day, start="15:00", end="17:00"),
        headers=auth_headers_client,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "OUTSIDE_AVAILABILITY_WINDOW"


def test_appointment_over_capacity_is_rejected(client, auth_headers_client, location, visit_day):
    response = client.post(
        f"{CHEF_HOME}/{location.id}/appointments",
        json=appointment_payload(visit_day, guests=7),
        headers=auth_headers_client,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "OUT_OF_CAPACITY"


def test_overlapping_appointment_conflicts(
    client, auth_headers_client, location, visit_day, other_client_user
):
    first = client.post(
        f"{CHEF_HOME}/{location.id}/appointments",
        json=appointment_payload(visit_day),
        headers=auth_headers_client,
    )
    assert first.status_code == 201

    response = client.post(
        f"{CHEF_HOME}/{location.id}/appointments",
        json=appointment_payload(visit_day, start="20:00", end="22:00"),
        headers=auth_headers_for(other_client_user),
    )

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT_DETECTED"


def test_chef_accepts_appointment(client, auth_headers_client, auth_headers_chef, location, visit_day):
    created = client.post(
        f"{CHEF_HOME}/{location.id}/appointments",
        json=appointment_payload(visit_day),
        headers=auth_headers_client,
    ).json()

    response = client.patch(
        f"{CHEF_HOME}/appointments/{created['id']}/status",
        json={"event": "accept"},
        headers=auth_headers_chef,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    mine = client.get(
        f"{CHEF_HOME}/appointments/mine", params={"status": "accepted"}, headers=auth_headers_client
    )
    assert [a["id"] for a in mine.json()] == [created["id"]]


def test_client_cannot_accept_appointment(client, auth_headers_client, location, visit_day):
    created = client.post(
        f"{CHEF_HOME}/{location.id}/appointments",
        json=appointment_payload(visit_day),
        headers=auth_headers_client,
    ).json()

    response = client.patch(
        f"{CHEF_HOME}/appointments/{created['id']}/status",
        json={"event": "accept"},
        headers=auth_headers_client,
    )

    assert response.status_code == 403
    assert response.json()["code"] == "TRANSITION_NOT_PERMITTED"


def test_unknown_appointment_event_is_a_validation_problem(
    client, auth_headers_chef, auth_headers_client, location, visit_day
):
    created = client.post(
        f"{CHEF_HOME}/{location.id}/appointments",
        json=appointment_payload(visit_day),
        headers=auth_headers_client,
    ).json()

    response = client.patch(
        f"{CHEF_HOME}/appointments/{created['id']}/status",
        json={"event": "complete"},
        headers=auth_headers_chef,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
