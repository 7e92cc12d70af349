# backend/tests/routes/test_chefs_routes.py
"""Chef availability management and the public day schedule."""

from datetime import time, timedelta

from chefhome.core.timeutils import marketplace_today
from chefhome.models.booking import BookingStatus
from tests.factories.builders import create_booking

CHEFS = "/api/v1/chefs"


def test_replace_weekly_windows(client, auth_headers_chef, chef):
    response = client.put(
        f"{CHEFS}/me/availability/windows",
        json={
            "windows": [
                {"day_of_week": "saturday", "start": "18:00", "end": "23:00"},
                {"day_of_week": "friday", "start": "11:00", "end": "15:00"},
            ]
        },
        headers=auth_headers_chef,
    )

    assert response.status_code == 200
    windows = response.json()["windows"]
    assert [(w["day_of_week"], w["start_time"], w["end_time"]) for w in windows] == [
        (4, "11:00", "15:00"),
        (5, "18:00", "23:00"),
    ]


def test_overlapping_windows_are_rejected(client, auth_headers_chef):
    response = client.put(
        f"{CHEFS}/me/availability/windows",
        json={
            "windows": [
                {"day_of_week": "monday", "start": "10:00", "end": "14:00"},
                {"day_of_week": "monday", "start": "13:00", "end": "16:00"},
            ]
        },
        headers=auth_headers_chef,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_blackout_lifecycle(client, auth_headers_chef):
    day = marketplace_today() + timedelta(days=20)

    added = client.post(
        f"{CHEFS}/me/availability/blackouts",
        json={"date": day.isoformat(), "reason": "Vacances"},
        headers=auth_headers_chef,
    )
    assert added.status_code == 201
    assert added.json()["date"] == day.isoformat()
    assert added.json()["reason"] == "Vacances"

    duplicate = client.post(
        f"{CHEFS}/me/availability/blackouts", json={"date": day.isoformat()}, headers=auth_headers_chef
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "BLACKOUT_EXISTS"

    removed = client.delete(f"{CHEFS}/me/availability/blackouts/{day.isoformat()}", headers=auth_headers_chef)
    assert removed.status_code == 204

    current = client.get(f"{CHEFS}/me/availability", headers=auth_headers_chef)
    assert current.json()["blackout_dates"] == []


def test_update_limits(client, auth_headers_chef):
    response = client.patch(
        f"{CHEFS}/me/availability/limits",
        json={"lead_time_days": 4, "max_guests": 20},
        headers=auth_headers_chef,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["lead_time_days"] == 4
    assert data["max_guests"] == 20
    assert data["advance_booking_limit_days"] == 180


def test_client_has_no_availability(client, auth_headers_client):
    response = client.get(f"{CHEFS}/me/availability", headers=auth_headers_client)

    assert response.status_code in (403, 404)


def test_day_schedule_hides_reservation_identity(
    client, auth_headers_client, db, client_user, chef
):
    day = marketplace_today() + timedelta(days=5)
    create_booking(db, client=client_user, chef=chef, event_date=day, start=time(12, 0), end=time(14, 0))
    create_booking(
        db,
        client=client_user,
        chef=chef,
        event_date=day,
        start=time(19, 0),
        end=time(22, 0),
        status=BookingStatus.CONFIRMED,
    )
    create_booking(
        db,
        client=client_user,
        chef=chef,
        event_date=day,
        start=time(15, 0),
        end=time(17, 0),
        status=BookingStatus.CANCELLED,
    )

    response = client.get(
        f"{CHEFS}/{chef.id}/schedule", params={"date": day.isoformat()}, headers=auth_headers_client
    )

    assert response.status_code == 200
    entries = response.json()["reservations"]
    assert [(e["start_time"], e["end_time"], e["status"]) for e in entries] == [
        ("12:00", "14:00", "pending"),
        ("19:00", "22:00", "confirmed"),
    ]
    assert all("id" not in e and "client_id" not in e for e in entries)


def test_schedule_of_unknown_chef_is_not_found(client, auth_headers_client):
    response = client.get(
        f"{CHEFS}/01UNKNOWNCHEF/schedule",
        params={"date": marketplace_today().isoformat()},
        headers=auth_headers_client,
    )

    assert response.status_code == 404
