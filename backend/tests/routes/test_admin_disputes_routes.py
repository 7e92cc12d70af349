# backend/tests/routes/test_admin_disputes_routes.py
"""Admin dispute queue and resolution endpoints."""

from datetime import timedelta
from decimal import Decimal

import pytest

from chefhome.core.timeutils import marketplace_today
from chefhome.models.booking import BookingStatus
from tests.factories.builders import create_booking

DISPUTES = "/api/v1/admin/disputes"


@pytest.fixture
def disputed_booking(client, auth_headers_client, db, client_user, chef):
    booking = create_booking(
        db,
        client=client_user,
        chef=chef,
        event_date=marketplace_today() + timedelta(days=3),
        status=BookingStatus.CONFIRMED,
        captured=Decimal("120.00"),
        total=Decimal("120.00"),
    )
    response = client.put(
        f"/api/v1/bookings/{booking.id}/status",
        json={"event": "dispute", "reason": "Chef never showed up"},
        headers=auth_headers_client,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "disputed"
    return booking


def test_admin_lists_open_disputes(client, auth_headers_admin, disputed_booking):
    response = client.get(DISPUTES, headers=auth_headers_admin)

    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 1
    assert page["items"][0]["id"] == disputed_booking.id
    assert sorted(page["items"][0]["allowed_events"]) == ["resolve_refund", "resolve_release"]
    dispute = page["items"][0]["dispute"]
    assert dispute["reason"] == "Chef never showed up"
    assert dispute["raised_by_party"] == "client"
    assert dispute["resolution_note"] is None


def test_full_refund_cancels_booking(client, auth_headers_admin, disputed_booking, payment_provider):
    response = client.put(
        f"{DISPUTES}/{disputed_booking.id}/resolve",
        json={"resolution": "Refund in full", "refund_amount": "120.00"},
        headers=auth_headers_admin,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["refunded_amount"] == 120.0
    assert len(payment_provider.refunds) == 1
    dispute = response.json()["dispute"]
    assert dispute["resolution_note"] == "Refund in full"
    assert dispute["outcome"] == "refunded"
    assert dispute["refund_amount"] == 120.0


def test_zero_refund_releases_to_chef(client, auth_headers_admin, disputed_booking, payment_provider):
    response = client.put(
        f"{DISPUTES}/{disputed_booking.id}/resolve",
        json={"resolution": "Service delivered as agreed", "refund_amount": 0},
        headers=auth_headers_admin,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert payment_provider.refunds == []


def test_refund_above_captured_is_rejected(client, auth_headers_admin, disputed_booking):
    response = client.put(
        f"{DISPUTES}/{disputed_booking.id}/resolve",
        json={"resolution": "Too generous", "refund_amount": "120.01"},
        headers=auth_headers_admin,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "REFUND_EXCEEDS_CAPTURED"


def test_resolving_twice_is_a_conflict(client, auth_headers_admin, disputed_booking):
    first = client.put(
        f"{DISPUTES}/{disputed_booking.id}/resolve",
        json={"resolution": "Released"},
        headers=auth_headers_admin,
    )
    assert first.status_code == 200

    second = client.put(
        f"{DISPUTES}/{disputed_booking.id}/resolve",
        json={"resolution": "Changed my mind", "refund_amount": "50.00"},
        headers=auth_headers_admin,
    )

    assert second.status_code == 409
    assert second.json()["code"] == "NOT_DISPUTED"


def test_in_flight_refund_blocks_a_release(client, auth_headers_admin, disputed_booking, payment_provider):
    payment_provider.drop_refund_responses = 3
    refund = client.put(
        f"{DISPUTES}/{disputed_booking.id}/resolve",
        json={"resolution": "Refund in full", "refund_amount": "120.00"},
        headers=auth_headers_admin,
    )
    assert refund.status_code == 502

    release = client.put(
        f"{DISPUTES}/{disputed_booking.id}/resolve",
        json={"resolution": "Released instead"},
        headers=auth_headers_admin,
    )

    assert release.status_code == 409
    assert release.json()["code"] == "REFUND_IN_PROGRESS"
    assert payment_provider.refunded_total() == Decimal("120.00")


@pytest.mark.parametrize("headers_fixture", ["auth_headers_client", "auth_headers_chef"])
def test_non_admins_are_forbidden(client, request, headers_fixture, disputed_booking):
    headers = request.getfixturevalue(headers_fixture)

    listing = client.get(DISPUTES, headers=headers)
    resolve = client.put(
        f"{DISPUTES}/{disputed_booking.id}/resolve",
        json={"resolution": "Refund", "refund_amount": "10.00"},
        headers=headers,
    )

    assert listing.status_code == 403
    assert resolve.status_code == 403
    assert resolve.json()["code"] == "TRANSITION_NOT_PERMITTED"
