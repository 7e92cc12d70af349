# backend/tests/routes/test_notifications_and_health_routes.py
"""Notification feed, health check and metrics scrape."""

from datetime import timedelta

from chefhome.core.timeutils import marketplace_today


def test_chef_is_notified_of_new_request(client, auth_headers_client, auth_headers_chef, chef, client_user):
    created = client.post(
        "/api/v1/bookings",
        json={
            "chef_id": chef.id,
            "service_type": "private-events",
            "event_date": (marketplace_today() + timedelta(days=8)).isoformat(),
            "start_time": "12:00",
            "duration_hours": 4,
            "guests": 8,
            "location": {"address": "5 quai Saint-Antoine", "city": "Lyon", "zip_code": "69002"},
        },
        headers=auth_headers_client,
    )
    assert created.status_code == 201

    feed = client.get("/api/v1/notifications", headers=auth_headers_chef)

    assert feed.status_code == 200
    notifications = feed.json()
    assert len(notifications) == 1
    assert notifications[0]["event"] == "created"
    assert notifications[0]["reservation_id"] == created.json()["id"]
    assert notifications[0]["is_read"] is False

    # The requester is not notified of their own action
    assert client.get("/api/v1/notifications", headers=auth_headers_client).json() == []


def test_notifications_require_a_token(client):
    assert client.get("/api/v1/notifications").status_code == 401


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["environment"] == "test"


def test_metrics_endpoint_exposes_prometheus_text(client):
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")


def test_mark_notification_read(client, auth_headers_chef, auth_headers_client, notification_service, chef_user):
    (notification,) = notification_service.notify(
        recipients=[chef_user.id],
        reservation_kind="service_booking",
        reservation_id="01BOOKING",
        event="reminder",
    )

    stranger = client.post(f"/api/v1/notifications/{notification.id}/read", headers=auth_headers_client)
    assert stranger.status_code == 404

    response = client.post(f"/api/v1/notifications/{notification.id}/read", headers=auth_headers_chef)
    assert response.status_code == 200
    assert response.json()["is_read"] is True

    unread = client.get("/api/v1/notifications", params={"unread_only": True}, headers=auth_headers_chef)
    assert unread.json() == []
