"""Tests for notification endpoints."""

import uuid

import pytest
from sqlalchemy import select

from conftest import admin_headers, auth_headers
from skydeal.db.models.notification import Notification
from skydeal.deals.detection import DealDetectionService
from skydeal.notifications.email_sender import LogTransport


@pytest.fixture
def notified_user(db, make_flight, add_history, make_user):
    user = make_user()
    flight = make_flight(price=300.0)
    add_history(flight, [500.0] * 10)
    DealDetectionService(db).evaluate_flight(flight.id)
    return user


def _notification(db, user):
    db.expire_all()
    return db.execute(select(Notification).where(Notification.user_id == user.id)).scalar_one()


def test_list_requires_auth(client, notified_user):
    assert client.get("/api/notifications").status_code == 401
    headers = {"Authorization": "Bearer wrong", "X-User-Id": str(notified_user.id)}
    assert client.get("/api/notifications", headers=headers).status_code == 401
    headers = {"Authorization": "Bearer test-token", "X-User-Id": "abc"}
    assert client.get("/api/notifications", headers=headers).status_code == 401
    headers = {"Authorization": "Bearer test-token", "X-User-Id": str(uuid.uuid4())}
    assert client.get("/api/notifications", headers=headers).status_code == 404


def test_list_notifications(client, notified_user, make_user):
    response = client.get("/api/notifications", headers=auth_headers(notified_user))
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 1
    item = body["notifications"][0]
    assert item["status"] == "pending"
    assert item["deal"]["discount_percentage"] == 40

    filtered = client.get(
        "/api/notifications", params={"status": "sent"}, headers=auth_headers(notified_user)
    ).json()
    assert filtered["notifications"] == []

    stranger = make_user(min_discount=90)
    assert client.get("/api/notifications", headers=auth_headers(stranger)).json()["pagination"]["total"] == 0


def test_mark_read(client, db, notified_user, make_user):
    notification = _notification(db, notified_user)
    other = make_user()

    response = client.put(f"/api/notifications/{notification.id}/read", headers=auth_headers(other))
    assert response.status_code == 404

    response = client.put(
        f"/api/notifications/{notification.id}/read", headers=auth_headers(notified_user)
    )
    assert response.status_code == 200
    assert _notification(db, notified_user).read_at is not None


def test_track_open_always_returns_pixel(client, db, notified_user):
    notification = _notification(db, notified_user)

    response = client.get(f"/api/notifications/track/open/{notification.id}")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/gif"
    assert response.content.startswith(b"GIF89a")
    assert _notification(db, notified_user).opened_at is not None

    for bad_id in ("garbage", str(uuid.uuid4())):
        response = client.get(f"/api/notifications/track/open/{bad_id}")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/gif"


def test_track_click_always_redirects(client, db, notified_user):
    notification = _notification(db, notified_user)
    target = "https://skydeal.example.com/deals/123"

    response = client.get(
        f"/api/notifications/track/click/{notification.id}",
        params={"redirect": target},
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert response.headers["location"] == target
    assert _notification(db, notified_user).clicked_at is not None

    response = client.get("/api/notifications/track/click/garbage", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "http://localhost:3000"

    response = client.get(
        "/api/notifications/track/click/garbage",
        params={"redirect": "javascript:alert(1)"},
        follow_redirects=False,
    )
    assert response.headers["location"] == "http://localhost:3000"


def test_process_requires_admin(client):
    assert client.post("/api/notifications/process").status_code == 401


def test_process_drains_in_background(client, db, notified_user, monkeypatch):
    sent = []
    monkeypatch.setattr(LogTransport, "send", lambda self, message: sent.append(message))

    response = client.post("/api/notifications/process", headers=admin_headers())

    assert response.status_code == 202
    assert [m.to_email for m in sent] == [notified_user.email]
    assert _notification(db, notified_user).status == "sent"


def test_weekly_newsletter_trigger(client, db, make_flight, add_history, make_user, monkeypatch):
    sent = []
    monkeypatch.setattr(LogTransport, "send", lambda self, message: sent.append(message))
    user = make_user(notification_frequency="weekly")
    flight = make_flight(price=300.0)
    add_history(flight, [500.0] * 10)
    DealDetectionService(db, notifier=lambda db, deal_id: 0).evaluate_flight(flight.id)

    response = client.post("/api/notifications/weekly-newsletter", headers=admin_headers())

    assert response.status_code == 202
    assert [m.to_email for m in sent] == [user.email]
