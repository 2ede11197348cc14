"""Tests for the weekly digest."""

from conftest import RecordingTransport
from skydeal.core.config import settings
from skydeal.deals.detection import DealDetectionService
from skydeal.notifications.newsletter import send_weekly_newsletter


def _make_deals(db, make_flight, add_history, count: int) -> None:
    service = DealDetectionService(db, notifier=lambda db, deal_id: 0)
    destinations = ["LHR", "CDG", "FCO", "MAD", "AMS", "DUB", "LIS"]
    for i in range(count):
        flight = make_flight(destination=destinations[i], price=300.0 + i * 10)
        add_history(flight, [500.0] * 10)
        service.evaluate_flight(flight.id)


def _deal_links(body: str) -> int:
    return body.count(f"{settings.FRONTEND_URL}/deals/")


def test_digest_sends_top_five_deals(db, make_flight, add_history, make_user, transport):
    user = make_user(notification_frequency="weekly")
    _make_deals(db, make_flight, add_history, 6)

    assert send_weekly_newsletter(db, transport) == 1

    message = transport.sent[0]
    assert message.to_email == user.email
    assert message.subject == "Your Weekly Flight Deals - Top 5 Deals This Week"
    assert _deal_links(message.body_text) == 5
    # best discount first
    assert message.body_text.index("40% off") < message.body_text.index("36% off")
    assert "30% off" not in message.body_text


def test_digest_audience(db, make_flight, add_history, make_user, transport):
    make_user(notification_frequency="daily")
    make_user(notification_frequency="weekly", email_verified=False)
    make_user(notification_frequency="weekly", status="canceled")
    make_user(notification_frequency="weekly", min_discount=90)
    trialing = make_user(notification_frequency="weekly", status="trialing")
    _make_deals(db, make_flight, add_history, 2)

    assert send_weekly_newsletter(db, transport) == 1
    assert [m.to_email for m in transport.sent] == [trialing.email]


def test_digest_isolates_per_user_failures(db, make_flight, add_history, make_user):
    broken = make_user(notification_frequency="weekly")
    healthy = make_user(notification_frequency="weekly")
    _make_deals(db, make_flight, add_history, 1)
    transport = RecordingTransport(fail_for={broken.email})

    assert send_weekly_newsletter(db, transport) == 1
    assert [m.to_email for m in transport.sent] == [healthy.email]


def test_digest_without_deals_sends_nothing(db, make_user, transport):
    make_user(notification_frequency="weekly")
    assert send_weekly_newsletter(db, transport) == 0
    assert transport.sent == []
