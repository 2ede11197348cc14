"""Tests for the Stripe webhook."""

import stripe
from sqlalchemy import select

from skydeal.core.config import settings
from skydeal.db.models.subscription import Subscription


def _post_event(client, monkeypatch, event):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    monkeypatch.setattr(stripe.Webhook, "construct_event", lambda payload, sig, secret: event)
    return client.post("/api/billing/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=x"})


def _subscription(db, user):
    db.expire_all()
    return db.execute(select(Subscription).where(Subscription.user_id == user.id)).scalar_one()


def test_webhook_rejects_bad_signature(client, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")

    def _raise(payload, sig, secret):
        raise stripe.SignatureVerificationError("bad signature", sig)

    monkeypatch.setattr(stripe.Webhook, "construct_event", _raise)
    response = client.post("/api/billing/webhook", content=b"{}", headers={"stripe-signature": "x"})
    assert response.status_code == 400


def test_checkout_completed_upgrades_plan(client, db, make_user, monkeypatch):
    user = make_user(plan_type="free")
    event = {
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "customer": "cus_123",
                "subscription": "sub_123",
                "metadata": {"user_id": str(user.id), "plan_type": "premium_plus"},
            }
        },
    }

    response = _post_event(client, monkeypatch, event)

    assert response.status_code == 200
    subscription = _subscription(db, user)
    assert subscription.plan_type == "premium_plus"
    assert subscription.status == "active"
    assert subscription.stripe_subscription_id == "sub_123"


def test_subscription_updates_status_and_plan(client, db, make_user, monkeypatch):
    user = make_user(plan_type="premium")
    subscription = _subscription(db, user)
    subscription.stripe_subscription_id = "sub_456"
    db.commit()
    monkeypatch.setattr(settings, "STRIPE_PREMIUM_PLUS_PRICE_ID", "price_plus")

    event = {
        "type": "customer.subscription.updated",
        "data": {
            "object": {
                "id": "sub_456",
                "status": "past_due",
                "items": {"data": [{"price": {"id": "price_plus"}}]},
                "current_period_start": 1767225600,
                "current_period_end": 1769904000,
            }
        },
    }
    assert _post_event(client, monkeypatch, event).status_code == 200

    subscription = _subscription(db, user)
    assert subscription.status == "past_due"
    assert subscription.plan_type == "premium_plus"
    assert subscription.current_period_end is not None


def test_subscription_deleted_downgrades_to_free(client, db, make_user, monkeypatch):
    user = make_user(plan_type="premium")
    subscription = _subscription(db, user)
    subscription.stripe_subscription_id = "sub_789"
    db.commit()

    event = {"type": "customer.subscription.deleted", "data": {"object": {"id": "sub_789", "status": "canceled"}}}
    assert _post_event(client, monkeypatch, event).status_code == 200

    subscription = _subscription(db, user)
    assert subscription.plan_type == "free"
    assert subscription.status == "canceled"


def test_unrelated_events_are_ignored(client, monkeypatch):
    response = _post_event(client, monkeypatch, {"type": "invoice.created", "data": {"object": {}}})
    assert response.json() == {"status": "ignored"}
