"""Billing routes for Stripe integration."""
import logging
import uuid
from datetime import datetime, timezone

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from skydeal.api.deps import get_current_user
from skydeal.core.config import settings
from skydeal.db.models.subscription import PlanType, Subscription
from skydeal.db.models.user import User
from skydeal.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/billing", tags=["billing"])

stripe.api_key = settings.STRIPE_SECRET_KEY


class CheckoutIn(BaseModel):
    plan_type: PlanType


def _price_id_for(plan_type: PlanType) -> str | None:
    return {
        PlanType.premium: settings.STRIPE_PREMIUM_PRICE_ID,
        PlanType.premium_plus: settings.STRIPE_PREMIUM_PLUS_PRICE_ID,
    }.get(plan_type)


def _plan_for_price(price_id: str | None) -> str | None:
    if price_id and price_id == settings.STRIPE_PREMIUM_PLUS_PRICE_ID:
        return PlanType.premium_plus.value
    if price_id and price_id == settings.STRIPE_PREMIUM_PRICE_ID:
        return PlanType.premium.value
    return None


def _ts(value) -> datetime | None:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value else None


@router.post("/checkout")
def create_checkout_session(
    payload: CheckoutIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    price_id = _price_id_for(payload.plan_type)
    if not price_id:
        raise HTTPException(status_code=400, detail="Plan is not purchasable")

    subscription = user.subscription
    if subscription is None:
        subscription = Subscription(user_id=user.id, plan_type=PlanType.free.value, status="active")
        db.add(subscription)

    # Create or retrieve Stripe customer
    if not subscription.stripe_customer_id:
        customer = stripe.Customer.create(email=user.email, metadata={"user_id": str(user.id)})
        subscription.stripe_customer_id = customer.id
    db.commit()

    session = stripe.checkout.Session.create(
        customer=subscription.stripe_customer_id,
        payment_method_types=["card"],
        line_items=[{"price": price_id, "quantity": 1}],
        mode="subscription",
        success_url=f"{settings.FRONTEND_URL}/preferences?upgraded=true",
        cancel_url=f"{settings.FRONTEND_URL}/preferences",
        metadata={"user_id": str(user.id), "plan_type": payload.plan_type.value},
    )
    return {"url": session.url}


def _apply_checkout_completed(db: Session, session) -> None:
    metadata = session.get("metadata") or {}
    try:
        user_id = uuid.UUID(metadata.get("user_id") or "")
    except ValueError:
        logger.warning("checkout.session.completed without a valid user_id in metadata")
        return

    subscription = db.execute(
        select(Subscription).where(Subscription.user_id == user_id)
    ).scalar_one_or_none()
    if subscription is None:
        subscription = Subscription(user_id=user_id)
        db.add(subscription)

    subscription.plan_type = metadata.get("plan_type") or PlanType.premium.value
    subscription.status = "active"
    subscription.stripe_customer_id = session.get("customer") or subscription.stripe_customer_id
    subscription.stripe_subscription_id = session.get("subscription")


def _apply_subscription_change(db: Session, event_type: str, data) -> None:
    subscription = db.execute(
        select(Subscription).where(Subscription.stripe_subscription_id == data["id"])
    ).scalar_one_or_none()
    if subscription is None:
        logger.warning("Stripe subscription %s has no local record", data["id"])
        return

    status = data.get("status") or subscription.status
    if event_type == "customer.subscription.deleted" or status == "canceled":
        subscription.plan_type = PlanType.free.value
        subscription.status = "canceled"
    else:
        items = (data.get("items") or {}).get("data") or []
        price_id = items[0]["price"]["id"] if items else None
        subscription.plan_type = _plan_for_price(price_id) or subscription.plan_type
        subscription.status = status

    subscription.current_period_start = _ts(data.get("current_period_start"))
    subscription.current_period_end = _ts(data.get("current_period_end"))


@router.post("/webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise HTTPException(status_code=500, detail="Stripe webhook not configured")

    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        event = stripe.Webhook.construct_event(
            payload, sig_header, settings.STRIPE_WEBHOOK_SECRET
        )
    except (ValueError, stripe.SignatureVerificationError):
        raise HTTPException(status_code=400, detail="Invalid signature")

    event_type = event["type"]
    data = event["data"]["object"]

    if event_type == "checkout.session.completed":
        _apply_checkout_completed(db, data)
    elif event_type in ("customer.subscription.updated", "customer.subscription.deleted"):
        _apply_subscription_change(db, event_type, data)
    else:
        logger.debug("Ignoring Stripe event %s", event_type)
        return {"status": "ignored"}

    db.commit()
    logger.info("Applied Stripe event %s", event_type)
    return {"status": "ok"}
