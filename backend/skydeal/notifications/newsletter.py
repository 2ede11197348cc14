"""Weekly digest of the best matching deals."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from skydeal.core.config import settings
from skydeal.db.models.deal import Deal
from skydeal.db.models.subscription import NOTIFIABLE_STATUSES, Subscription
from skydeal.db.models.user import User
from skydeal.db.models.user_preference import NotificationFrequency, UserPreference
from skydeal.deals.repository import active_deals_query
from skydeal.notifications.email_sender import MailTransport, default_transport
from skydeal.notifications.matcher import preference_matches_deal
from skydeal.notifications.templates import render_weekly_digest

logger = logging.getLogger(__name__)


def weekly_subscribers(db: Session) -> list[tuple[User, UserPreference]]:
    stmt = (
        select(User, UserPreference)
        .join(UserPreference, UserPreference.user_id == User.id)
        .join(Subscription, Subscription.user_id == User.id)
        .where(
            User.email_verified.is_(True),
            Subscription.status.in_(NOTIFIABLE_STATUSES),
            UserPreference.notification_frequency == NotificationFrequency.weekly.value,
        )
        .order_by(User.created_at)
    )
    return [(user, pref) for user, pref in db.execute(stmt).all()]


def select_digest_deals(pref: UserPreference, deals: list[Deal], limit: int) -> list[Deal]:
    # deals arrive best discount first
    picked = [deal for deal in deals if preference_matches_deal(pref, deal)]
    return picked[:limit]


def send_weekly_newsletter(db: Session, transport: MailTransport | None = None) -> int:
    """Send one digest per weekly subscriber. Returns the number sent."""
    transport = transport or default_transport()
    subscribers = weekly_subscribers(db)
    deals = list(db.execute(active_deals_query()).scalars().all())
    logger.info(
        "Sending weekly newsletter: %d subscribers, %d active deals",
        len(subscribers),
        len(deals),
    )

    sent = 0
    for user, pref in subscribers:
        try:
            picked = select_digest_deals(pref, deals, settings.WEEKLY_DIGEST_MAX_DEALS)
            if not picked:
                logger.debug("No matching deals for %s", user.email)
                continue
            transport.send(render_weekly_digest(user, picked))
            sent += 1
        except Exception:
            logger.exception("Error sending weekly newsletter to user %s", user.id)
            continue

    logger.info("Sent weekly newsletter to %d users", sent)
    return sent
