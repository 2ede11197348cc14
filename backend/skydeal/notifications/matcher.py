"""Match a deal against user preferences and enqueue notifications."""
from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from skydeal.core.errors import PreferenceValidationError
from skydeal.db.models.deal import Deal
from skydeal.db.models.flight import CabinClass, Flight
from skydeal.db.models.notification import Notification, NotificationStatus
from skydeal.db.models.subscription import NOTIFIABLE_STATUSES, Subscription
from skydeal.db.models.user import User
from skydeal.db.models.user_preference import (
    AirlinePreference,
    DestinationPreference,
    TravelClass,
    UserPreference,
)
from skydeal.db.upsert import dialect_insert

logger = logging.getLogger(__name__)

Rule = Callable[[UserPreference, Flight], bool]


def _coerce(enum_cls: type[enum.Enum], value: str, field: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise PreferenceValidationError(f"invalid {field}: {value!r}") from e


# premium flag on the preference -> cabin it covers
PREMIUM_CABIN_FLAGS = {
    CabinClass.premium_economy.value: "premium_economy",
    CabinClass.business.value: "business",
    CabinClass.first.value: "first",
}


def _premium_cabin(pref: UserPreference, flight: Flight) -> bool:
    flag = PREMIUM_CABIN_FLAGS.get(flight.cabin_class)
    return flag is not None and bool(getattr(pref, flag))


DESTINATION_RULES: dict[DestinationPreference, Rule] = {
    DestinationPreference.all: lambda pref, flight: True,
    DestinationPreference.specific: (
        lambda pref, flight: flight.destination in (pref.specific_destinations or [])
    ),
}

AIRLINE_RULES: dict[AirlinePreference, Rule] = {
    AirlinePreference.all: lambda pref, flight: True,
    AirlinePreference.specific: lambda pref, flight: flight.airline in (pref.airlines or []),
    AirlinePreference.exclude: lambda pref, flight: flight.airline not in (pref.airlines or []),
}

CABIN_RULES: dict[TravelClass, Rule] = {
    TravelClass.economy: lambda pref, flight: flight.cabin_class == CabinClass.economy.value,
    TravelClass.premium: _premium_cabin,
}


def matches_destination(pref: UserPreference, flight: Flight) -> bool:
    mode = _coerce(DestinationPreference, pref.destination_preference, "destination_preference")
    return DESTINATION_RULES[mode](pref, flight)


def matches_origin(pref: UserPreference, flight: Flight) -> bool:
    # An empty list means any origin
    return not pref.origin_airports or flight.origin in pref.origin_airports


def matches_airline(pref: UserPreference, flight: Flight) -> bool:
    mode = _coerce(AirlinePreference, pref.airline_preference, "airline_preference")
    return AIRLINE_RULES[mode](pref, flight)


def matches_cabin(pref: UserPreference, flight: Flight) -> bool:
    mode = _coerce(TravelClass, pref.travel_class, "travel_class")
    return CABIN_RULES[mode](pref, flight)


def matches_discount(pref: UserPreference, deal: Deal) -> bool:
    return deal.discount_percentage >= pref.min_discount


def preference_matches_deal(pref: UserPreference, deal: Deal, flight: Flight | None = None) -> bool:
    """True when every preference rule accepts *deal*."""
    flight = flight or deal.flight
    return (
        matches_destination(pref, flight)
        and matches_origin(pref, flight)
        and matches_airline(pref, flight)
        and matches_cabin(pref, flight)
        and matches_discount(pref, deal)
    )


def notifiable_candidates(db: Session) -> list[tuple[User, UserPreference]]:
    """Users with an active or trialing subscription, with their preferences."""
    stmt = (
        select(User, UserPreference)
        .join(UserPreference, UserPreference.user_id == User.id)
        .join(Subscription, Subscription.user_id == User.id)
        .where(Subscription.status.in_(NOTIFIABLE_STATUSES))
        .order_by(User.created_at)
    )
    return [(user, pref) for user, pref in db.execute(stmt).all()]


def enqueue_notification(db: Session, user_id: uuid.UUID, deal_id: uuid.UUID) -> bool:
    """
    Insert a pending notification unless one already exists for the pair.
    Returns True when a row was created.
    """
    stmt = (
        dialect_insert(db, Notification)
        .values(user_id=user_id, deal_id=deal_id, status=NotificationStatus.pending.value)
        .on_conflict_do_nothing(index_elements=["user_id", "deal_id"])
        .returning(Notification.id)
    )
    return db.execute(stmt).scalar_one_or_none() is not None


def notify_users_about_deal(db: Session, deal_id: uuid.UUID) -> int:
    """
    Fan a deal out to every matching user. Safe to call repeatedly for the
    same deal: existing (user, deal) notifications are left alone.

    Each user runs in its own savepoint so a failure only skips that user.
    Returns the number of notifications created. Commits.
    """
    deal = db.get(Deal, deal_id)
    if deal is None:
        logger.error("Deal not found: %s", deal_id)
        return 0

    flight = deal.flight
    candidates = notifiable_candidates(db)

    matched = 0
    created = 0
    for user, pref in candidates:
        try:
            if not preference_matches_deal(pref, deal, flight):
                continue
            matched += 1
            with db.begin_nested():
                if enqueue_notification(db, user.id, deal.id):
                    created += 1
        except Exception:
            logger.exception("Error creating notification for user %s, deal %s", user.id, deal.id)
            continue

    db.commit()
    logger.info(
        "Found %d users to notify about deal %s (%d candidates, %d new notifications)",
        matched,
        deal.id,
        len(candidates),
        created,
    )
    return created
