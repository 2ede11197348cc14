"""Append-only price history and scraper ingestion."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from skydeal.core.config import settings
from skydeal.db.models.flight import Flight
from skydeal.db.models.price_observation import PriceObservation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrapedFlight:
    """Normalized record handed over by a scraper."""

    origin: str
    destination: str
    airline: str
    cabin_class: str
    price: float
    currency: str
    departure_time: datetime
    arrival_time: datetime
    duration_minutes: int
    booking_url: str | None = None
    observed_at: datetime | None = None


def record_observation(
    db: Session,
    origin: str,
    destination: str,
    airline: str,
    cabin_class: str,
    price: float,
    currency: str = "USD",
    observed_at: datetime | None = None,
) -> PriceObservation:
    """Append one observation. Rows are never updated afterwards."""
    observation = PriceObservation(
        origin=origin,
        destination=destination,
        airline=airline,
        cabin_class=cabin_class,
        price=price,
        currency=currency,
        observed_at=observed_at or datetime.now(timezone.utc),
    )
    db.add(observation)
    db.flush()
    return observation


def get_price_window(
    db: Session,
    origin: str,
    destination: str,
    airline: str,
    cabin_class: str,
    days: int | None = None,
    now: datetime | None = None,
) -> list[PriceObservation]:
    """Observations for one route/airline/cabin in the trailing window, oldest first."""
    days = settings.PRICE_HISTORY_WINDOW_DAYS if days is None else days
    since = (now or datetime.now(timezone.utc)) - timedelta(days=days)

    stmt = (
        select(PriceObservation)
        .where(
            PriceObservation.origin == origin,
            PriceObservation.destination == destination,
            PriceObservation.airline == airline,
            PriceObservation.cabin_class == cabin_class,
            PriceObservation.observed_at >= since,
        )
        .order_by(PriceObservation.observed_at.asc(), PriceObservation.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def ingest_scraped_flight(db: Session, scraped: ScrapedFlight) -> Flight:
    """
    Upsert the flight by route, airline, cabin and departure time, then
    record the price in history. Commits.
    """
    existing = db.execute(
        select(Flight).where(
            Flight.origin == scraped.origin,
            Flight.destination == scraped.destination,
            Flight.airline == scraped.airline,
            Flight.cabin_class == scraped.cabin_class,
            Flight.departure_time == scraped.departure_time,
        )
    ).scalar_one_or_none()

    if existing:
        if existing.price != scraped.price:
            logger.info(
                "Price change for flight %s: %s -> %s", existing.id, existing.price, scraped.price
            )
            existing.price = scraped.price
        existing.arrival_time = scraped.arrival_time
        existing.duration_minutes = scraped.duration_minutes
        if scraped.booking_url:
            existing.booking_url = scraped.booking_url
        flight = existing
    else:
        flight = Flight(
            origin=scraped.origin,
            destination=scraped.destination,
            airline=scraped.airline,
            cabin_class=scraped.cabin_class,
            price=scraped.price,
            currency=scraped.currency,
            departure_time=scraped.departure_time,
            arrival_time=scraped.arrival_time,
            duration_minutes=scraped.duration_minutes,
            booking_url=scraped.booking_url,
        )
        db.add(flight)

    # Always record price history on every scrape
    record_observation(
        db,
        origin=scraped.origin,
        destination=scraped.destination,
        airline=scraped.airline,
        cabin_class=scraped.cabin_class,
        price=scraped.price,
        currency=scraped.currency,
        observed_at=scraped.observed_at,
    )
    db.commit()
    db.refresh(flight)
    return flight
