"""Deal detection: evaluate flights against their price history."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from skydeal.core.config import settings
from skydeal.db.models.deal import Deal
from skydeal.db.models.flight import Flight
from skydeal.deals import repository
from skydeal.deals.evaluator import DealEvaluation, evaluate_deal
from skydeal.deals.price_history import get_price_window
from skydeal.deals.price_stats import calculate_price_statistics
from skydeal.notifications.matcher import notify_users_about_deal

logger = logging.getLogger(__name__)

# (db, deal_id) -> notifications created
Notifier = Callable[[Session, uuid.UUID], int]


@dataclass
class BatchSummary:
    processed: int = 0
    deals: int = 0
    failed: int = 0


class DealDetectionService:
    """
    Runs the statistics/evaluation pipeline for flights and keeps the deals
    table in step. The session is owned by the caller.
    """

    def __init__(self, db: Session, notifier: Notifier = notify_users_about_deal) -> None:
        self.db = db
        self.notifier = notifier

    def evaluate_flight(self, flight_id: uuid.UUID) -> DealEvaluation | None:
        """
        Evaluate one flight. Returns the evaluation when the flight is a deal,
        ``None`` when it is not or when the flight does not exist.

        A new deal triggers the user fan-out; refreshing an existing deal
        does not. A flight that stops qualifying keeps its deal until the
        expiry sweep removes it.
        """
        flight = self.db.get(Flight, flight_id)
        if flight is None:
            logger.error("Flight not found: %s", flight_id)
            return None

        history = get_price_window(
            self.db,
            origin=flight.origin,
            destination=flight.destination,
            airline=flight.airline,
            cabin_class=flight.cabin_class,
        )
        stats = calculate_price_statistics(history)
        if not stats.has_history:
            logger.info("No price history for flight %s, skipping", flight.id)
            return None

        evaluation = evaluate_deal(flight.price, stats)

        if not evaluation.is_deal:
            logger.debug(
                "Flight %s is not a deal (price=%s, average=%.2f)",
                flight.id,
                flight.price,
                stats.average_price,
            )
            return None

        deal, created = repository.upsert_deal(self.db, flight, evaluation)
        self.db.commit()

        if created:
            self._fan_out(deal.id)

        return evaluation

    def _fan_out(self, deal_id: uuid.UUID) -> None:
        try:
            created = self.notifier(self.db, deal_id)
            logger.info("Created %d notifications for deal %s", created, deal_id)
        except Exception:
            self.db.rollback()
            logger.exception("Error notifying users about deal %s", deal_id)

    def _evaluate_many(self, flight_ids: Iterable[uuid.UUID], label: str) -> BatchSummary:
        summary = BatchSummary()
        for flight_id in flight_ids:
            try:
                evaluation = self.evaluate_flight(flight_id)
            except Exception:
                # session is poisoned after a failed flush/execute
                self.db.rollback()
                summary.failed += 1
                logger.exception("Error analyzing flight %s", flight_id)
                continue

            summary.processed += 1
            if evaluation is not None:
                summary.deals += 1

        logger.info(
            "Completed %s: processed=%d deals=%d failed=%d",
            label,
            summary.processed,
            summary.deals,
            summary.failed,
        )
        return summary

    def analyze_recent_flights(self, now: datetime | None = None) -> BatchSummary:
        """Evaluate every flight scraped within the recent window."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=settings.RECENT_FLIGHT_HOURS)

        flight_ids = list(
            self.db.execute(
                select(Flight.id).where(Flight.created_at >= cutoff).order_by(Flight.created_at)
            ).scalars()
        )
        logger.info("Analyzing %d recent flights for deals", len(flight_ids))
        return self._evaluate_many(flight_ids, "analysis of recent flights")

    def reevaluate_existing_deals(self, now: datetime | None = None) -> BatchSummary:
        """Re-run evaluation for the flight behind every unexpired deal."""
        now = now or datetime.now(timezone.utc)

        flight_ids = list(
            self.db.execute(select(Deal.flight_id).where(Deal.expires_at > now)).scalars()
        )
        logger.info("Re-evaluating %d existing deals", len(flight_ids))
        return self._evaluate_many(flight_ids, "re-evaluation of existing deals")

    def purge_expired_deals(self, now: datetime | None = None) -> int:
        return repository.purge_expired_deals(self.db, now=now)
