"""Deal persistence: atomic upsert per flight, queries, expiry sweep."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import Select, delete, func, select
from sqlalchemy.orm import Session, selectinload

from skydeal.core.config import settings
from skydeal.core.errors import InvariantViolation
from skydeal.db.models.deal import Deal
from skydeal.db.models.flight import Flight
from skydeal.db.upsert import dialect_insert
from skydeal.deals.evaluator import DealEvaluation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DealFilters:
    origin: str | None = None
    destination: str | None = None
    airline: str | None = None
    cabin_class: str | None = None
    min_discount: int | None = None
    featured: bool | None = None
    departure_date: date | None = None


def get_deal_by_flight(db: Session, flight_id: uuid.UUID) -> Deal | None:
    return db.execute(select(Deal).where(Deal.flight_id == flight_id)).scalar_one_or_none()


def upsert_deal(
    db: Session,
    flight: Flight,
    evaluation: DealEvaluation,
    now: datetime | None = None,
) -> tuple[Deal, bool]:
    """
    Create or refresh the deal for *flight*. Returns ``(deal, created)``.

    The insert is ``ON CONFLICT (flight_id) DO NOTHING`` so two concurrent
    evaluations of one flight cannot produce two rows; only the one whose
    insert lands reports ``created=True``. Does not commit.
    """
    now = now or datetime.now(timezone.utc)
    expires_at = now + timedelta(days=settings.DEAL_EXPIRY_DAYS)
    regular_price = evaluation.compared_to_average

    stmt = (
        dialect_insert(db, Deal)
        .values(
            flight_id=flight.id,
            regular_price=regular_price,
            discount_percentage=evaluation.discount_percentage,
            deal_quality=evaluation.deal_quality,
            featured=evaluation.featured,
            expires_at=expires_at,
        )
        .on_conflict_do_nothing(index_elements=["flight_id"])
        .returning(Deal.id)
    )
    inserted_id = db.execute(stmt).scalar_one_or_none()

    if inserted_id is not None:
        deal = db.get(Deal, inserted_id)
        logger.info(
            "Created new deal %s for flight %s with %s%% discount",
            inserted_id,
            flight.id,
            evaluation.discount_percentage,
        )
        return deal, True

    deal = get_deal_by_flight(db, flight.id)
    if deal is None:
        raise InvariantViolation(f"Deal insert for flight {flight.id} conflicted but no row exists")

    deal.regular_price = regular_price
    deal.discount_percentage = evaluation.discount_percentage
    deal.deal_quality = evaluation.deal_quality
    deal.featured = evaluation.featured
    deal.expires_at = expires_at
    db.flush()

    logger.info(
        "Updated deal %s for flight %s with %s%% discount",
        deal.id,
        flight.id,
        evaluation.discount_percentage,
    )
    return deal, False


def active_deals_query(filters: DealFilters | None = None, now: datetime | None = None) -> Select:
    """Unexpired deals with their flight, best discount first."""
    filters = filters or DealFilters()
    now = now or datetime.now(timezone.utc)

    stmt = (
        select(Deal)
        .join(Deal.flight)
        .where(Deal.expires_at > now)
        .options(
            selectinload(Deal.flight).selectinload(Flight.origin_airport),
            selectinload(Deal.flight).selectinload(Flight.destination_airport),
            selectinload(Deal.flight).selectinload(Flight.airline_info),
        )
    )
    if filters.origin:
        stmt = stmt.where(Flight.origin == filters.origin)
    if filters.destination:
        stmt = stmt.where(Flight.destination == filters.destination)
    if filters.airline:
        stmt = stmt.where(Flight.airline == filters.airline)
    if filters.cabin_class:
        stmt = stmt.where(Flight.cabin_class == filters.cabin_class)
    if filters.min_discount is not None:
        stmt = stmt.where(Deal.discount_percentage >= filters.min_discount)
    if filters.featured is not None:
        stmt = stmt.where(Deal.featured == filters.featured)
    if filters.departure_date is not None:
        # whole UTC day
        day_start = datetime.combine(filters.departure_date, datetime.min.time(), tzinfo=timezone.utc)
        stmt = stmt.where(
            Flight.departure_time >= day_start,
            Flight.departure_time < day_start + timedelta(days=1),
        )

    return stmt.order_by(Deal.discount_percentage.desc(), Deal.created_at.desc())


def list_active_deals(
    db: Session,
    filters: DealFilters | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Deal], int]:
    """A page of active deals plus the total count."""
    stmt = active_deals_query(filters)
    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
    deals = db.execute(stmt.limit(limit).offset(offset)).scalars().all()
    return list(deals), total


def purge_expired_deals(db: Session, now: datetime | None = None) -> int:
    """Delete deals whose expiry has passed. Notifications cascade. Commits."""
    now = now or datetime.now(timezone.utc)
    result = db.execute(
        delete(Deal)
        .where(Deal.expires_at < now)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    removed = result.rowcount or 0
    if removed:
        logger.info("Deleted %d expired deals", removed)
    return removed
