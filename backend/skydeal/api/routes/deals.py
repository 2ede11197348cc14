"""Deal endpoints: browsing active deals and triggering analysis."""

import logging
import math
from datetime import date
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from skydeal.api.deps import get_session_factory, verify_admin
from skydeal.core.config import settings
from skydeal.db.models.deal import Deal
from skydeal.db.models.flight import CabinClass, Flight
from skydeal.db.session import get_db
from skydeal.deals.detection import DealDetectionService
from skydeal.deals.repository import DealFilters, list_active_deals
from skydeal.schemas.deals import DealListOut, DealOut, JobAccepted, Pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/deals", tags=["deals"])


def _upper(value: str | None) -> str | None:
    return value.strip().upper() if value else None


@router.get("", response_model=DealListOut)
def list_deals(
    origin: str | None = None,
    destination: str | None = None,
    airline: str | None = None,
    cabin_class: CabinClass | None = None,
    min_discount: int | None = Query(default=None, ge=0, le=100),
    departure_date: date | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Active deals, best discount first."""
    filters = DealFilters(
        origin=_upper(origin),
        destination=_upper(destination),
        airline=_upper(airline),
        cabin_class=cabin_class.value if cabin_class else None,
        min_discount=min_discount,
        departure_date=departure_date,
    )
    deals, total = list_active_deals(db, filters, limit=limit, offset=(page - 1) * limit)
    return DealListOut(
        deals=[DealOut.model_validate(deal) for deal in deals],
        pagination=Pagination(total=total, page=page, limit=limit, pages=math.ceil(total / limit)),
    )


@router.get("/featured", response_model=list[DealOut])
def featured_deals(
    limit: int = Query(default=6, ge=1, le=50),
    db: Session = Depends(get_db),
):
    deals, _ = list_active_deals(db, DealFilters(featured=True), limit=limit)
    return [DealOut.model_validate(deal) for deal in deals]


@router.get("/{deal_id}", response_model=DealOut)
def get_deal(deal_id: UUID, db: Session = Depends(get_db)):
    deal = db.execute(
        select(Deal)
        .where(Deal.id == deal_id)
        .options(
            selectinload(Deal.flight).selectinload(Flight.origin_airport),
            selectinload(Deal.flight).selectinload(Flight.destination_airport),
            selectinload(Deal.flight).selectinload(Flight.airline_info),
        )
    ).scalar_one_or_none()
    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")
    return DealOut.model_validate(deal)


def run_flight_analysis(session_factory: sessionmaker, flight_id: UUID) -> None:
    try:
        with session_factory() as db:
            DealDetectionService(db).evaluate_flight(flight_id)
    except Exception:
        # response already sent
        logger.exception("Background analysis of flight %s failed", flight_id)


def run_recent_analysis(session_factory: sessionmaker) -> None:
    try:
        with session_factory() as db:
            DealDetectionService(db).analyze_recent_flights()
    except Exception:
        logger.exception("Background analysis of recent flights failed")


def run_reevaluation(session_factory: sessionmaker) -> None:
    try:
        with session_factory() as db:
            DealDetectionService(db).reevaluate_existing_deals()
    except Exception:
        logger.exception("Background re-evaluation of deals failed")


@router.post(
    "/analyze-recent",
    response_model=JobAccepted,
    status_code=202,
    dependencies=[Depends(verify_admin)],
)
def analyze_recent(
    background_tasks: BackgroundTasks,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    background_tasks.add_task(run_recent_analysis, session_factory)
    return JobAccepted(message="Analysis of recent flights started")


@router.post(
    "/reevaluate",
    response_model=JobAccepted,
    status_code=202,
    dependencies=[Depends(verify_admin)],
)
def reevaluate(
    background_tasks: BackgroundTasks,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    background_tasks.add_task(run_reevaluation, session_factory)
    return JobAccepted(message="Re-evaluation of existing deals started")


@router.post(
    "/{flight_id}/analyze",
    response_model=JobAccepted,
    status_code=202,
    dependencies=[Depends(verify_admin)],
)
def analyze_flight(
    flight_id: UUID,
    background_tasks: BackgroundTasks,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    background_tasks.add_task(run_flight_analysis, session_factory, flight_id)
    return JobAccepted(message=f"Analysis of flight {flight_id} started")
