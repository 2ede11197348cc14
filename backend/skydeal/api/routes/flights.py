"""Price ingestion endpoint used by the scraper."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skydeal.api.deps import verify_admin
from skydeal.core.config import settings
from skydeal.db.session import get_db
from skydeal.deals.price_history import ScrapedFlight, ingest_scraped_flight
from skydeal.schemas.observations import ObservationIn, ObservationOut

router = APIRouter(
    prefix=f"{settings.API_V1_PREFIX}/flights",
    tags=["flights"],
    dependencies=[Depends(verify_admin)],
)


@router.post("/observations", response_model=ObservationOut, status_code=201)
def create_observation(payload: ObservationIn, db: Session = Depends(get_db)):
    """Record a scraped price and upsert its flight."""
    flight = ingest_scraped_flight(
        db,
        ScrapedFlight(
            origin=payload.origin,
            destination=payload.destination,
            airline=payload.airline,
            cabin_class=payload.cabin_class.value,
            price=payload.price,
            currency=payload.currency,
            departure_time=payload.departure_time,
            arrival_time=payload.arrival_time,
            duration_minutes=payload.duration_minutes,
            booking_url=payload.booking_url,
            observed_at=payload.observed_at,
        ),
    )
    return ObservationOut(flight_id=flight.id, price=flight.price)
