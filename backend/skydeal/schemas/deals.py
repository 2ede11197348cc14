"""Pydantic schemas for Deal, Flight and their reference data."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from skydeal.db.models.deal import DealQuality


class AirportOut(BaseModel):
    code: str
    name: str
    city: str
    country: str

    model_config = {"from_attributes": True}


class AirlineOut(BaseModel):
    code: str
    name: str
    logo: str | None = None

    model_config = {"from_attributes": True}


class FlightOut(BaseModel):
    """Flight as embedded in a deal."""

    id: UUID
    origin: str
    destination: str
    airline: str
    cabin_class: str
    price: float
    currency: str
    departure_time: datetime
    arrival_time: datetime
    duration_minutes: int
    booking_url: str | None
    origin_airport: AirportOut | None = None
    destination_airport: AirportOut | None = None
    airline_info: AirlineOut | None = None

    model_config = {"from_attributes": True}


class DealOut(BaseModel):
    """Schema for Deal response."""

    id: UUID
    flight_id: UUID
    regular_price: float
    discount_percentage: int
    deal_quality: DealQuality
    featured: bool
    expires_at: datetime
    created_at: datetime
    flight: FlightOut

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class DealListOut(BaseModel):
    deals: list[DealOut]
    pagination: Pagination


class JobAccepted(BaseModel):
    """Returned with 202 when work was handed to a background task."""

    message: str
