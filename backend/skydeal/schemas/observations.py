"""Pydantic schemas for scraper price ingestion."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from skydeal.db.models.flight import CabinClass


class ObservationIn(BaseModel):
    """One scraped flight and its current price."""

    origin: str = Field(description="IATA airport code")
    destination: str = Field(description="IATA airport code")
    airline: str = Field(min_length=2, max_length=3, description="IATA/ICAO airline code")
    cabin_class: CabinClass = CabinClass.economy
    price: float = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    departure_time: datetime
    arrival_time: datetime
    duration_minutes: int = Field(ge=0)
    booking_url: str | None = None
    observed_at: datetime | None = None

    @field_validator("origin", "destination")
    @classmethod
    def validate_iata_code(cls, v: str) -> str:
        """Validate IATA codes are exactly 3 characters."""
        if len(v) != 3 or not v.isalpha():
            raise ValueError(f"IATA code must be exactly 3 alphabetic characters: {v}")
        return v.upper()

    @field_validator("airline", "currency")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_times(self) -> "ObservationIn":
        if self.arrival_time < self.departure_time:
            raise ValueError("arrival_time must not be before departure_time")
        return self


class ObservationOut(BaseModel):
    flight_id: UUID
    price: float
