"""Pydantic schemas for user profile and deal preferences."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from skydeal.db.models.user_preference import (
    AirlinePreference,
    DestinationPreference,
    NotificationFrequency,
    TravelClass,
)


def _iata_codes(v: list[str]) -> list[str]:
    for code in v:
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"IATA code must be exactly 3 alphabetic characters: {code}")
    return [code.upper() for code in v]


class PreferencesIn(BaseModel):
    """Full replacement of a user's preferences."""

    origin_airports: list[str] = Field(default_factory=list, description="Empty means any origin")
    destination_preference: DestinationPreference = DestinationPreference.all
    specific_destinations: list[str] = Field(default_factory=list)
    airline_preference: AirlinePreference = AirlinePreference.all
    airlines: list[str] = Field(default_factory=list)
    travel_class: TravelClass = TravelClass.economy
    premium_economy: bool = False
    business: bool = False
    first: bool = False
    min_discount: int = Field(default=20, ge=0, le=100)
    notification_frequency: NotificationFrequency = NotificationFrequency.daily

    @field_validator("origin_airports", "specific_destinations")
    @classmethod
    def validate_iata_codes(cls, v: list[str]) -> list[str]:
        return _iata_codes(v)

    @field_validator("airlines")
    @classmethod
    def validate_airlines(cls, v: list[str]) -> list[str]:
        return [code.strip().upper() for code in v if code.strip()]

    @model_validator(mode="after")
    def validate_lists(self) -> "PreferencesIn":
        if self.destination_preference == DestinationPreference.specific and not self.specific_destinations:
            raise ValueError("specific_destinations is required when destination_preference is specific")
        if self.airline_preference != AirlinePreference.all and not self.airlines:
            raise ValueError("airlines is required when airline_preference is specific or exclude")
        if self.travel_class == TravelClass.premium and not (
            self.premium_economy or self.business or self.first
        ):
            raise ValueError("premium travel_class needs at least one premium cabin selected")
        return self

    @property
    def needs_premium(self) -> bool:
        return (
            self.destination_preference == DestinationPreference.specific
            or self.airline_preference != AirlinePreference.all
            or self.travel_class == TravelClass.premium
            or self.premium_economy
            or self.business
            or self.first
        )

    @property
    def needs_premium_plus(self) -> bool:
        return self.business or self.first


class PreferencesOut(BaseModel):
    user_id: UUID
    origin_airports: list[str]
    destination_preference: DestinationPreference
    specific_destinations: list[str]
    airline_preference: AirlinePreference
    airlines: list[str]
    travel_class: TravelClass
    premium_economy: bool
    business: bool
    first: bool
    min_discount: int
    notification_frequency: NotificationFrequency
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileOut(BaseModel):
    id: UUID
    email: str
    first_name: str | None
    last_name: str | None
    email_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
