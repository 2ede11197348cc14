"""UserPreference database model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, TIMESTAMP, Boolean, ForeignKey, Integer, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skydeal.db.base import Base


class DestinationPreference(str, enum.Enum):
    all = "all"
    specific = "specific"


class AirlinePreference(str, enum.Enum):
    all = "all"
    specific = "specific"
    exclude = "exclude"


class TravelClass(str, enum.Enum):
    economy = "economy"
    premium = "premium"


class NotificationFrequency(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"


class UserPreference(Base):
    """What deals a user wants to hear about. One row per user."""

    __tablename__ = "user_preferences"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Empty list means any origin
    origin_airports: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    destination_preference: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=DestinationPreference.all.value
    )
    specific_destinations: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    airline_preference: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=AirlinePreference.all.value
    )
    airlines: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    travel_class: Mapped[str] = mapped_column(Text, nullable=False, server_default=TravelClass.economy.value)
    premium_economy: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    business: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    first: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))

    min_discount: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("20"))
    notification_frequency: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=NotificationFrequency.daily.value
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user: Mapped["User"] = relationship("User", back_populates="preferences")

    def __repr__(self) -> str:
        return (
            f"<UserPreference(user_id={self.user_id}, "
            f"destination_preference={self.destination_preference}, "
            f"airline_preference={self.airline_preference}, "
            f"travel_class={self.travel_class}, min_discount={self.min_discount})>"
        )
