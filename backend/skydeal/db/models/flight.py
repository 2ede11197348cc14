"""Flight database model."""
import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Float, Integer, Text, TIMESTAMP, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skydeal.db.base import Base


class CabinClass(str, enum.Enum):
    economy = "economy"
    premium_economy = "premium_economy"
    business = "business"
    first = "first"


class Flight(Base):
    """A scraped flight with its latest known price."""

    __tablename__ = "flights"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    origin: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    destination: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    airline: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    cabin_class: Mapped[str] = mapped_column(Text, nullable=False, server_default=CabinClass.economy.value)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(Text, nullable=False, server_default="USD")
    departure_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, index=True)
    arrival_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    booking_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Reference rows are optional, so these joins carry no foreign key
    origin_airport: Mapped[Optional["Airport"]] = relationship(
        "Airport", primaryjoin="foreign(Flight.origin) == Airport.code", viewonly=True
    )
    destination_airport: Mapped[Optional["Airport"]] = relationship(
        "Airport", primaryjoin="foreign(Flight.destination) == Airport.code", viewonly=True
    )
    airline_info: Mapped[Optional["Airline"]] = relationship(
        "Airline", primaryjoin="foreign(Flight.airline) == Airline.code", viewonly=True
    )
    deal: Mapped[Optional["Deal"]] = relationship(
        "Deal",
        back_populates="flight",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation of Flight."""
        return (
            f"<Flight(id={self.id}, origin={self.origin}, "
            f"destination={self.destination}, airline={self.airline}, "
            f"cabin_class={self.cabin_class}, price={self.price})>"
        )
