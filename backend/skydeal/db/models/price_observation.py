"""PriceObservation database model."""
import uuid
from datetime import datetime

from sqlalchemy import Float, Index, Text, TIMESTAMP, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from skydeal.db.base import Base


class PriceObservation(Base):
    """One scraped price for a route/airline/cabin. Append-only."""

    __tablename__ = "price_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    origin: Mapped[str] = mapped_column(Text, nullable=False)
    destination: Mapped[str] = mapped_column(Text, nullable=False)
    airline: Mapped[str] = mapped_column(Text, nullable=False)
    cabin_class: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(Text, nullable=False, server_default="USD")
    observed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index(
            "ix_price_history_route_observed",
            "origin",
            "destination",
            "airline",
            "cabin_class",
            "observed_at",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<PriceObservation({self.origin}->{self.destination} {self.airline} "
            f"{self.cabin_class} price={self.price} observed_at={self.observed_at})>"
        )
