"""Deal database model."""
import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Enum, Float, ForeignKey, Integer, TIMESTAMP, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skydeal.db.base import Base


class DealQuality(str, enum.Enum):
    """Deal tier, lowest first."""

    good = "good"
    great = "great"
    amazing = "amazing"


class Deal(Base):
    """A flight priced far enough below its baseline to notify users."""

    __tablename__ = "deals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # One deal per flight; the upsert relies on this constraint
    flight_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("flights.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    regular_price: Mapped[float] = mapped_column(Float, nullable=False)
    discount_percentage: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    deal_quality: Mapped[DealQuality] = mapped_column(
        Enum(DealQuality, name="deal_quality"),
        nullable=False,
    )
    featured: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false"), index=True
    )
    expires_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, index=True
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

    flight: Mapped["Flight"] = relationship("Flight", back_populates="deal")

    notifications: Mapped[list["Notification"]] = relationship(
        "Notification",
        back_populates="deal",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation of Deal."""
        return (
            f"<Deal(id={self.id}, flight_id={self.flight_id}, "
            f"discount_percentage={self.discount_percentage}, "
            f"deal_quality={self.deal_quality}, expires_at={self.expires_at})>"
        )
