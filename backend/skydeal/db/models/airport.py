"""Airport reference data."""
from sqlalchemy import Boolean, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from skydeal.db.base import Base


class Airport(Base):
    """IATA airport used to render route names."""

    __tablename__ = "airports"

    code: Mapped[str] = mapped_column(Text, primary_key=True)  # e.g. "JFK"
    name: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    country: Mapped[str] = mapped_column(Text, nullable=False)
    popular: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))

    def __repr__(self) -> str:
        return f"<Airport(code={self.code}, city={self.city})>"
