"""Airline reference data."""
from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from skydeal.db.base import Base


class Airline(Base):
    __tablename__ = "airlines"

    code: Mapped[str] = mapped_column(Text, primary_key=True)  # e.g. "DL"
    name: Mapped[str] = mapped_column(Text, nullable=False)
    logo: Mapped[str | None] = mapped_column(Text, nullable=True)
