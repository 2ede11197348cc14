"""Database base classes and models."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# Import models so Alembic can autogenerate migrations
import skydeal.db.models.airport  # noqa: F401
import skydeal.db.models.airline  # noqa: F401
import skydeal.db.models.user  # noqa: F401
import skydeal.db.models.subscription  # noqa: F401
import skydeal.db.models.user_preference  # noqa: F401
import skydeal.db.models.flight  # noqa: F401
import skydeal.db.models.price_observation  # noqa: F401
import skydeal.db.models.deal  # noqa: F401
import skydeal.db.models.notification  # noqa: F401
