"""Shared pytest fixtures: in-memory database, factories, fake mail transports."""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEV_API_TOKEN", "test-token")
os.environ.setdefault("ADMIN_TOKEN", "admin-token")
os.environ["ENABLE_EMAIL_NOTIFICATIONS"] = "false"

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from skydeal.api.deps import get_session_factory
from skydeal.db.base import Base
from skydeal.db.models.airline import Airline
from skydeal.db.models.airport import Airport
from skydeal.db.models.flight import Flight
from skydeal.db.models.price_observation import PriceObservation
from skydeal.db.models.subscription import Subscription
from skydeal.db.models.user import User
from skydeal.db.models.user_preference import UserPreference
from skydeal.db.session import get_db
from skydeal.notifications.email_sender import EmailSendError, OutgoingEmail

USER_TOKEN = "test-token"
ADMIN_TOKEN = "admin-token"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory) -> Generator[TestClient, None, None]:
    from skydeal.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {USER_TOKEN}", "X-User-Id": str(user.id)}


def admin_headers() -> dict:
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def reference_data(db):
    db.add_all(
        [
            Airport(code="JFK", name="John F. Kennedy International", city="New York", country="USA"),
            Airport(code="LHR", name="Heathrow", city="London", country="UK"),
            Airline(code="BA", name="British Airways"),
        ]
    )
    db.commit()


@pytest.fixture
def make_user(db):
    """Create a user with a subscription and preferences."""
    counter = {"n": 0}

    def _make(
        plan_type: str = "premium",
        status: str | None = "active",
        email_verified: bool = True,
        with_preferences: bool = True,
        **preferences,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@example.com",
            first_name=f"User{counter['n']}",
            email_verified=email_verified,
        )
        db.add(user)
        db.flush()

        if status is not None:
            db.add(Subscription(user_id=user.id, plan_type=plan_type, status=status))

        if with_preferences:
            values = {
                "origin_airports": [],
                "destination_preference": "all",
                "specific_destinations": [],
                "airline_preference": "all",
                "airlines": [],
                "travel_class": "economy",
                "premium_economy": False,
                "business": False,
                "first": False,
                "min_discount": 20,
                "notification_frequency": "daily",
            }
            values.update(preferences)
            db.add(UserPreference(user_id=user.id, **values))

        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_flight(db, now):
    def _make(
        origin: str = "JFK",
        destination: str = "LHR",
        airline: str = "BA",
        cabin_class: str = "economy",
        price: float = 300.0,
        created_at: datetime | None = None,
        departure_time: datetime | None = None,
    ) -> Flight:
        departure = departure_time or now + timedelta(days=30)
        flight = Flight(
            origin=origin,
            destination=destination,
            airline=airline,
            cabin_class=cabin_class,
            price=price,
            currency="USD",
            departure_time=departure,
            arrival_time=departure + timedelta(hours=7, minutes=15),
            duration_minutes=435,
            booking_url="https://book.example.com/ba117",
        )
        if created_at is not None:
            flight.created_at = created_at
        db.add(flight)
        db.commit()
        db.refresh(flight)
        return flight

    return _make


@pytest.fixture
def add_history(db, now):
    """Record one observation per price, one day apart, ending yesterday."""

    def _add(flight: Flight, prices: list[float]) -> None:
        for days_ago, price in enumerate(reversed(prices), start=1):
            db.add(
                PriceObservation(
                    origin=flight.origin,
                    destination=flight.destination,
                    airline=flight.airline,
                    cabin_class=flight.cabin_class,
                    price=price,
                    currency="USD",
                    observed_at=now - timedelta(days=days_ago),
                )
            )
        db.commit()

    return _add


class RecordingTransport:
    """Mail transport that keeps messages in memory."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.sent: list[OutgoingEmail] = []
        self.fail_for = fail_for or set()

    def send(self, message: OutgoingEmail) -> None:
        if message.to_email in self.fail_for:
            raise EmailSendError(f"mailbox unavailable: {message.to_email}")
        self.sent.append(message)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()
