"""Tests for preference matching and notification fan-out."""

import uuid

import pytest
from sqlalchemy import func, select

from skydeal.core.errors import PreferenceValidationError
from skydeal.db.models.deal import Deal, DealQuality
from skydeal.db.models.flight import Flight
from skydeal.db.models.notification import Notification
from skydeal.db.models.user_preference import UserPreference
from skydeal.deals.detection import DealDetectionService
from skydeal.deals.repository import get_deal_by_flight
from skydeal.notifications.matcher import (
    enqueue_notification,
    notify_users_about_deal,
    preference_matches_deal,
)


def _pref(**overrides) -> UserPreference:
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
    values.update(overrides)
    return UserPreference(**values)


def _deal(cabin_class="economy", origin="JFK", destination="LHR", airline="BA", discount=30):
    flight = Flight(
        origin=origin,
        destination=destination,
        airline=airline,
        cabin_class=cabin_class,
        price=350.0,
    )
    return Deal(
        flight=flight,
        regular_price=500.0,
        discount_percentage=discount,
        deal_quality=DealQuality.great,
    )


def test_economy_catch_all_user():
    pref = _pref()
    assert preference_matches_deal(pref, _deal())
    assert not preference_matches_deal(pref, _deal(cabin_class="business"))
    assert not preference_matches_deal(pref, _deal(cabin_class="premium_economy"))


def test_premium_business_only_user():
    pref = _pref(travel_class="premium", business=True)
    assert preference_matches_deal(pref, _deal(cabin_class="business"))
    assert not preference_matches_deal(pref, _deal(cabin_class="economy"))
    assert not preference_matches_deal(pref, _deal(cabin_class="first"))
    assert not preference_matches_deal(pref, _deal(cabin_class="premium_economy"))


def test_premium_flags_map_to_their_cabins():
    pref = _pref(travel_class="premium", premium_economy=True, first=True)
    assert preference_matches_deal(pref, _deal(cabin_class="premium_economy"))
    assert preference_matches_deal(pref, _deal(cabin_class="first"))
    assert not preference_matches_deal(pref, _deal(cabin_class="business"))


def test_specific_destinations():
    pref = _pref(destination_preference="specific", specific_destinations=["LHR", "CDG"])
    assert preference_matches_deal(pref, _deal(destination="CDG"))
    assert not preference_matches_deal(pref, _deal(destination="FCO"))


def test_origin_list_empty_means_any():
    assert preference_matches_deal(_pref(origin_airports=[]), _deal(origin="BOS"))
    pref = _pref(origin_airports=["JFK", "EWR"])
    assert preference_matches_deal(pref, _deal(origin="EWR"))
    assert not preference_matches_deal(pref, _deal(origin="BOS"))


def test_airline_specific_and_exclude():
    specific = _pref(airline_preference="specific", airlines=["BA"])
    assert preference_matches_deal(specific, _deal(airline="BA"))
    assert not preference_matches_deal(specific, _deal(airline="AA"))

    exclude = _pref(airline_preference="exclude", airlines=["BA"])
    assert not preference_matches_deal(exclude, _deal(airline="BA"))
    assert preference_matches_deal(exclude, _deal(airline="AA"))


def test_min_discount_is_inclusive():
    pref = _pref(min_discount=30)
    assert preference_matches_deal(pref, _deal(discount=30))
    assert not preference_matches_deal(pref, _deal(discount=29))


def test_unknown_enum_value_is_rejected():
    with pytest.raises(PreferenceValidationError):
        preference_matches_deal(_pref(travel_class="luxury"), _deal())
    with pytest.raises(PreferenceValidationError):
        preference_matches_deal(_pref(airline_preference="some"), _deal())


@pytest.fixture
def stored_deal(db, make_flight, add_history):
    flight = make_flight(price=300.0)
    add_history(flight, [500.0] * 10)
    DealDetectionService(db, notifier=lambda db, deal_id: 0).evaluate_flight(flight.id)
    return get_deal_by_flight(db, flight.id)


def _notification_count(db) -> int:
    return db.execute(select(func.count()).select_from(Notification)).scalar_one()


def test_fan_out_only_reaches_notifiable_users(db, stored_deal, make_user):
    make_user(status="active")
    make_user(status="trialing")
    make_user(status="canceled")
    make_user(status=None)
    make_user(status="active", with_preferences=False)
    make_user(status="active", travel_class="premium", business=True)

    assert notify_users_about_deal(db, stored_deal.id) == 2
    assert _notification_count(db) == 2


def test_fan_out_is_idempotent(db, stored_deal, make_user):
    make_user()
    make_user()

    assert notify_users_about_deal(db, stored_deal.id) == 2
    assert notify_users_about_deal(db, stored_deal.id) == 0
    assert _notification_count(db) == 2


def test_fan_out_isolates_broken_preferences(db, stored_deal, make_user):
    make_user(travel_class="luxury")
    healthy = make_user()

    assert notify_users_about_deal(db, stored_deal.id) == 1
    rows = db.execute(select(Notification)).scalars().all()
    assert [row.user_id for row in rows] == [healthy.id]
    assert rows[0].status == "pending"


def test_fan_out_for_missing_deal(db):
    assert notify_users_about_deal(db, uuid.uuid4()) == 0


def test_enqueue_notification_reports_creation(db, stored_deal, make_user):
    user = make_user()
    assert enqueue_notification(db, user.id, stored_deal.id) is True
    assert enqueue_notification(db, user.id, stored_deal.id) is False
    db.commit()
    assert _notification_count(db) == 1
