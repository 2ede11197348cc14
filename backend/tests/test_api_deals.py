"""Tests for health, deal and ingestion endpoints."""

import uuid
from datetime import datetime, timedelta, timezone

from conftest import admin_headers
from skydeal.deals.detection import DealDetectionService
from skydeal.deals.repository import get_deal_by_flight


def _deal_for(db, make_flight, add_history, destination="LHR", price=300.0):
    flight = make_flight(destination=destination, price=price)
    add_history(flight, [500.0] * 10)
    DealDetectionService(db, notifier=lambda db, deal_id: 0).evaluate_flight(flight.id)
    return get_deal_by_flight(db, flight.id)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_list_deals(client, db, make_flight, add_history, reference_data):
    _deal_for(db, make_flight, add_history, "LHR", 300.0)
    _deal_for(db, make_flight, add_history, "CDG", 375.0)

    response = client.get("/api/deals")
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"total": 2, "page": 1, "limit": 10, "pages": 1}
    assert [d["discount_percentage"] for d in body["deals"]] == [40, 25]
    first = body["deals"][0]
    assert first["deal_quality"] == "amazing"
    assert first["flight"]["origin_airport"]["city"] == "New York"
    assert first["flight"]["airline_info"]["name"] == "British Airways"
    assert body["deals"][1]["flight"]["destination_airport"] is None


def test_list_deals_filters(client, db, make_flight, add_history):
    _deal_for(db, make_flight, add_history, "LHR", 300.0)
    _deal_for(db, make_flight, add_history, "CDG", 375.0)

    body = client.get("/api/deals", params={"destination": "cdg"}).json()
    assert [d["flight"]["destination"] for d in body["deals"]] == ["CDG"]

    body = client.get("/api/deals", params={"min_discount": 30}).json()
    assert body["pagination"]["total"] == 1

    assert client.get("/api/deals", params={"limit": 0}).status_code == 422


def test_list_deals_by_departure_date(client, db, make_flight, add_history):
    departures = [
        datetime(2027, 3, 10, 0, 0, tzinfo=timezone.utc),
        datetime(2027, 3, 10, 23, 30, tzinfo=timezone.utc),
        datetime(2027, 3, 11, 0, 0, tzinfo=timezone.utc),
    ]
    flights = [make_flight(departure_time=when) for when in departures]
    for flight in flights:
        add_history(flight, [500.0] * 10)
        DealDetectionService(db, notifier=lambda db, deal_id: 0).evaluate_flight(flight.id)

    body = client.get("/api/deals", params={"departure_date": "2027-03-10"}).json()
    assert body["pagination"]["total"] == 2
    assert {d["flight_id"] for d in body["deals"]} == {str(f.id) for f in flights[:2]}

    body = client.get("/api/deals", params={"departure_date": "2027-03-12"}).json()
    assert body["deals"] == []

    assert client.get("/api/deals", params={"departure_date": "soon"}).status_code == 422


def test_featured_deals(client, db, make_flight, add_history):
    featured = _deal_for(db, make_flight, add_history, "LHR", 300.0)
    _deal_for(db, make_flight, add_history, "CDG", 375.0)

    body = client.get("/api/deals/featured").json()
    assert [d["id"] for d in body] == [str(featured.id)]


def test_get_deal(client, db, make_flight, add_history):
    deal = _deal_for(db, make_flight, add_history)

    response = client.get(f"/api/deals/{deal.id}")
    assert response.status_code == 200
    assert response.json()["flight_id"] == str(deal.flight_id)

    assert client.get(f"/api/deals/{uuid.uuid4()}").status_code == 404
    assert client.get("/api/deals/not-a-uuid").status_code == 422


def test_analyze_requires_admin(client, make_flight):
    flight = make_flight()
    assert client.post(f"/api/deals/{flight.id}/analyze").status_code == 401
    assert (
        client.post(f"/api/deals/{flight.id}/analyze", headers={"X-Admin-Token": "wrong"}).status_code
        == 401
    )


def test_analyze_flight_runs_in_background(client, db, make_flight, add_history):
    flight = make_flight(price=300.0)
    add_history(flight, [500.0] * 10)

    response = client.post(f"/api/deals/{flight.id}/analyze", headers=admin_headers())

    assert response.status_code == 202
    db.expire_all()
    assert get_deal_by_flight(db, flight.id) is not None


def test_analyze_unknown_flight_still_accepted(client):
    response = client.post(f"/api/deals/{uuid.uuid4()}/analyze", headers=admin_headers())
    assert response.status_code == 202


def test_analyze_recent_and_reevaluate(client, db, make_flight, add_history, now):
    recent = make_flight(price=300.0)
    add_history(recent, [500.0] * 10)
    old = make_flight(destination="CDG", price=300.0, created_at=now - timedelta(days=2))
    add_history(old, [500.0] * 10)

    assert client.post("/api/deals/analyze-recent", headers=admin_headers()).status_code == 202
    db.expire_all()
    assert get_deal_by_flight(db, recent.id) is not None
    assert get_deal_by_flight(db, old.id) is None

    assert client.post("/api/deals/reevaluate", headers=admin_headers()).status_code == 202


def _observation(**overrides):
    payload = {
        "origin": "jfk",
        "destination": "LHR",
        "airline": "ba",
        "cabin_class": "economy",
        "price": 412.5,
        "departure_time": "2026-12-01T09:00:00Z",
        "arrival_time": "2026-12-01T21:00:00Z",
        "duration_minutes": 420,
    }
    payload.update(overrides)
    return payload


def test_ingest_observation(client):
    response = client.post("/api/flights/observations", json=_observation(), headers=admin_headers())
    assert response.status_code == 201
    body = response.json()
    assert body["price"] == 412.5

    again = client.post(
        "/api/flights/observations", json=_observation(price=399.0), headers=admin_headers()
    )
    assert again.json()["flight_id"] == body["flight_id"]


def test_ingest_observation_validation(client):
    headers = admin_headers()
    assert client.post("/api/flights/observations", json=_observation(origin="JFKX"), headers=headers).status_code == 422
    assert client.post("/api/flights/observations", json=_observation(price=0), headers=headers).status_code == 422
    assert client.post("/api/flights/observations", json=_observation(cabin_class="luxury"), headers=headers).status_code == 422
    assert (
        client.post(
            "/api/flights/observations",
            json=_observation(arrival_time="2026-12-01T08:00:00Z"),
            headers=headers,
        ).status_code
        == 422
    )
    assert client.post("/api/flights/observations", json=_observation()).status_code == 401
