from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from date_engine.analytics.store import clear_events
from date_engine.app import app, get_engine
from date_engine.config import EngineConfig
from date_engine.suggestions.cache import ResponseCache
from date_engine.suggestions.engine import DateSuggestionEngine
from date_engine.suggestions.models import Candidate

client = TestClient(app)

AUTH = {"Authorization": "Bearer test-token"}
NYC_BODY = {
    "location": {"latitude": 40.7128, "longitude": -74.0060},
    "radius_km": 5,
    "preferences": {"date_types": ["dinner"], "vibe_tags": ["cozy"], "max_budget": 100},
}


class StaticSource:
    def __init__(self, name, candidates=None, error=None):
        self.name = name
        self.candidates = candidates or []
        self.error = error
        self.calls = 0

    def fetch(self, origin, radius_km):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.candidates)


def _venues():
    restaurants = [
        Candidate(id=f"r{lvl}", name=f"Restaurant {lvl}", kind="venue", price_level=lvl,
                  distance_km=0.3 * lvl, category_tags=("restaurant",))
        for lvl in (1, 2, 3)
    ]
    activities = [
        Candidate(id=f"a{i}", name=f"Activity {i}", kind="venue", quality_score=r,
                  distance_km=1.0, category_tags=("park",))
        for i, r in enumerate((4.5, 4.0, 3.5), start=1)
    ]
    return restaurants + activities


def _use_engine(venues, events) -> DateSuggestionEngine:
    engine = DateSuggestionEngine(
        venue_source=venues,
        event_source=events,
        cache=ResponseCache(),
        config=EngineConfig(timezone="UTC"),
    )
    app.dependency_overrides[get_engine] = lambda: engine
    return engine


@pytest.fixture(autouse=True)
def _reset_overrides():
    yield
    app.dependency_overrides.clear()


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_suggestions_require_authorization():
    _use_engine(StaticSource("places", _venues()), StaticSource("events"))
    resp = client.post("/date-suggestions", json=NYC_BODY)
    assert resp.status_code == 401


def test_suggestions_return_packages():
    _use_engine(StaticSource("places", _venues()), StaticSource("events"))
    resp = client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)

    assert resp.status_code == 200
    packages = resp.json()["date_packages"]
    assert [p["budget_category"] for p in packages] == ["cheap", "mid-range", "splurge"]
    first = packages[0]
    assert set(first["itemized_budget"]) == {"dining", "activity", "transportation", "taxes_and_tips"}
    assert [item["type"] for item in first["items"]] == ["dining", "activity"]
    assert first["items"][0]["candidate"]["name"] == "Restaurant 1"
    assert first["suggested_times"] is None


def test_identical_requests_return_identical_bytes():
    venues = StaticSource("places", _venues())
    _use_engine(venues, StaticSource("events"))
    first = client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)
    second = client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)
    assert first.content == second.content
    assert venues.calls == 1


def test_out_of_range_location_is_invalid_input():
    _use_engine(StaticSource("places", _venues()), StaticSource("events"))
    body = {**NYC_BODY, "location": {"latitude": 123.0, "longitude": 0.0}}
    resp = client.post("/date-suggestions", json=body, headers=AUTH)
    assert resp.status_code == 400
    assert resp.json()["error"]["kind"] == "InvalidInput"


def test_missing_location_is_invalid_input():
    _use_engine(StaticSource("places", _venues()), StaticSource("events"))
    resp = client.post("/date-suggestions", json={"radius_km": 5}, headers=AUTH)
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["kind"] == "InvalidInput"
    assert "location" in body["error"]["message"]


def test_negative_budget_is_invalid_input():
    _use_engine(StaticSource("places", _venues()), StaticSource("events"))
    body = {**NYC_BODY, "preferences": {"max_budget": -1}}
    resp = client.post("/date-suggestions", json=body, headers=AUTH)
    assert resp.status_code == 400


def test_both_upstreams_down_is_503():
    _use_engine(
        StaticSource("places", error=RuntimeError("down")),
        StaticSource("events", error=RuntimeError("down")),
    )
    resp = client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)
    assert resp.status_code == 503
    assert resp.json()["error"]["kind"] == "UpstreamUnavailable"


def test_no_candidates_is_empty_list_not_error():
    _use_engine(StaticSource("places"), StaticSource("events"))
    resp = client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)
    assert resp.status_code == 200
    assert resp.json() == {"date_packages": []}


def test_cache_stats_endpoint():
    _use_engine(StaticSource("places", _venues()), StaticSource("events"))
    client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)
    client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)
    resp = client.get("/cache/stats", headers=AUTH)
    assert resp.status_code == 200
    body = resp.json()
    assert body["hits"] == 1
    assert body["misses"] == 1
    assert body["hit_rate"] == 50.0


def test_analytics_endpoint():
    clear_events()
    _use_engine(StaticSource("places", _venues()), StaticSource("events", error=RuntimeError("down")))
    client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)
    client.post("/date-suggestions", json=NYC_BODY, headers=AUTH)

    resp = client.get("/analytics", headers=AUTH)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_requests"] == 2
    assert body["cache_stats"]["hits"] == 1
    assert body["degraded_sources"] == {"events": 1}
    assert body["top_locations"][0] == {"name": "40.71,-74.01", "count": 2}


def test_analytics_requires_authorization():
    assert client.get("/analytics").status_code == 401
