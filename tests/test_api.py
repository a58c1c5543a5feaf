"""
Tests for the HTTP surface (envfusion/main.py and envfusion/api/v1/aggregate.py).

The aggregator dependency is overridden with one wired to fake clients.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from envfusion.core.aggregator import get_aggregator
from envfusion.core.config import Settings
from envfusion.main import app

from conftest import NOW

AGGREGATE_URL = "/api/v1/aggregate"


def body(category="weather", **extra):
    return {"location": {"lat": 45.0, "lon": -122.0}, "category": category, **extra}


@pytest.fixture
def api(monkeypatch):
    """Factory: api(aggregator) -> TestClient using that aggregator."""
    clients = []

    def _make(aggregator):
        app.dependency_overrides[get_aggregator] = lambda: aggregator
        monkeypatch.setattr("envfusion.main.get_aggregator", lambda: aggregator)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture
def three_agreeing(make_client, payload):
    return {
        "alpha": make_client("alpha", payload=payload(temperature=20.0)),
        "beta": make_client("beta", payload=payload(temperature=21.0)),
        "gamma": make_client("gamma", payload=payload(temperature=22.0)),
    }


class TestAggregateEndpoint:

    @pytest.mark.unit
    def test_success(self, api, make_aggregator, three_agreeing):
        client = api(make_aggregator(three_agreeing))

        response = client.post(AGGREGATE_URL, json=body(category="WEATHER"))

        assert response.status_code == 200
        data = response.json()
        assert data["category"] == "weather"
        assert data["fused"]["groups"]["weather"]["temperature"] == pytest.approx(21.0)
        assert data["quality"]["pass"] is True
        assert set(data["fetch_summary"]) == {"alpha", "beta", "gamma"}

    @pytest.mark.unit
    def test_quality_insufficient_is_422(self, api, make_aggregator, make_client, payload):
        stale = make_client(
            "alpha", payload=payload(observed_at=NOW - timedelta(hours=2), temperature=20.0)
        )
        client = api(make_aggregator({"alpha": stale}))

        response = client.post(AGGREGATE_URL, json=body())

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "QUALITY_INSUFFICIENT"
        assert "insufficient recency" in detail["issues"]

    @pytest.mark.unit
    def test_no_sources_is_503(self, api, make_aggregator, make_client):
        failing = make_client("alpha", error=RuntimeError("down"))
        client = api(make_aggregator({"alpha": failing}))

        response = client.post(AGGREGATE_URL, json=body())

        assert response.status_code == 503
        detail = response.json()["detail"]
        assert detail["error"] == "NO_SOURCES_AVAILABLE"
        assert detail["source_failures"]["alpha"]["code"] == "SOURCE_ERROR"

    @pytest.mark.unit
    def test_invalid_request_rejected(self, api, make_aggregator):
        client = api(make_aggregator({}))

        assert client.post(AGGREGATE_URL, json=body(category="tides")).status_code == 422
        bad_location = {"location": {"lat": 95.0, "lon": 0.0}, "category": "weather"}
        assert client.post(AGGREGATE_URL, json=bad_location).status_code == 422

    @pytest.mark.unit
    def test_request_params_applied(self, api, make_aggregator, three_agreeing, clean_env):
        lenient = Settings(_env_file=None, quality_thresholds={"weather": 0.7})
        aggregator = make_aggregator(three_agreeing, settings=lenient)
        client = api(aggregator)

        response = client.post(
            AGGREGATE_URL, json=body(params={"radius_km": 25, "exclude_sources": ["Gamma"]})
        )

        assert response.status_code == 200
        assert response.json()["fused"]["spatial"]["radius_km"] == 25
        assert three_agreeing["gamma"].calls == 0


class TestReadOnlyEndpoints:

    @pytest.mark.unit
    def test_list_sources(self, api, make_aggregator):
        client = api(make_aggregator({}))

        everything = client.get("/api/v1/sources").json()
        assert everything["count"] == 11

        ocean = client.get("/api/v1/sources", params={"category": "OCEAN"}).json()
        assert [s["source_id"] for s in ocean["sources"]] == ["argo", "ndbc", "open_meteo"]

    @pytest.mark.unit
    def test_list_sources_bad_category(self, api, make_aggregator):
        client = api(make_aggregator({}))
        assert client.get("/api/v1/sources", params={"category": "tides"}).status_code == 400

    @pytest.mark.unit
    def test_health_and_root(self, api, make_aggregator, three_agreeing):
        client = api(make_aggregator(three_agreeing))

        health = client.get("/health").json()
        assert health["status"] == "healthy"
        assert health["sources_enabled"] == ["alpha", "beta", "gamma"]

        root = client.get("/").json()
        assert root["categories"] == ["weather", "ocean", "satellite", "events"]

    @pytest.mark.unit
    def test_health_degraded_without_sources(self, api, make_aggregator):
        client = api(make_aggregator({}))
        assert client.get("/health").json()["status"] == "degraded"

    @pytest.mark.unit
    def test_cache_and_rate_limit_stats(self, api, make_aggregator, three_agreeing):
        client = api(make_aggregator(three_agreeing))
        client.post(AGGREGATE_URL, json=body())
        client.post(AGGREGATE_URL, json=body())

        cache = client.get("/api/v1/cache/stats").json()
        assert cache["hits"] == 1
        assert cache["sets"] == 1

        limits = client.get("/api/v1/rate-limits").json()["sources"]
        assert set(limits) == {"alpha", "beta", "gamma"}
