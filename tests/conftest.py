"""
Pytest configuration and shared fixtures.

Everything here is offline: source clients are replaced by in-process
fakes built on BaseSourceClient, and time is driven by fake clocks.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pytest

from envfusion.core.aggregator import Aggregator, reset_aggregator
from envfusion.core.cache import InMemoryCache
from envfusion.core.config import Settings, reset_settings
from envfusion.core.fields import MappedPayload
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location, Priority
from envfusion.core.normalizer import Normalizer
from envfusion.core.rate_limiter import RateLimiterService, reset_rate_limiter
from envfusion.core.source_registry import SourceDescriptor

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
TARGET = Location(lat=45.0, lon=-122.0)


@pytest.fixture(scope="function")
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes all app-related env vars to ensure clean state.
    """
    env_vars = [
        "OPENWEATHER_API_KEY",
        "WEATHERAPI_KEY",
        "TOMORROW_API_KEY",
        "NASA_API_KEY",
        "FETCH_TIMEOUT_SECONDS",
        "RATE_LIMIT_WAIT_SECONDS",
        "DEFAULT_RADIUS_KM",
        "LOG_LEVEL",
        "RUN_INTEGRATION_TESTS",
        "CACHE_MAX_SIZE",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

    # Reset singletons
    reset_settings()
    reset_rate_limiter()
    reset_aggregator()

    yield

    # Reset again after test
    reset_settings()
    reset_rate_limiter()
    reset_aggregator()


# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSourceClient(BaseSourceClient):
    """
    In-process source client.

    Goes through the real ``BaseSourceClient.fetch`` so timeout and error
    mapping are exercised; only ``_fetch_payload`` is replaced.
    """

    def __init__(
        self,
        descriptor: SourceDescriptor,
        payload: Any = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        configured: bool = True,
    ):
        super().__init__(descriptor=descriptor)
        self.payload = payload
        self.error = error
        self.delay = delay
        self.configured = configured
        self.calls = 0

    def is_configured(self) -> bool:
        return self.configured

    async def _fetch_payload(self, location, category, params):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload


def make_descriptor(
    source_id: str,
    priority: Priority = Priority.HIGH,
    categories=(Category.WEATHER,),
    data_types=(),
    hourly_budget: int = 3600,
    coverage=None,
) -> SourceDescriptor:
    return SourceDescriptor(
        source_id=source_id,
        display_name=source_id.title(),
        priority=priority,
        hourly_budget=hourly_budget,
        categories=frozenset(categories),
        base_url=f"https://{source_id}.example.test",
        data_types=frozenset(data_types),
        coverage=coverage,
    )


def passthrough_mapping(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    """Fake payloads are already in the common schema."""
    if payload is None:
        return None
    return MappedPayload(
        fields=dict(payload["fields"]),
        observed_at=payload.get("observed_at"),
        coordinates=payload.get("coordinates"),
        quality_hint=payload.get("quality_hint"),
    )


def record_payload(observed_at=NOW, coordinates=TARGET, **fields) -> Dict[str, Any]:
    return {"fields": fields, "observed_at": observed_at, "coordinates": coordinates}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def test_settings(clean_env):
    """Settings with no .env file and a short fetch timeout."""
    return Settings(_env_file=None, fetch_timeout_seconds=0.2)


@pytest.fixture
def fake_registry():
    """Three weather sources and two ocean sources."""
    descriptors = [
        make_descriptor("alpha", Priority.HIGH, data_types=("station_data",)),
        make_descriptor("beta", Priority.MEDIUM),
        make_descriptor("gamma", Priority.LOW),
        make_descriptor("buoy", Priority.HIGH, categories=(Category.OCEAN,),
                        data_types=("station_data",)),
        make_descriptor("model", Priority.MEDIUM, categories=(Category.OCEAN,)),
    ]
    return {d.source_id: d for d in descriptors}


@pytest.fixture
def fake_mappings(fake_registry):
    return {
        (source_id, category): passthrough_mapping
        for source_id, descriptor in fake_registry.items()
        for category in descriptor.categories
    }


@pytest.fixture
def make_client(fake_registry):
    """Factory: make_client("alpha", payload=..., error=..., delay=...)."""
    def _make(source_id: str, **kwargs) -> FakeSourceClient:
        return FakeSourceClient(fake_registry[source_id], **kwargs)
    return _make


@pytest.fixture
def payload():
    """Factory for passthrough payloads: payload(temperature=20.0, observed_at=...)."""
    return record_payload


@pytest.fixture
def make_aggregator(test_settings, fake_registry, fake_mappings, fake_clock):
    """Factory building an Aggregator wired to fakes only."""
    def _make(clients, settings=None, now=NOW, cache=None, rate_limiter=None):
        return Aggregator(
            settings=settings or test_settings,
            clients=clients,
            registry=fake_registry,
            rate_limiter=rate_limiter or RateLimiterService(
                registry=fake_registry, clock=fake_clock
            ),
            cache=cache or InMemoryCache(default_ttl=300, max_size=100, clock=fake_clock),
            normalizer=Normalizer(mappings=fake_mappings),
            now=lambda: now,
        )
    return _make
