"""
Unit tests for envfusion/core/http_client.py

BaseSourceClient.fetch must never raise: every failure mode comes back as
a FetchResult with SOURCE_TIMEOUT or SOURCE_ERROR. HTTP traffic is served
by httpx.MockTransport.
"""
from datetime import timezone

import httpx
import pytest

from envfusion.core.api_errors import (
    AuthenticationError,
    FatalError,
    FetchErrorCode,
    NotFoundError,
    RateLimitError,
    RetryableError,
    ValidationError,
    classify_http_error,
)
from envfusion.core.models import Category, Location
from envfusion.sources.openweather import OpenWeatherClient

LOCATION = Location(lat=51.5, lon=-0.12)

OPENWEATHER_OK = {
    "coord": {"lon": -0.12, "lat": 51.5},
    "weather": [{"main": "Clouds", "description": "broken clouds"}],
    "main": {"temp": 14.2, "pressure": 1012, "humidity": 71},
    "wind": {"speed": 4.1, "deg": 240},
    "clouds": {"all": 75},
    "dt": 1714564800,
    "cod": 200,
}


def make_openweather(handler, api_key="test_key"):
    return OpenWeatherClient(api_key=api_key, transport=httpx.MockTransport(handler))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_successful_fetch_returns_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json=OPENWEATHER_OK)

    async with make_openweather(handler) as client:
        result = await client.fetch(LOCATION, Category.WEATHER)

    assert result.success is True
    assert result.source_id == "openweather"
    assert result.payload["main"]["temp"] == 14.2
    assert result.error_code is None
    assert result.timestamp.tzinfo == timezone.utc
    assert result.elapsed_seconds >= 0

    assert seen["url"].path == "/data/2.5/weather"
    assert seen["url"].params["appid"] == "test_key"
    assert seen["url"].params["units"] == "metric"


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("status,fragment", [
    (500, "Server error"),
    (503, "Server error"),
    (401, "Authentication failed"),
    (404, "Not found"),
    (429, "Rate limited"),
    (400, "Bad request"),
])
async def test_http_errors_become_source_error(status, fragment):
    def handler(request):
        return httpx.Response(status, text="upstream says no")

    client = make_openweather(handler)
    result = await client.fetch(LOCATION, Category.WEATHER)
    await client.close()

    assert result.success is False
    assert result.error_code == FetchErrorCode.SOURCE_ERROR
    assert fragment in result.error
    assert "[openweather]" in result.error


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_json_is_source_error():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    client = make_openweather(handler)
    result = await client.fetch(LOCATION, Category.WEATHER)

    assert result.error_code == FetchErrorCode.SOURCE_ERROR
    assert "not valid JSON" in result.error


@pytest.mark.unit
@pytest.mark.asyncio
async def test_api_level_error_in_2xx_body():
    def handler(request):
        return httpx.Response(200, json={"cod": "404", "message": "city not found"})

    result = await make_openweather(handler).fetch(LOCATION, Category.WEATHER)

    assert result.error_code == FetchErrorCode.SOURCE_ERROR
    assert "city not found" in result.error


@pytest.mark.unit
@pytest.mark.asyncio
async def test_network_error_is_source_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await make_openweather(handler).fetch(LOCATION, Category.WEATHER)

    assert result.error_code == FetchErrorCode.SOURCE_ERROR
    assert "connection refused" in result.error


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transport_timeout_is_source_timeout():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    result = await make_openweather(handler).fetch(LOCATION, Category.WEATHER)

    assert result.success is False
    assert result.error_code == FetchErrorCode.SOURCE_TIMEOUT


@pytest.mark.unit
@pytest.mark.asyncio
async def test_slow_source_is_cut_at_timeout(make_client):
    client = make_client("alpha", payload={"fields": {}}, delay=5.0)

    result = await client.fetch(LOCATION, Category.WEATHER, timeout=0.05)

    assert result.error_code == FetchErrorCode.SOURCE_TIMEOUT
    assert result.elapsed_seconds < 1.0
    assert "0.05" in result.error


@pytest.mark.unit
@pytest.mark.asyncio
async def test_malformed_payload_exception_is_contained(make_client):
    client = make_client("alpha", error=KeyError("properties"))

    result = await client.fetch(LOCATION, Category.WEATHER)

    assert result.error_code == FetchErrorCode.SOURCE_ERROR
    assert "Malformed payload" in result.error


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_api_key_is_reported_not_raised():
    def handler(request):  # pragma: no cover - must not be called
        raise AssertionError("request sent without API key")

    client = make_openweather(handler, api_key=None)
    assert client.is_configured() is False

    result = await client.fetch(LOCATION, Category.WEATHER)
    assert result.error_code == FetchErrorCode.SOURCE_ERROR
    assert "API key not configured" in result.error


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_releases_http_client():
    client = make_openweather(lambda request: httpx.Response(200, json=OPENWEATHER_OK))
    await client.fetch(LOCATION, Category.WEATHER)
    assert client._client is not None
    await client.close()
    assert client._client is None


@pytest.mark.unit
def test_unknown_source_id_requires_descriptor():
    from envfusion.core.http_client import BaseSourceClient

    class Orphan(BaseSourceClient):
        SOURCE_ID = "does_not_exist"

        async def _fetch_payload(self, location, category, params):
            return {}

    with pytest.raises(ValueError):
        Orphan()


@pytest.mark.unit
@pytest.mark.parametrize(
    "status_code, error_class",
    [
        (429, RateLimitError),
        (401, AuthenticationError),
        (403, FatalError),
        (404, NotFoundError),
        (400, ValidationError),
        (503, RetryableError),
    ],
)
def test_classify_http_error(status_code, error_class):
    error = classify_http_error(status_code, "upstream says no", source="openweather")

    assert type(error) is error_class
    assert error.status_code == status_code
    assert str(error) == f"[openweather] {error.message} (HTTP {status_code})"
    assert "upstream says no" in error.message
