"""
Live provider tests.

These tests require:
- RUN_INTEGRATION_TESTS=true environment variable
- Network access to the keyless providers (NWS, Open-Meteo, NDBC, USGS, EONET)

Run with: RUN_INTEGRATION_TESTS=true pytest tests/test_live_sources.py -v
"""
import os

import pytest

from envfusion.core.models import Category, Location
from envfusion.core.normalizer import Normalizer
from envfusion.sources.nasa_eonet import EONETClient
from envfusion.sources.ndbc import NDBCClient
from envfusion.sources.open_meteo import OpenMeteoClient
from envfusion.sources.usgs_earthquakes import USGSEarthquakeClient
from envfusion.sources.weather_gov import WeatherGovClient

# Skip all tests if integration tests not enabled
pytestmark = pytest.mark.skipif(
    not os.environ.get("RUN_INTEGRATION_TESTS", "").lower() == "true",
    reason="Integration tests disabled. Set RUN_INTEGRATION_TESTS=true to enable."
)

SAN_FRANCISCO = Location(lat=37.7749, lon=-122.4194)
OFFSHORE_SF = Location(lat=37.75, lon=-122.84)


async def fetch_and_normalize(client, location, category, params=None):
    async with client:
        result = await client.fetch(
            location, category, params or {"radius_km": 200, "days": 7, "limit": 20}
        )
    assert result.success, result.error
    record, reason = Normalizer().normalize(result, category)
    return record, reason


@pytest.mark.integration
@pytest.mark.asyncio
async def test_weather_gov_observation():
    record, reason = await fetch_and_normalize(WeatherGovClient(), SAN_FRANCISCO, Category.WEATHER)
    assert record is not None, reason
    assert -50 < record.fields["temperature"] < 60


@pytest.mark.integration
@pytest.mark.asyncio
async def test_open_meteo_weather_and_marine():
    weather, reason = await fetch_and_normalize(OpenMeteoClient(), SAN_FRANCISCO, Category.WEATHER)
    assert weather is not None, reason

    ocean, reason = await fetch_and_normalize(OpenMeteoClient(), OFFSHORE_SF, Category.OCEAN)
    assert ocean is not None, reason


@pytest.mark.integration
@pytest.mark.asyncio
async def test_ndbc_nearest_buoy():
    record, reason = await fetch_and_normalize(NDBCClient(), OFFSHORE_SF, Category.OCEAN)
    assert record is not None, reason
    assert record.coordinates is not None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_usgs_and_eonet_events():
    for client in (USGSEarthquakeClient(), EONETClient()):
        async with client:
            result = await client.fetch(
                SAN_FRANCISCO, Category.EVENTS, {"radius_km": 500, "days": 30, "limit": 20}
            )
        assert result.success, result.error
