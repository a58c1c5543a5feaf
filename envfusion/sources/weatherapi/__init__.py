"""
WeatherAPI.com data source adapter.

Current conditions plus active government alerts for a coordinate pair.

Official API: https://www.weatherapi.com/docs/
Rate Limits: 1,000,000 calls/month on the free plan
Authentication: ``key`` query parameter (WEATHERAPI_KEY)
"""

from envfusion.sources.weatherapi.client import WeatherAPIClient
from envfusion.sources.weatherapi.metadata import MAPPINGS

__all__ = ["WeatherAPIClient", "MAPPINGS"]
