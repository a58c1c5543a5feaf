"""
OpenWeatherMap data source adapter.

Current conditions for any coordinate pair.

Official API: https://openweathermap.org/current
Rate Limits: 60 calls/minute, 1,000,000 calls/month on the free plan
Authentication: ``appid`` query parameter (OPENWEATHER_API_KEY)
"""

from envfusion.sources.openweather.client import OpenWeatherClient
from envfusion.sources.openweather.metadata import MAPPINGS

__all__ = ["OpenWeatherClient", "MAPPINGS"]
