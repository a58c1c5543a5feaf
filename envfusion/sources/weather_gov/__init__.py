"""
National Weather Service (api.weather.gov) data source adapter.

Latest station observations and active alerts. US coverage only.

Official API: https://www.weather.gov/documentation/services-web-api
Rate Limits: not published; a descriptive User-Agent is required
Authentication: none
"""

from envfusion.sources.weather_gov.client import WeatherGovClient
from envfusion.sources.weather_gov.metadata import MAPPINGS

__all__ = ["WeatherGovClient", "MAPPINGS"]
