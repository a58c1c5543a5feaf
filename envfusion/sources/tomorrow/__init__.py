"""
Tomorrow.io data source adapter.

Realtime weather values for a coordinate pair.

Official API: https://docs.tomorrow.io/reference/realtime-weather
Rate Limits: 25 requests/hour, 500 requests/day on the free plan
Authentication: ``apikey`` query parameter (TOMORROW_API_KEY)
"""

from envfusion.sources.tomorrow.client import TomorrowClient
from envfusion.sources.tomorrow.metadata import MAPPINGS

__all__ = ["TomorrowClient", "MAPPINGS"]
