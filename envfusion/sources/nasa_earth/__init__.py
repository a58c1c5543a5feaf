"""
NASA Earth imagery data source adapter.

Landsat 8 asset lookup for a coordinate pair: the closest acquisition on
or before a date, with a link to the imagery.

Official API: https://api.nasa.gov/ (Earth)
Rate Limits: DEMO_KEY 30 requests/hour; registered keys 1,000 requests/hour
Authentication: ``api_key`` query parameter (NASA_API_KEY)
"""

from envfusion.sources.nasa_earth.client import NASAEarthClient
from envfusion.sources.nasa_earth.metadata import MAPPINGS

__all__ = ["NASAEarthClient", "MAPPINGS"]
