"""
NASA Earth Observatory Natural Event Tracker (EONET) data source adapter.

Curated natural events (wildfires, severe storms, volcanoes, floods, sea
and lake ice) with point or polygon geometry over time.

Official API: https://eonet.gsfc.nasa.gov/docs/v3
Rate Limits: not published
Authentication: none
"""

from envfusion.sources.nasa_eonet.client import EONETClient
from envfusion.sources.nasa_eonet.metadata import MAPPINGS

__all__ = ["EONETClient", "MAPPINGS"]
