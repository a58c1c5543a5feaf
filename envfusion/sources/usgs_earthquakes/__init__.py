"""
USGS Earthquake Catalog data source adapter.

Recent earthquakes around a coordinate pair.

Official API: https://earthquake.usgs.gov/fdsnws/event/1/
Rate Limits: not published; a search returns at most 20,000 events
Authentication: none
"""

from envfusion.sources.usgs_earthquakes.client import USGSEarthquakeClient
from envfusion.sources.usgs_earthquakes.metadata import MAPPINGS

__all__ = ["USGSEarthquakeClient", "MAPPINGS"]
