"""
NOAA National Data Buoy Center (NDBC) data source adapter.

Realtime meteorological and wave observations from moored buoys and
C-MAN stations: water temperature, significant wave height, air
temperature, wind and pressure.

Official data: https://www.ndbc.noaa.gov/faq/measdes.shtml
Station list: https://www.ndbc.noaa.gov/activestations.xml
Data License: Public Domain (U.S. Government Work)
Authentication: none
"""

from envfusion.sources.ndbc.client import NDBCClient
from envfusion.sources.ndbc.metadata import MAPPINGS, parse_realtime

__all__ = ["NDBCClient", "MAPPINGS", "parse_realtime"]
