"""
Open-Meteo data source adapter.

Weather forecast model output (WEATHER) and the marine model (OCEAN).

Official API: https://open-meteo.com/en/docs, https://open-meteo.com/en/docs/marine-weather-api
Rate Limits: 10,000 calls/day for non-commercial use
Authentication: none
"""

from envfusion.sources.open_meteo.client import OpenMeteoClient
from envfusion.sources.open_meteo.metadata import MAPPINGS

__all__ = ["OpenMeteoClient", "MAPPINGS"]
