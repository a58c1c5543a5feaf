"""
Microsoft Planetary Computer data source adapter.

STAC search over the Sentinel-2 Level-2A collection for scenes covering
a coordinate pair.

Official API: https://planetarycomputer.microsoft.com/docs/reference/stac/
Rate Limits: not published; kept conservative (500/hour)
Authentication: none for search (asset downloads need a SAS token)
"""

from envfusion.sources.planetary_computer.client import PlanetaryComputerClient
from envfusion.sources.planetary_computer.metadata import MAPPINGS

__all__ = ["PlanetaryComputerClient", "MAPPINGS"]
