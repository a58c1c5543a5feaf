"""
Argo ERDDAP tabledap client.

ERDDAP constraints are not key=value pairs (``latitude>=10.5``), so the
query string is assembled here rather than through httpx ``params``.
"""
import logging
from typing import Any, Dict
from urllib.parse import quote

from envfusion.core.geo import bounding_box
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)

DATASET_ID = "ArgoFloats"

VARIABLES = [
    "platform_number",
    "time",
    "latitude",
    "longitude",
    "pres",
    "temp",
    "psal",
]

# Only the top of each profile describes surface conditions (decibar)
MAX_PRESSURE_DBAR = 10
DEFAULT_SEARCH_RADIUS_KM = 200.0
DEFAULT_LOOKBACK_DAYS = 7


class ArgoClient(BaseSourceClient):
    """HTTP client for Argo float data on an ERDDAP server."""

    SOURCE_ID = "argo"

    def build_query(self, location: Location, params: Dict[str, Any]) -> str:
        """Return the tabledap query string (without the leading '?')."""
        radius_km = params.get("radius_km") or DEFAULT_SEARCH_RADIUS_KM
        days = params.get("days") or DEFAULT_LOOKBACK_DAYS
        min_lon, min_lat, max_lon, max_lat = bounding_box(
            location.lat, location.lon, radius_km
        )

        constraints = [
            f"latitude>={min_lat:.4f}",
            f"latitude<={max_lat:.4f}",
            f"longitude>={min_lon:.4f}",
            f"longitude<={max_lon:.4f}",
            f"pres<={MAX_PRESSURE_DBAR}",
            f"time>=now-{int(days)}days",
        ]
        return ",".join(VARIABLES) + "".join(
            "&" + quote(c, safe="=-.") for c in constraints
        )

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/tabledap/{DATASET_ID}.json?{self.build_query(location, params)}"
        return await self._get_json(url)
