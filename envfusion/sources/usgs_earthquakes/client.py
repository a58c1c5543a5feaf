"""
USGS FDSN event ``/query`` client (GeoJSON output).
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RADIUS_KM = 500.0
MAX_SEARCH_RADIUS_KM = 20001.6
DEFAULT_DAYS = 7
DEFAULT_LIMIT = 50
MIN_MAGNITUDE = 2.5


class USGSEarthquakeClient(BaseSourceClient):
    """HTTP client for the USGS earthquake catalog."""

    SOURCE_ID = "usgs_earthquakes"

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        days = params.get("days") or DEFAULT_DAYS
        radius_km = min(params.get("radius_km") or DEFAULT_SEARCH_RADIUS_KM, MAX_SEARCH_RADIUS_KM)
        start = datetime.now(timezone.utc) - timedelta(days=days)

        return await self._get_json(
            "query",
            params={
                "format": "geojson",
                "latitude": location.lat,
                "longitude": location.lon,
                "maxradiuskm": radius_km,
                "starttime": start.strftime("%Y-%m-%dT%H:%M:%S"),
                "minmagnitude": MIN_MAGNITUDE,
                "orderby": "time",
                "limit": params.get("limit") or DEFAULT_LIMIT,
            },
        )
