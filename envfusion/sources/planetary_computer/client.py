"""
Planetary Computer STAC ``/search`` client.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)

COLLECTION = "sentinel-2-l2a"
MAX_CLOUD_COVER = 50
DEFAULT_LOOKBACK_DAYS = 14
DEFAULT_LIMIT = 10


class PlanetaryComputerClient(BaseSourceClient):
    """HTTP client for the Planetary Computer STAC API."""

    SOURCE_ID = "planetary_computer"

    def build_search(self, location: Location, params: Dict[str, Any]) -> Dict[str, Any]:
        """STAC search body for recent low-cloud scenes over the point."""
        days = params.get("days") or DEFAULT_LOOKBACK_DAYS
        end = datetime.now(timezone.utc)
        start = end - timedelta(days=days)

        return {
            "collections": [COLLECTION],
            "intersects": {"type": "Point", "coordinates": [location.lon, location.lat]},
            "datetime": f"{start:%Y-%m-%dT%H:%M:%SZ}/{end:%Y-%m-%dT%H:%M:%SZ}",
            "query": {"eo:cloud_cover": {"lt": MAX_CLOUD_COVER}},
            "sortby": [{"field": "properties.datetime", "direction": "desc"}],
            "limit": min(int(params.get("limit") or DEFAULT_LIMIT), DEFAULT_LIMIT),
        }

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        return await self._post_json("search", self.build_search(location, params))
