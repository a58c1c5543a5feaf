"""
EONET ``/events`` client.
"""
import logging
from typing import Any, Dict

from envfusion.core.geo import bounding_box
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RADIUS_KM = 500.0
DEFAULT_DAYS = 7
DEFAULT_LIMIT = 50


class EONETClient(BaseSourceClient):
    """HTTP client for the NASA EONET v3 API."""

    SOURCE_ID = "nasa_eonet"

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        radius_km = params.get("radius_km") or DEFAULT_SEARCH_RADIUS_KM
        min_lon, min_lat, max_lon, max_lat = bounding_box(
            location.lat, location.lon, radius_km
        )

        return await self._get_json(
            "events",
            params={
                "status": "open",
                "days": params.get("days") or DEFAULT_DAYS,
                "limit": params.get("limit") or DEFAULT_LIMIT,
                # EONET order: min lon, max lat, max lon, min lat
                "bbox": f"{min_lon:.4f},{max_lat:.4f},{max_lon:.4f},{min_lat:.4f}",
            },
        )
