"""
WeatherAPI.com client.

``forecast.json`` with ``days=1`` is used instead of ``current.json``
because only the forecast endpoint returns the ``alerts`` block; the same
payload then serves both the WEATHER and EVENTS categories.
"""
import logging
from typing import Any, Dict

from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)


class WeatherAPIClient(BaseSourceClient):
    """HTTP client for WeatherAPI.com."""

    SOURCE_ID = "weatherapi"
    REQUIRES_API_KEY = True

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        return await self._get_json(
            "forecast.json",
            params={
                "key": self.api_key,
                "q": f"{location.lat},{location.lon}",
                "days": 1,
                "alerts": "yes",
                "aqi": "no",
            },
        )
