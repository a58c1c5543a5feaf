"""
OpenWeatherMap API client.

Only the ``/weather`` (current conditions) endpoint is used. Units are
requested in metric so temperatures arrive in °C and wind in m/s.
"""
import logging
from typing import Any, Dict, Optional

from envfusion.core.api_errors import APIError, FatalError
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)


class OpenWeatherClient(BaseSourceClient):
    """HTTP client for the OpenWeatherMap current weather API."""

    SOURCE_ID = "openweather"
    REQUIRES_API_KEY = True

    def _check_api_error(self, data: Any) -> Optional[APIError]:
        # Errors are reported as {"cod": "404", "message": "..."}
        if isinstance(data, dict) and "cod" in data and str(data["cod"]) != "200":
            return FatalError(
                message=data.get("message", f"cod={data['cod']}"),
                source=self.source_id,
            )
        return None

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        return await self._get_json(
            "weather",
            params={
                "lat": location.lat,
                "lon": location.lon,
                "units": "metric",
                "appid": self.api_key,
            },
        )
