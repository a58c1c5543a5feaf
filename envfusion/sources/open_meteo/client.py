"""
Open-Meteo client.

The forecast and marine models live on different hosts; the registry
base URL points at the forecast host and the marine URL is fixed here.
All times are requested in UTC.
"""
import logging
from typing import Any, Dict, Optional

from envfusion.core.api_errors import APIError, ValidationError
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)

MARINE_URL = "https://marine-api.open-meteo.com/v1/marine"

WEATHER_VARIABLES = [
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation",
    "cloud_cover",
    "pressure_msl",
    "wind_speed_10m",
    "wind_direction_10m",
    "weather_code",
]

MARINE_VARIABLES = [
    "wave_height",
    "sea_surface_temperature",
]


class OpenMeteoClient(BaseSourceClient):
    """HTTP client for the Open-Meteo forecast and marine APIs."""

    SOURCE_ID = "open_meteo"

    def _check_api_error(self, data: Any) -> Optional[APIError]:
        # {"error": true, "reason": "Latitude must be in range of -90 to 90°."}
        if isinstance(data, dict) and data.get("error") is True:
            return ValidationError(
                message=data.get("reason", "Invalid request"), source=self.source_id
            )
        return None

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        query = {
            "latitude": location.lat,
            "longitude": location.lon,
            "timezone": "UTC",
        }

        if category == Category.OCEAN:
            query["current"] = ",".join(MARINE_VARIABLES)
            return await self._get_json(MARINE_URL, params=query)

        query["current"] = ",".join(WEATHER_VARIABLES)
        query["wind_speed_unit"] = "ms"
        return await self._get_json("forecast", params=query)
