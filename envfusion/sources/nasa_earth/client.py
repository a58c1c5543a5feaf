"""
NASA Earth ``/assets`` client.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from envfusion.core.api_errors import APIError, FatalError, NotFoundError
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)

# Width and height of the image in degrees
DEFAULT_DIM = 0.15


class NASAEarthClient(BaseSourceClient):
    """HTTP client for the NASA Earth imagery assets API."""

    SOURCE_ID = "nasa_earth"
    REQUIRES_API_KEY = True

    def _check_api_error(self, data: Any) -> Optional[APIError]:
        if not isinstance(data, dict):
            return None
        # api.nasa.gov gateway errors: {"error": {"code": "API_KEY_INVALID", "message": ...}}
        if isinstance(data.get("error"), dict):
            error = data["error"]
            return FatalError(
                message=error.get("message", error.get("code", "API error")),
                source=self.source_id,
            )
        # No acquisition: {"msg": "No Landsat 8 assets found for point ..."}
        if "url" not in data and data.get("msg"):
            return NotFoundError(message=data["msg"], source=self.source_id)
        return None

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        date = params.get("date") or datetime.now(timezone.utc).strftime("%Y-%m-%d")
        return await self._get_json(
            "assets",
            params={
                "lat": location.lat,
                "lon": location.lon,
                "date": date,
                "dim": params.get("dim", DEFAULT_DIM),
                "api_key": self.api_key,
            },
        )
