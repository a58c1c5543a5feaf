"""
Tomorrow.io realtime weather client.
"""
import logging
from typing import Any, Dict, Optional

from envfusion.core.api_errors import APIError, FatalError
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)


class TomorrowClient(BaseSourceClient):
    """HTTP client for the Tomorrow.io v4 realtime endpoint."""

    SOURCE_ID = "tomorrow"
    REQUIRES_API_KEY = True

    def _check_api_error(self, data: Any) -> Optional[APIError]:
        # Error bodies look like {"code": 400001, "type": "Invalid Query", "message": "..."}
        if isinstance(data, dict) and "data" not in data and "code" in data:
            return FatalError(
                message=data.get("message") or data.get("type") or str(data["code"]),
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
            "weather/realtime",
            params={
                "location": f"{location.lat},{location.lon}",
                "units": "metric",
                "apikey": self.api_key,
            },
        )
