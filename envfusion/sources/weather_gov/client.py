"""
National Weather Service API client.

WEATHER takes three hops:
    /points/{lat},{lon}               -> observationStations URL
    <observationStations>             -> nearest station (first feature)
    /stations/{id}/observations/latest

EVENTS is a single call to ``/alerts/active?point={lat},{lon}``.
"""
import logging
from typing import Any, Dict

from envfusion.core.api_errors import NotFoundError
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)


class WeatherGovClient(BaseSourceClient):
    """HTTP client for api.weather.gov."""

    SOURCE_ID = "weather_gov"

    def _build_headers(self) -> Dict[str, str]:
        headers = super()._build_headers()
        headers["Accept"] = "application/geo+json"
        return headers

    def _point(self, location: Location) -> str:
        # The API redirects (301) for more than 4 decimal places
        return f"{location.lat:.4f},{location.lon:.4f}"

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        if category == Category.EVENTS:
            return await self._get_json(
                "alerts/active", params={"point": self._point(location)}
            )

        point = await self._get_json(f"points/{self._point(location)}")
        stations_url = point["properties"]["observationStations"]

        stations = await self._get_json(stations_url)
        features = stations.get("features") or []
        if not features:
            raise NotFoundError(
                "No observation stations for point",
                source=self.source_id,
                resource_id=self._point(location),
            )

        station = features[0]
        station_id = station["properties"]["stationIdentifier"]
        lon, lat = station["geometry"]["coordinates"][:2]
        logger.debug(f"[{self.source_id}] nearest station {station_id}")

        observation = await self._get_json(f"stations/{station_id}/observations/latest")
        return {
            "station": {"id": station_id, "lat": lat, "lon": lon},
            "observation": observation.get("properties") or {},
        }
