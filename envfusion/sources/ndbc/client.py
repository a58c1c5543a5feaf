"""
NDBC client.

Two hops: the active station list (XML, memoized per client since it
changes rarely) picks the nearest meteorological station within the
search radius, then that station's ``realtime2/<id>.txt`` file supplies
the latest observation row.
"""
import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional

from envfusion.core.api_errors import MalformedPayloadError, NotFoundError
from envfusion.core.geo import nearest
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RADIUS_KM = 100.0


class NDBCClient(BaseSourceClient):
    """HTTP client for NDBC station metadata and realtime text files."""

    SOURCE_ID = "ndbc"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._stations: Optional[List[Dict[str, Any]]] = None

    async def get_active_stations(self) -> List[Dict[str, Any]]:
        """
        Fetch the active station list.

        Returns:
            List of {"id", "name", "lat", "lon", "type"} for stations that
            report meteorological data
        """
        if self._stations is not None:
            return self._stations

        text = await self._get_text("activestations.xml")
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise MalformedPayloadError(
                f"Station list is not valid XML: {e}", source=self.source_id
            ) from e

        stations = []
        for element in root.iter("station"):
            if element.get("met") != "y":
                continue
            try:
                lat = float(element.get("lat"))
                lon = float(element.get("lon"))
            except (TypeError, ValueError):
                continue
            stations.append({
                "id": element.get("id"),
                "name": element.get("name"),
                "lat": lat,
                "lon": lon,
                "type": element.get("type"),
            })

        logger.info(f"[{self.source_id}] loaded {len(stations)} active met stations")
        self._stations = stations
        return stations

    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        radius_km = params.get("radius_km") or DEFAULT_SEARCH_RADIUS_KM
        stations = await self.get_active_stations()

        match = nearest(
            location.lat, location.lon,
            ((s["lat"], s["lon"], s) for s in stations),
        )
        if match is None or match[0] > radius_km:
            raise NotFoundError(
                f"No buoy within {radius_km:g} km", source=self.source_id
            )

        distance_km, station = match
        logger.debug(
            f"[{self.source_id}] nearest station {station['id']} at {distance_km:.1f} km"
        )

        text = await self._get_text(f"data/realtime2/{station['id']}.txt")
        return {"station": station, "text": text}
