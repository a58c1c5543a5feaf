"""
USGS earthquake GeoJSON mapping.

Response shape (abridged):
    {"metadata": {"generated": <epoch ms>},
     "features": [{"id": "us7000abcd",
                   "properties": {"mag", "place", "time", "title", "url", "alert"},
                   "geometry": {"coordinates": [lon, lat, depth_km]}}]}
"""
from typing import Any, Dict, List, Optional

from envfusion.core.fields import MappedPayload, parse_timestamp, to_float, to_location
from envfusion.core.models import Category

# PAGER alert level -> common severity
PAGER_SEVERITY = {
    "red": "HIGH",
    "orange": "HIGH",
    "yellow": "MODERATE",
    "green": "LOW",
}


def parse_events(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    events = []
    for feature in payload.get("features") or []:
        props = feature.get("properties") or {}
        coords = (feature.get("geometry") or {}).get("coordinates") or [None, None]
        location = to_location(coords[1], coords[0]) if len(coords) >= 2 else None
        occurred = parse_timestamp(props.get("time"))

        events.append({
            "id": f"usgs:{feature.get('id')}",
            "title": props.get("title") or props.get("place"),
            "type": "Earthquake",
            "magnitude": to_float(props.get("mag")),
            "severity": PAGER_SEVERITY.get(props.get("alert"), "LOW"),
            "date": occurred.isoformat() if occurred else None,
            "coordinates": location.to_dict() if location else None,
            "url": props.get("url"),
            "source": "usgs_earthquakes",
        })
    return events


def map_events(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    if "features" not in payload:
        return None

    generated = (payload.get("metadata") or {}).get("generated")
    return MappedPayload(
        fields={"events": parse_events(payload)},
        observed_at=parse_timestamp(generated),
    )


MAPPINGS = {
    Category.EVENTS: map_events,
}
