"""
EONET payload mapping.

Response shape (abridged):
    {"events": [{"id": "EONET_6512", "title": "...",
                 "categories": [{"id": "wildfires", "title": "Wildfires"}],
                 "geometry": [{"date": "...", "type": "Point",
                               "coordinates": [lon, lat]}]}]}

Only the newest geometry of each event is kept.
"""
from typing import Any, Dict, List, Optional

from envfusion.core.fields import MappedPayload, parse_timestamp, to_location
from envfusion.core.models import Category


def _latest_geometry(event: Dict[str, Any]) -> Dict[str, Any]:
    geometries = event.get("geometry") or []
    if not geometries:
        return {}
    return max(geometries, key=lambda g: g.get("date") or "")


def parse_events(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    events = []
    for event in payload.get("events") or []:
        geometry = _latest_geometry(event)
        categories = event.get("categories") or [{}]

        coordinates = None
        if geometry.get("type") == "Point":
            lon, lat = (geometry.get("coordinates") or [None, None])[:2]
            location = to_location(lat, lon)
            coordinates = location.to_dict() if location else None

        events.append({
            "id": f"eonet:{event.get('id')}",
            "title": event.get("title"),
            "type": categories[0].get("title") or categories[0].get("id"),
            "date": geometry.get("date"),
            "coordinates": coordinates,
            "source": "nasa_eonet",
        })
    return events


def map_events(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    if "events" not in payload:
        return None

    events = parse_events(payload)
    dates = [parse_timestamp(e["date"]) for e in events if e.get("date")]
    dates = [d for d in dates if d is not None]

    return MappedPayload(
        fields={"events": events},
        observed_at=max(dates) if dates else None,
    )


MAPPINGS = {
    Category.EVENTS: map_events,
}
