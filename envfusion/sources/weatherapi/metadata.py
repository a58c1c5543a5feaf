"""
WeatherAPI.com payload mapping.

Response shape (abridged):
    {"location": {"lat", "lon"},
     "current": {"last_updated_epoch", "temp_c", "wind_kph", "wind_degree",
                 "pressure_mb", "humidity", "cloud", "precip_mm",
                 "condition": {"text"}},
     "alerts": {"alert": [{"headline", "event", "severity", "areas",
                           "effective", "expires", "desc"}]}}
"""
from typing import Any, Dict, List, Optional

from envfusion.core.fields import (
    MappedPayload,
    classify_precipitation,
    kmh_to_ms,
    normalize_severity,
    parse_timestamp,
    to_float,
    to_location,
)
from envfusion.core.models import Category


def _coordinates(payload: Dict[str, Any]):
    place = payload.get("location") or {}
    return to_location(place.get("lat"), place.get("lon"))


def parse_alerts(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Convert the ``alerts.alert`` list into the common alert shape."""
    raw_alerts = (payload.get("alerts") or {}).get("alert") or []
    alerts = []
    for alert in raw_alerts:
        alerts.append({
            "type": alert.get("event") or "ALERT",
            "headline": alert.get("headline") or alert.get("event"),
            "severity": normalize_severity(alert.get("severity")),
            "areas": alert.get("areas"),
            "onset": alert.get("effective"),
            "expires": alert.get("expires"),
            "source": "weatherapi",
        })
    return alerts


def map_weather(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    current = payload.get("current")
    if not current:
        return None

    precipitation = to_float(current.get("precip_mm"))

    return MappedPayload(
        fields={
            "temperature": to_float(current.get("temp_c")),
            "wind_speed": kmh_to_ms(to_float(current.get("wind_kph"))),
            "wind_direction": to_float(current.get("wind_degree")),
            "pressure": to_float(current.get("pressure_mb")),
            "humidity": to_float(current.get("humidity")),
            "cloud_cover": to_float(current.get("cloud")),
            "precipitation": precipitation,
            "precipitation_intensity": classify_precipitation(precipitation),
            "condition": (current.get("condition") or {}).get("text"),
            "alerts": parse_alerts(payload),
        },
        observed_at=parse_timestamp(current.get("last_updated_epoch")),
        coordinates=_coordinates(payload),
    )


def map_events(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    if "alerts" not in payload:
        return None
    return MappedPayload(
        fields={"alerts": parse_alerts(payload)},
        coordinates=_coordinates(payload),
    )


MAPPINGS = {
    Category.WEATHER: map_weather,
    Category.EVENTS: map_events,
}
