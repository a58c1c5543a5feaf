"""
National Weather Service payload mapping.

Observation values are ``{"value": ..., "unitCode": "wmoUnit:..."}``
objects; ``value`` is null when the station did not report the quantity.
Wind speed arrives in km/h and pressure in Pa.
"""
from typing import Any, Dict, Optional

from envfusion.core.fields import (
    MappedPayload,
    classify_precipitation,
    kmh_to_ms,
    normalize_severity,
    pa_to_hpa,
    parse_timestamp,
    to_float,
    to_location,
)
from envfusion.core.models import Category


def _value(observation: Dict[str, Any], name: str) -> Optional[float]:
    return to_float((observation.get(name) or {}).get("value"))


def map_weather(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    observation = payload.get("observation") or {}
    station = payload.get("station") or {}

    wind = _value(observation, "windSpeed")
    wind_unit = (observation.get("windSpeed") or {}).get("unitCode", "")
    if wind is not None and not wind_unit.endswith("m_s-1"):
        wind = kmh_to_ms(wind)

    precipitation = _value(observation, "precipitationLastHour")

    return MappedPayload(
        fields={
            "temperature": _value(observation, "temperature"),
            "wind_speed": wind,
            "wind_direction": _value(observation, "windDirection"),
            "pressure": pa_to_hpa(_value(observation, "barometricPressure")),
            "humidity": _value(observation, "relativeHumidity"),
            "precipitation": precipitation,
            "precipitation_intensity": classify_precipitation(precipitation),
            "condition": observation.get("textDescription") or None,
        },
        observed_at=parse_timestamp(observation.get("timestamp")),
        coordinates=to_location(station.get("lat"), station.get("lon")),
    )


def map_events(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    features = payload.get("features")
    if features is None:
        return None

    alerts = []
    for feature in features:
        props = feature.get("properties") or {}
        alerts.append({
            "id": props.get("id"),
            "type": props.get("event") or "ALERT",
            "headline": props.get("headline") or props.get("event"),
            "severity": normalize_severity(props.get("severity")),
            "areas": props.get("areaDesc"),
            "onset": props.get("onset") or props.get("effective"),
            "expires": props.get("expires"),
            "source": "weather_gov",
        })

    return MappedPayload(
        fields={"alerts": alerts},
        observed_at=parse_timestamp(payload.get("updated")),
    )


MAPPINGS = {
    Category.WEATHER: map_weather,
    Category.EVENTS: map_events,
}
