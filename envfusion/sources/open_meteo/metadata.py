"""
Open-Meteo payload mapping.

Both APIs answer with ``{"latitude", "longitude", "current": {"time", ...}}``;
coordinates are those of the model grid cell, not the requested point.
"""
from typing import Any, Dict, Optional

from envfusion.core.fields import (
    MappedPayload,
    classify_precipitation,
    parse_timestamp,
    to_float,
    to_location,
)
from envfusion.core.models import Category

# WMO weather interpretation codes
WMO_CODES = {
    0: "Clear Sky",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing Rime Fog",
    51: "Light Drizzle",
    53: "Drizzle",
    55: "Dense Drizzle",
    61: "Slight Rain",
    63: "Rain",
    65: "Heavy Rain",
    71: "Slight Snow",
    73: "Snow",
    75: "Heavy Snow",
    80: "Rain Showers",
    81: "Heavy Rain Showers",
    82: "Violent Rain Showers",
    95: "Thunderstorm",
    96: "Thunderstorm With Hail",
    99: "Thunderstorm With Heavy Hail",
}


def map_weather(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    current = payload.get("current")
    if not current:
        return None

    precipitation = to_float(current.get("precipitation"))

    return MappedPayload(
        fields={
            "temperature": to_float(current.get("temperature_2m")),
            "humidity": to_float(current.get("relative_humidity_2m")),
            "cloud_cover": to_float(current.get("cloud_cover")),
            "pressure": to_float(current.get("pressure_msl")),
            "wind_speed": to_float(current.get("wind_speed_10m")),
            "wind_direction": to_float(current.get("wind_direction_10m")),
            "precipitation": precipitation,
            "precipitation_intensity": classify_precipitation(precipitation),
            "condition": WMO_CODES.get(current.get("weather_code")),
        },
        observed_at=parse_timestamp(current.get("time")),
        coordinates=to_location(payload.get("latitude"), payload.get("longitude")),
    )


def map_ocean(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    current = payload.get("current")
    if not current:
        return None

    return MappedPayload(
        fields={
            "wave_height": to_float(current.get("wave_height")),
            "surface_temperature": to_float(current.get("sea_surface_temperature")),
        },
        observed_at=parse_timestamp(current.get("time")),
        coordinates=to_location(payload.get("latitude"), payload.get("longitude")),
    )


MAPPINGS = {
    Category.WEATHER: map_weather,
    Category.OCEAN: map_ocean,
}
