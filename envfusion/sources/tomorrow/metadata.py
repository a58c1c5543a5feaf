"""
Tomorrow.io payload mapping.

Response shape (abridged):
    {"data": {"time": "2024-05-01T12:00:00Z",
              "values": {"temperature", "windSpeed", "windDirection",
                         "pressureSurfaceLevel", "humidity", "cloudCover",
                         "precipitationIntensity", "weatherCode"}},
     "location": {"lat", "lon"}}
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

# https://docs.tomorrow.io/reference/data-layers-weather-codes
WEATHER_CODES = {
    1000: "Clear",
    1100: "Mostly Clear",
    1101: "Partly Cloudy",
    1102: "Mostly Cloudy",
    1001: "Cloudy",
    2000: "Fog",
    2100: "Light Fog",
    4000: "Drizzle",
    4001: "Rain",
    4200: "Light Rain",
    4201: "Heavy Rain",
    5000: "Snow",
    5001: "Flurries",
    5100: "Light Snow",
    5101: "Heavy Snow",
    6000: "Freezing Drizzle",
    6001: "Freezing Rain",
    7000: "Ice Pellets",
    8000: "Thunderstorm",
}


def map_weather(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    data = payload.get("data") or {}
    values = data.get("values")
    if not values:
        return None

    place = payload.get("location") or {}
    precipitation = to_float(values.get("precipitationIntensity"))

    return MappedPayload(
        fields={
            "temperature": to_float(values.get("temperature")),
            "wind_speed": to_float(values.get("windSpeed")),
            "wind_direction": to_float(values.get("windDirection")),
            "pressure": to_float(values.get("pressureSurfaceLevel")),
            "humidity": to_float(values.get("humidity")),
            "cloud_cover": to_float(values.get("cloudCover")),
            "precipitation": precipitation,
            "precipitation_intensity": classify_precipitation(precipitation),
            "condition": WEATHER_CODES.get(values.get("weatherCode")),
        },
        observed_at=parse_timestamp(data.get("time")),
        coordinates=to_location(place.get("lat"), place.get("lon")),
    )


MAPPINGS = {
    Category.WEATHER: map_weather,
}
