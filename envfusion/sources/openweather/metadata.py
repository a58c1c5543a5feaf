"""
OpenWeatherMap payload mapping.

Response shape (abridged):
    {"coord": {"lon", "lat"}, "weather": [{"main", "description"}],
     "main": {"temp", "pressure", "humidity"}, "wind": {"speed", "deg"},
     "clouds": {"all"}, "rain": {"1h"}, "dt": <epoch seconds>}
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


def map_weather(payload: Dict[str, Any]) -> Optional[MappedPayload]:
    main = payload.get("main") or {}
    wind = payload.get("wind") or {}
    clouds = payload.get("clouds") or {}
    conditions = payload.get("weather") or [{}]
    coord = payload.get("coord") or {}

    # "rain" is omitted entirely when it is not raining
    rain_1h = to_float((payload.get("rain") or {}).get("1h"))

    condition = conditions[0].get("description") or conditions[0].get("main")

    return MappedPayload(
        fields={
            "temperature": to_float(main.get("temp")),
            "pressure": to_float(main.get("pressure")),
            "humidity": to_float(main.get("humidity")),
            "wind_speed": to_float(wind.get("speed")),
            "wind_direction": to_float(wind.get("deg")),
            "cloud_cover": to_float(clouds.get("all")),
            "precipitation": rain_1h,
            "precipitation_intensity": classify_precipitation(rain_1h),
            "condition": condition.title() if condition else None,
        },
        observed_at=parse_timestamp(payload.get("dt")),
        coordinates=to_location(coord.get("lat"), coord.get("lon")),
    )


MAPPINGS = {
    Category.WEATHER: map_weather,
}
