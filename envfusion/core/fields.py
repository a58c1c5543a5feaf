"""
Common schema for normalized records.

``CATEGORY_FIELDS`` fixes, per category, which fields a normalized record may
carry, how overlapping values from several sources are merged, and which
semantic group each field lands in after fusion. Source mapping tables
(``envfusion.sources.<provider>.metadata``) use the parsing helpers below.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from envfusion.core.models import Category, Location


class FieldKind(str, Enum):
    CONTINUOUS = "continuous"  # inverse-distance weighted average
    CATEGORICAL = "categorical"  # last writer wins, by source priority
    LIST = "list"  # union with de-duplication


@dataclass(frozen=True)
class FieldSpec:
    kind: FieldKind
    group: str
    # Difference at which two sources are considered to fully disagree
    scale: Optional[float] = None
    # Angular quantity in degrees (averaged on the circle)
    circular: bool = False


@dataclass
class MappedPayload:
    """What a source mapping extracts from one raw payload."""

    fields: Dict[str, Any]
    observed_at: Optional[datetime] = None
    coordinates: Optional[Location] = None
    quality_hint: Optional[float] = None


WEATHER_FIELDS: Dict[str, FieldSpec] = {
    "temperature": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=20.0),
    "wind_speed": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=15.0),
    "wind_direction": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=180.0, circular=True),
    "pressure": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=30.0),
    "humidity": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=100.0),
    "cloud_cover": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=100.0),
    "precipitation": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=20.0),
    "precipitation_intensity": FieldSpec(FieldKind.CATEGORICAL, "weather"),
    "condition": FieldSpec(FieldKind.CATEGORICAL, "weather"),
    "alerts": FieldSpec(FieldKind.LIST, "alerts"),
}

OCEAN_FIELDS: Dict[str, FieldSpec] = {
    "surface_temperature": FieldSpec(FieldKind.CONTINUOUS, "ocean", scale=10.0),
    "wave_height": FieldSpec(FieldKind.CONTINUOUS, "ocean", scale=5.0),
    "salinity": FieldSpec(FieldKind.CONTINUOUS, "ocean", scale=5.0),
    "air_temperature": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=20.0),
    "wind_speed": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=15.0),
    "pressure": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=30.0),
    "alerts": FieldSpec(FieldKind.LIST, "alerts"),
}

SATELLITE_FIELDS: Dict[str, FieldSpec] = {
    "imagery_url": FieldSpec(FieldKind.CATEGORICAL, "imagery"),
    "platform": FieldSpec(FieldKind.CATEGORICAL, "imagery"),
    "cloud_cover": FieldSpec(FieldKind.CONTINUOUS, "weather", scale=100.0),
}

EVENT_FIELDS: Dict[str, FieldSpec] = {
    "events": FieldSpec(FieldKind.LIST, "events"),
    "alerts": FieldSpec(FieldKind.LIST, "alerts"),
}

CATEGORY_FIELDS: Dict[Category, Dict[str, FieldSpec]] = {
    Category.WEATHER: WEATHER_FIELDS,
    Category.OCEAN: OCEAN_FIELDS,
    Category.SATELLITE: SATELLITE_FIELDS,
    Category.EVENTS: EVENT_FIELDS,
}

# A record needs at least one field out of each listed set
REQUIRED_FIELDS: Dict[Category, Tuple[FrozenSet[str], ...]] = {
    Category.WEATHER: (frozenset({"temperature"}),),
    Category.OCEAN: (frozenset({"surface_temperature", "wave_height"}),),
    Category.SATELLITE: (frozenset({"imagery_url"}),),
    Category.EVENTS: (frozenset({"events", "alerts"}),),
}

LIST_GROUPS = ("events", "alerts")


def missing_required(category: Category, fields: Dict[str, Any]) -> Optional[str]:
    """Name the first unmet requirement, or None if the record is usable."""
    for options in REQUIRED_FIELDS.get(category, ()):
        if not any(fields.get(name) is not None for name in options):
            return " or ".join(sorted(options))
    return None


# =============================================================================
# Parsing helpers for source mapping tables
# =============================================================================


def to_float(value: Any) -> Optional[float]:
    """Parse a number, treating empty values and the NaN / "MM" sentinels as missing."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if value in ("", "MM", "NaN", "nan", "null"):
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:
        return None
    return number


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse epoch seconds/milliseconds or ISO-8601 into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000.0 if value > 1e11 else float(value)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def classify_precipitation(rate_mm_per_hour: Optional[float]) -> Optional[str]:
    """Map a precipitation rate to NONE / LIGHT / MODERATE / HEAVY."""
    if rate_mm_per_hour is None:
        return None
    if rate_mm_per_hour <= 0:
        return "NONE"
    if rate_mm_per_hour < 2.5:
        return "LIGHT"
    if rate_mm_per_hour < 7.6:
        return "MODERATE"
    return "HEAVY"


def kmh_to_ms(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value / 3.6, 2)


def pa_to_hpa(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value / 100.0, 1)


def to_location(lat: Any, lon: Any) -> Optional[Location]:
    """Build a Location from loose values; None when missing or out of range."""
    lat_f, lon_f = to_float(lat), to_float(lon)
    if lat_f is None or lon_f is None:
        return None
    try:
        return Location(lat=lat_f, lon=lon_f)
    except ValueError:
        return None


_SEVERITY_LEVELS = {
    "extreme": "HIGH",
    "severe": "HIGH",
    "high": "HIGH",
    "moderate": "MODERATE",
    "minor": "LOW",
    "low": "LOW",
}

SEVERITY_ORDER = {"HIGH": 0, "MODERATE": 1, "LOW": 2}


def normalize_severity(value: Any) -> str:
    """Collapse provider severity vocabularies into HIGH / MODERATE / LOW."""
    if not value:
        return "LOW"
    return _SEVERITY_LEVELS.get(str(value).strip().lower(), "LOW")
