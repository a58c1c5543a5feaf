"""
Centralized source registry.

Static catalogue of every provider the aggregator can fan out to:
identifier, priority, hourly request budget, declared categories, base
endpoint, declared high-value data types and geographic coverage.

Descriptors are immutable data. Behaviour lives in the source clients
(``envfusion.sources``) and rate limiting in ``envfusion.core.rate_limiter``.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from envfusion.core.models import Category, Location, Priority


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

# (min_lat, max_lat, min_lon, max_lon)
BoundingBox = Tuple[float, float, float, float]

UNITED_STATES: BoundingBox = (24.0, 50.0, -125.0, -65.0)


@dataclass(frozen=True)
class SourceDescriptor:
    """Immutable metadata for a single provider."""

    source_id: str
    display_name: str
    priority: Priority
    hourly_budget: int
    categories: FrozenSet[Category]
    base_url: str
    data_types: FrozenSet[str] = field(default_factory=frozenset)
    coverage: Optional[BoundingBox] = None  # None = global
    api_key_setting: Optional[str] = None  # attribute name on Settings

    @property
    def min_interval_seconds(self) -> float:
        """Minimum spacing between two granted calls."""
        return 3600.0 / self.hourly_budget

    def serves(self, category: Category) -> bool:
        return category in self.categories

    def covers(self, location: Location) -> bool:
        if self.coverage is None:
            return True
        min_lat, max_lat, min_lon, max_lon = self.coverage
        return min_lat <= location.lat <= max_lat and min_lon <= location.lon <= max_lon

    def to_dict(self) -> Dict[str, object]:
        return {
            "source_id": self.source_id,
            "display_name": self.display_name,
            "priority": self.priority.value,
            "hourly_budget": self.hourly_budget,
            "categories": sorted(c.value for c in self.categories),
            "base_url": self.base_url,
            "data_types": sorted(self.data_types),
            "coverage": list(self.coverage) if self.coverage else None,
            "requires_api_key": self.api_key_setting is not None,
        }


def _cats(*categories: Category) -> FrozenSet[Category]:
    return frozenset(categories)


# ---------------------------------------------------------------------------
# SOURCE REGISTRY: 11 providers
# ---------------------------------------------------------------------------

SOURCE_REGISTRY: Dict[str, SourceDescriptor] = {
    # ── Weather (5) ───────────────────────────────────────────────────────
    "openweather": SourceDescriptor(
        source_id="openweather",
        display_name="OpenWeatherMap",
        priority=Priority.HIGH,
        hourly_budget=1000,
        categories=_cats(Category.WEATHER),
        base_url="https://api.openweathermap.org/data/2.5",
        data_types=frozenset({"current_conditions"}),
        api_key_setting="openweather_api_key",
    ),
    "weatherapi": SourceDescriptor(
        source_id="weatherapi",
        display_name="WeatherAPI.com",
        priority=Priority.HIGH,
        hourly_budget=1_000_000,
        categories=_cats(Category.WEATHER, Category.EVENTS),
        base_url="https://api.weatherapi.com/v1",
        data_types=frozenset({"current_conditions"}),
        api_key_setting="weatherapi_key",
    ),
    "weather_gov": SourceDescriptor(
        source_id="weather_gov",
        display_name="National Weather Service",
        priority=Priority.HIGH,
        hourly_budget=1000,
        categories=_cats(Category.WEATHER, Category.EVENTS),
        base_url="https://api.weather.gov",
        data_types=frozenset({"station_data"}),
        coverage=UNITED_STATES,
    ),
    "tomorrow": SourceDescriptor(
        source_id="tomorrow",
        display_name="Tomorrow.io",
        priority=Priority.MEDIUM,
        hourly_budget=1000,
        categories=_cats(Category.WEATHER),
        base_url="https://api.tomorrow.io/v4",
        api_key_setting="tomorrow_api_key",
    ),
    "open_meteo": SourceDescriptor(
        source_id="open_meteo",
        display_name="Open-Meteo",
        priority=Priority.MEDIUM,
        hourly_budget=1000,
        categories=_cats(Category.WEATHER, Category.OCEAN),
        base_url="https://api.open-meteo.com/v1",
    ),
    # ── Ocean (2 + open_meteo) ────────────────────────────────────────────
    "ndbc": SourceDescriptor(
        source_id="ndbc",
        display_name="NOAA National Data Buoy Center",
        priority=Priority.HIGH,
        hourly_budget=1000,
        categories=_cats(Category.OCEAN, Category.WEATHER),
        base_url="https://www.ndbc.noaa.gov",
        data_types=frozenset({"station_data"}),
    ),
    "argo": SourceDescriptor(
        source_id="argo",
        display_name="Argo Float Network (ERDDAP)",
        priority=Priority.HIGH,
        hourly_budget=200,
        categories=_cats(Category.OCEAN),
        base_url="https://erddap.ifremer.fr/erddap",
    ),
    # ── Satellite (2) ─────────────────────────────────────────────────────
    "nasa_earth": SourceDescriptor(
        source_id="nasa_earth",
        display_name="NASA Earth Imagery",
        priority=Priority.HIGH,
        hourly_budget=1000,
        categories=_cats(Category.SATELLITE),
        base_url="https://api.nasa.gov/planetary/earth",
        data_types=frozenset({"imagery"}),
        api_key_setting="nasa_api_key",
    ),
    "planetary_computer": SourceDescriptor(
        source_id="planetary_computer",
        display_name="Microsoft Planetary Computer (Sentinel-2)",
        priority=Priority.MEDIUM,
        hourly_budget=500,
        categories=_cats(Category.SATELLITE),
        base_url="https://planetarycomputer.microsoft.com/api/stac/v1",
        data_types=frozenset({"imagery"}),
    ),
    # ── Events (2 + weatherapi, weather_gov) ──────────────────────────────
    "nasa_eonet": SourceDescriptor(
        source_id="nasa_eonet",
        display_name="NASA Earth Observatory Natural Event Tracker",
        priority=Priority.HIGH,
        hourly_budget=1000,
        categories=_cats(Category.EVENTS),
        base_url="https://eonet.gsfc.nasa.gov/api/v3",
    ),
    "usgs_earthquakes": SourceDescriptor(
        source_id="usgs_earthquakes",
        display_name="USGS Earthquake Catalog",
        priority=Priority.MEDIUM,
        hourly_budget=1000,
        categories=_cats(Category.EVENTS),
        base_url="https://earthquake.usgs.gov/fdsnws/event/1",
    ),
}


def get_source(source_id: str) -> Optional[SourceDescriptor]:
    """Return the descriptor for ``source_id``, or None if unknown."""
    return SOURCE_REGISTRY.get(source_id)


def sources_for_category(
    category: Category,
    registry: Optional[Dict[str, SourceDescriptor]] = None,
) -> List[SourceDescriptor]:
    """Descriptors declaring ``category``, highest priority first."""
    registry = SOURCE_REGISTRY if registry is None else registry
    matches = [d for d in registry.values() if d.serves(category)]
    return sorted(matches, key=lambda d: (-d.priority.rank, d.source_id))
