"""
Configuration module with strict validation.

Key principles:
- APP STARTUP does NOT require any provider API key
- A source whose required key is missing is simply not eligible for fan-out
- Quality weights, thresholds, TTLs and radii are plain configuration values
- Safe defaults for all optional settings
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class QualityWeights(BaseModel):
    """
    Bonus constants used by the quality engine.

    Every value is a bonus added to a score that starts at 0 and is
    clamped to [0, 1].
    """

    two_sources: float = Field(default=0.3, ge=0.0, le=1.0)
    three_sources: float = Field(default=0.2, ge=0.0, le=1.0)

    recency_30_min: float = Field(default=0.3, ge=0.0, le=1.0)
    recency_2_hours: float = Field(default=0.2, ge=0.0, le=1.0)
    recency_6_hours: float = Field(default=0.1, ge=0.0, le=1.0)

    data_type_bonuses: Dict[str, float] = Field(
        default_factory=lambda: {
            "imagery": 0.2,
            "station_data": 0.15,
            "current_conditions": 0.15,
        },
        description="Bonus per high-value data type present among contributing sources",
    )


DEFAULT_QUALITY_THRESHOLDS: Dict[str, float] = {
    "weather": 0.8,
    "events": 0.8,  # NASA-sourced
    "ocean": 0.7,
    "satellite": 0.8,  # NASA-sourced
}

# Data-age windows (seconds) for the full, middle and low recency bonus
_STATION_RECENCY = [30 * 60, 2 * 3600, 6 * 3600]

DEFAULT_RECENCY_WINDOWS: Dict[str, List[int]] = {
    "weather": list(_STATION_RECENCY),
    "ocean": list(_STATION_RECENCY),
    "events": list(_STATION_RECENCY),
    # Landsat 8 revisits every 16 days, Sentinel-2 every 5
    "satellite": [2 * 86400, 7 * 86400, 16 * 86400],
}

DEFAULT_CACHE_TTL_SECONDS: Dict[str, int] = {
    "weather": 5 * 60,
    "satellite": 5 * 60,
    "ocean": 10 * 60,
    "events": 30 * 60,
}

DEFAULT_EXPECTED_INPUTS: Dict[str, list] = {
    "weather": ["station_data"],
    "satellite": ["imagery"],
    "ocean": ["station_data"],
    "events": [],
}


class Settings(BaseSettings):
    """Application settings with validation.

    Loads from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    # Provider credentials (all OPTIONAL for startup)
    openweather_api_key: Optional[str] = Field(
        default=None,
        description="OpenWeatherMap key - source is skipped when missing"
    )
    weatherapi_key: Optional[str] = Field(
        default=None,
        description="WeatherAPI.com key - source is skipped when missing"
    )
    tomorrow_api_key: Optional[str] = Field(
        default=None,
        description="Tomorrow.io key - source is skipped when missing"
    )
    nasa_api_key: str = Field(
        default="DEMO_KEY",
        description="api.nasa.gov key (DEMO_KEY works with a low hourly limit)"
    )

    # Fan-out
    fetch_timeout_seconds: float = Field(
        default=15.0,
        ge=0.1,
        le=120.0,
        description="Timeout applied to each individual source call"
    )
    rate_limit_wait_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=300.0,
        description="How long to wait for a rate-limit slot (0 = skip the source)"
    )

    # Fusion / correlation
    default_radius_km: float = Field(
        default=100.0,
        gt=0.0,
        le=20000.0,
        description="Spatial radius; sources beyond it are flagged low-confidence"
    )
    spatial_correlation_km: float = Field(
        default=50.0,
        gt=0.0,
        description="Sources closer than this get a spatial correlation entry"
    )
    temporal_decay_seconds: float = Field(
        default=3600.0,
        gt=0.0,
        description="Temporal spread at which temporal confidence reaches zero"
    )
    cross_source_agreement_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum agreement for a cross-source correlation entry"
    )

    # Quality gate
    quality_thresholds: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_QUALITY_THRESHOLDS)
    )
    quality_weights: QualityWeights = Field(default_factory=QualityWeights)
    recency_windows: Dict[str, List[int]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_RECENCY_WINDOWS.items()},
        description="Per category: data age limits for the 30 min / 2 h / 6 h style bonuses"
    )
    expected_inputs: Dict[str, list] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_EXPECTED_INPUTS.items()}
    )

    # Cache
    cache_ttl_seconds: Dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_CACHE_TTL_SECONDS)
    )
    cache_max_size: int = Field(default=500, ge=1, le=100000)
    location_precision: int = Field(
        default=4,
        ge=0,
        le=8,
        description="Decimal degrees kept when bucketing locations into cache keys"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # Testing
    run_integration_tests: bool = Field(
        default=False,
        description="Enable integration tests (requires network)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("quality_thresholds")
    @classmethod
    def validate_thresholds(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Thresholds are scores, so they must sit in [0, 1]."""
        merged = dict(DEFAULT_QUALITY_THRESHOLDS)
        for category, threshold in v.items():
            if not 0.0 <= threshold <= 1.0:
                raise ValueError(
                    f"quality threshold for '{category}' must be within [0, 1]"
                )
            merged[category.lower()] = threshold
        return merged

    @field_validator("recency_windows")
    @classmethod
    def validate_recency_windows(cls, v: Dict[str, List[int]]) -> Dict[str, List[int]]:
        """Each category needs three increasing, positive age limits."""
        merged = {k: list(windows) for k, windows in DEFAULT_RECENCY_WINDOWS.items()}
        for category, windows in v.items():
            if len(windows) != 3 or windows[0] <= 0 or sorted(windows) != list(windows):
                raise ValueError(
                    f"recency windows for '{category}' must be three increasing "
                    f"positive values in seconds"
                )
            merged[category.lower()] = list(windows)
        return merged

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_ttls(cls, v: Dict[str, int]) -> Dict[str, int]:
        merged = dict(DEFAULT_CACHE_TTL_SECONDS)
        for category, ttl in v.items():
            if ttl <= 0:
                raise ValueError(f"cache TTL for '{category}' must be positive")
            merged[category.lower()] = ttl
        return merged

    def quality_threshold_for(self, category: str) -> float:
        """Pass threshold for a category (0.7 for anything unlisted)."""
        return self.quality_thresholds.get(category.lower(), 0.7)

    def recency_windows_for(self, category: str) -> List[int]:
        """Recency bonus age limits for a category (station windows for anything unlisted)."""
        return self.recency_windows.get(category.lower(), _STATION_RECENCY)

    def cache_ttl_for(self, category: str) -> int:
        """Cache TTL in seconds for a category (10 minutes for anything unlisted)."""
        return self.cache_ttl_seconds.get(category.lower(), 10 * 60)

    def get_api_key(self, setting_name: Optional[str]) -> Optional[str]:
        """
        Look up a provider credential by its settings attribute name.

        Returns:
            Optional[str]: The key if configured, None otherwise
        """
        if not setting_name:
            return None
        return getattr(self, setting_name, None)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    This pattern allows:
    - Easy testing (can reset settings between tests)
    - Lazy loading (only loads when first accessed)
    - Singleton pattern (same instance used everywhere)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """
    Reset the global settings instance.

    Useful for testing to ensure clean state between tests.
    """
    global _settings
    _settings = None
