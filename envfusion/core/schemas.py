"""
Pydantic schemas for aggregation parameters and API requests.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from envfusion.core.models import Category, Location


class AggregationParams(BaseModel):
    """Per-request knobs passed down to the orchestrator and source clients."""

    radius_km: Optional[float] = Field(
        default=None,
        gt=0,
        le=20000,
        description="Spatial radius in km (defaults to DEFAULT_RADIUS_KM)"
    )
    days: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Look-back window in days for event feeds"
    )
    limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum items requested from list-style feeds"
    )
    sources: Optional[List[str]] = Field(
        default=None,
        description="Restrict the fan-out to these source ids"
    )
    exclude_sources: Optional[List[str]] = Field(
        default=None,
        description="Leave these source ids out of the fan-out"
    )

    @field_validator("sources", "exclude_sources")
    @classmethod
    def normalize_source_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        """Lowercase, strip, drop blanks and duplicates."""
        if v is None:
            return None
        cleaned = sorted({s.strip().lower() for s in v if s and s.strip()})
        return cleaned or None

    def client_params(self, radius_km: float) -> Dict[str, Any]:
        """Plain dict handed to ``BaseSourceClient.fetch``."""
        return {"radius_km": radius_km, "days": self.days, "limit": self.limit}


class LocationIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def to_location(self) -> Location:
        return Location(lat=self.lat, lon=self.lon)


class AggregateRequest(BaseModel):
    """Request schema for POST /aggregate."""

    location: LocationIn
    category: Category = Field(
        ...,
        description="weather, ocean, satellite or events (case-insensitive)"
    )
    params: AggregationParams = Field(default_factory=AggregationParams)
    force_refresh: bool = Field(
        default=False,
        description="Skip the cache lookup (the result is still cached on pass)"
    )

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v: Any) -> Category:
        if isinstance(v, str):
            return Category.parse(v)
        return v
