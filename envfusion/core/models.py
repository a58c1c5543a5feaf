"""
Domain models for the aggregation pipeline.

Plain dataclasses: they are created and discarded within a single
aggregation call, except for AggregationResult, which is what the cache
holds. Every model exposes ``to_dict()`` returning JSON-compatible data so a
process-external cache can be substituted.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from envfusion.core.api_errors import FetchErrorCode


class Category(str, Enum):
    """Requested data category."""

    WEATHER = "weather"
    OCEAN = "ocean"
    SATELLITE = "satellite"
    EVENTS = "events"

    @classmethod
    def parse(cls, value: "str | Category") -> "Category":
        """Accept enum members, values ('weather') or names ('WEATHER')."""
        if isinstance(value, Category):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(
                f"Unknown category '{value}'. Must be one of: "
                f"{', '.join(c.name for c in cls)}"
            ) from None


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Higher number wins last-writer-wins merges."""
        return {"HIGH": 3, "MEDIUM": 2, "LOW": 1}[self.value]


@dataclass(frozen=True)
class Location:
    """WGS84 point in decimal degrees."""

    lat: float
    lon: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lon}")

    def rounded(self, precision: int) -> Tuple[float, float]:
        return round(self.lat, precision), round(self.lon, precision)

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# =============================================================================
# Fetch
# =============================================================================


@dataclass
class FetchResult:
    """Outcome of one request to one provider."""

    source_id: str
    success: bool
    payload: Any = None
    error_code: Optional[FetchErrorCode] = None
    error: Optional[str] = None
    elapsed_seconds: float = 0.0
    timestamp: Optional[datetime] = None

    @classmethod
    def failure(
        cls,
        source_id: str,
        code: FetchErrorCode,
        error: str,
        elapsed_seconds: float = 0.0,
        timestamp: Optional[datetime] = None,
    ) -> "FetchResult":
        return cls(
            source_id=source_id,
            success=False,
            error_code=code,
            error=error,
            elapsed_seconds=elapsed_seconds,
            timestamp=timestamp,
        )

    def summary(self) -> Dict[str, Any]:
        """Diagnostic view without the raw payload."""
        return {
            "success": self.success,
            "code": self.error_code.value if self.error_code else None,
            "error": self.error,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "timestamp": _iso(self.timestamp),
        }


# =============================================================================
# Normalize
# =============================================================================


@dataclass
class NormalizedRecord:
    """One source's payload mapped into the common schema of a category."""

    category: "Category"
    source_id: str
    fields: Dict[str, Any]
    observed_at: datetime
    coordinates: Optional[Location] = None
    quality_hint: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "source_id": self.source_id,
            "fields": self.fields,
            "observed_at": _iso(self.observed_at),
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
            "quality_hint": self.quality_hint,
        }


# =============================================================================
# Fuse
# =============================================================================


@dataclass
class TemporalFusion:
    reference_time: datetime
    skew_seconds: float
    earliest_source: Optional[str] = None
    latest_source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference_time": _iso(self.reference_time),
            "skew_seconds": self.skew_seconds,
            "earliest_source": self.earliest_source,
            "latest_source": self.latest_source,
        }


@dataclass
class SpatialFusion:
    target: Location
    radius_km: float
    source_distances_km: Dict[str, float] = field(default_factory=dict)
    low_confidence_sources: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "radius_km": self.radius_km,
            "source_distances_km": self.source_distances_km,
            "low_confidence_sources": self.low_confidence_sources,
        }


@dataclass
class FusedRecord:
    """All normalized records of one aggregation call merged together."""

    category: "Category"
    sources: List[str]
    temporal: TemporalFusion
    spatial: SpatialFusion
    groups: Dict[str, Any]
    # Per-source numeric/categorical values, kept for cross-source comparison
    source_fields: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "sources": self.sources,
            "temporal": self.temporal.to_dict(),
            "spatial": self.spatial.to_dict(),
            "groups": self.groups,
            "source_fields": self.source_fields,
        }


# =============================================================================
# Correlate / score
# =============================================================================


class CorrelationType(str, Enum):
    SPATIAL = "spatial"
    TEMPORAL = "temporal"
    CAUSAL = "causal"
    CROSS_SOURCE = "cross_source"


@dataclass(frozen=True)
class Correlation:
    """Relationship between two data points, with a confidence in [0, 1]."""

    type: CorrelationType
    subjects: Tuple[str, str]
    confidence: float
    rationale: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "subjects": list(self.subjects),
            "confidence": self.confidence,
            "rationale": self.rationale,
        }


@dataclass
class QualityReport:
    score: float
    threshold: float
    passed: bool
    issues: List[str] = field(default_factory=list)
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "threshold": self.threshold,
            "pass": self.passed,
            "issues": self.issues,
            "factors": self.factors,
        }


@dataclass
class AggregationResult:
    """The bundle returned to callers and held by the cache."""

    location: Location
    category: "Category"
    fused: FusedRecord
    correlations: List[Correlation]
    quality: QualityReport
    fetch_summary: Dict[str, Dict[str, Any]]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "category": self.category.value,
            "fused": self.fused.to_dict(),
            "correlations": [c.to_dict() for c in self.correlations],
            "quality": self.quality.to_dict(),
            "fetch_summary": self.fetch_summary,
            "created_at": _iso(self.created_at),
        }
