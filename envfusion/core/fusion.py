"""
Fusion engine: merges the normalized records of one aggregation call.

Three axes:
- Temporal: reference time is the newest observation, skew the spread
  between the oldest and the newest.
- Spatial: haversine distance of every source to the target; sources
  beyond the radius are kept but flagged low-confidence.
- Semantic: fields are grouped by domain (weather / ocean / imagery /
  events / alerts) and merged per field kind:
    CONTINUOUS   inverse-distance weighted average, weight 1 / (1 + km)
    CATEGORICAL  last writer wins, sources applied in ascending priority
    LIST         union, de-duplicated by identity key
"""
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from envfusion.core.fields import (
    CATEGORY_FIELDS,
    LIST_GROUPS,
    SEVERITY_ORDER,
    FieldKind,
    FieldSpec,
)
from envfusion.core.geo import haversine_km
from envfusion.core.models import (
    FusedRecord,
    Location,
    NormalizedRecord,
    Priority,
    SpatialFusion,
    TemporalFusion,
)
from envfusion.core.source_registry import SOURCE_REGISTRY, SourceDescriptor

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_KM = 100.0

# Derived alert thresholds
STRONG_WIND_MS = 17.0  # Beaufort 8 (gale)
HIGH_SEAS_M = 4.0  # Douglas sea state 6 (very rough)


def alert_identity(item: Dict[str, Any]) -> Tuple[str, ...]:
    """Stable de-duplication key for an alert or event."""
    if item.get("id"):
        return ("id", str(item["id"]))
    label = item.get("headline") or item.get("title") or ""
    kind = item.get("type") or item.get("event") or ""
    return ("label", str(label).strip().lower(), str(kind).strip().lower())


def weighted_mean(values: List[Tuple[float, float]]) -> float:
    """values: (value, weight) pairs."""
    total_weight = sum(w for _, w in values)
    return sum(v * w for v, w in values) / total_weight


def circular_mean(values: List[Tuple[float, float]]) -> float:
    """Weighted mean of angles in degrees, result in [0, 360)."""
    x = sum(math.cos(math.radians(v)) * w for v, w in values)
    y = sum(math.sin(math.radians(v)) * w for v, w in values)
    if abs(x) < 1e-12 and abs(y) < 1e-12:
        return weighted_mean(values) % 360.0
    return math.degrees(math.atan2(y, x)) % 360.0


def derive_alerts(groups: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Alerts implied by fused measurements rather than reported by a source."""
    weather = groups.get("weather") or {}
    ocean = groups.get("ocean") or {}
    derived = []

    if weather.get("precipitation_intensity") == "HEAVY":
        derived.append({
            "type": "HEAVY_RAIN",
            "severity": "MODERATE",
            "headline": "Heavy precipitation detected",
            "action": "MONITOR",
            "source": "derived",
        })

    wind = weather.get("wind_speed")
    if wind is not None and wind >= STRONG_WIND_MS:
        derived.append({
            "type": "STRONG_WINDS",
            "severity": "MODERATE",
            "headline": f"Strong winds ({wind:.1f} m/s)",
            "action": "ADVISE",
            "source": "derived",
        })

    waves = ocean.get("wave_height")
    if waves is not None and waves >= HIGH_SEAS_M:
        derived.append({
            "type": "HIGH_SEAS",
            "severity": "MODERATE",
            "headline": f"High seas ({waves:.1f} m significant wave height)",
            "action": "ADVISE",
            "source": "derived",
        })

    return derived


class FusionEngine:
    """
    Stateless merger of NormalizedRecords.

    Args:
        registry: Source descriptors, used for priorities (unknown sources
            rank LOW)
        default_radius_km: Radius used when ``fuse`` is not given one
    """

    def __init__(
        self,
        registry: Optional[Dict[str, SourceDescriptor]] = None,
        default_radius_km: float = DEFAULT_RADIUS_KM,
    ):
        self.registry = SOURCE_REGISTRY if registry is None else registry
        self.default_radius_km = default_radius_km

    def priority_of(self, source_id: str) -> Priority:
        descriptor = self.registry.get(source_id)
        return descriptor.priority if descriptor else Priority.LOW

    def _ascending(self, records: Iterable[NormalizedRecord]) -> List[NormalizedRecord]:
        return sorted(
            records, key=lambda r: (self.priority_of(r.source_id).rank, r.source_id)
        )

    # =========================================================================
    # Axes
    # =========================================================================

    def fuse_temporal(self, records: List[NormalizedRecord]) -> TemporalFusion:
        earliest = min(records, key=lambda r: (r.observed_at, r.source_id))
        latest = max(records, key=lambda r: (r.observed_at, r.source_id))
        skew = (latest.observed_at - earliest.observed_at).total_seconds()
        return TemporalFusion(
            reference_time=latest.observed_at,
            skew_seconds=round(skew, 3),
            earliest_source=earliest.source_id,
            latest_source=latest.source_id,
        )

    def fuse_spatial(
        self, records: List[NormalizedRecord], target: Location, radius_km: float
    ) -> SpatialFusion:
        distances: Dict[str, float] = {}
        for record in records:
            if record.coordinates is None:
                # Point-queried sources report for the target itself
                distances[record.source_id] = 0.0
            else:
                distances[record.source_id] = round(
                    haversine_km(
                        target.lat, target.lon,
                        record.coordinates.lat, record.coordinates.lon,
                    ),
                    3,
                )

        low_confidence = sorted(s for s, d in distances.items() if d > radius_km)
        return SpatialFusion(
            target=target,
            radius_km=radius_km,
            source_distances_km=distances,
            low_confidence_sources=low_confidence,
        )

    def fuse_semantic(
        self,
        records: List[NormalizedRecord],
        distances: Dict[str, float],
    ) -> Dict[str, Any]:
        category = records[0].category
        schema: Dict[str, FieldSpec] = CATEGORY_FIELDS[category]
        ordered = self._ascending(records)

        groups: Dict[str, Any] = {}
        for name, spec in schema.items():
            contributing = [r for r in ordered if name in r.fields]
            if not contributing:
                continue

            if spec.kind == FieldKind.LIST:
                # Highest priority first so its copy of a duplicate is kept
                merged = groups.setdefault(spec.group, [])
                seen = {alert_identity(item) for item in merged}
                for record in reversed(contributing):
                    for item in record.fields[name]:
                        identity = alert_identity(item)
                        if identity not in seen:
                            seen.add(identity)
                            merged.append(item)
                continue

            group = groups.setdefault(spec.group, {})
            if spec.kind == FieldKind.CONTINUOUS:
                pairs = [
                    (float(r.fields[name]), 1.0 / (1.0 + distances.get(r.source_id, 0.0)))
                    for r in contributing
                ]
                if spec.circular:
                    group[name] = round(circular_mean(pairs), 2) % 360.0
                else:
                    group[name] = round(weighted_mean(pairs), 2)
            else:
                for record in contributing:
                    group[name] = record.fields[name]

        return groups

    # =========================================================================
    # Entry point
    # =========================================================================

    def fuse(
        self,
        records: List[NormalizedRecord],
        target: Location,
        radius_km: Optional[float] = None,
    ) -> FusedRecord:
        """
        Merge records into one FusedRecord.

        Args:
            records: Normalized records of a single category (at least one)
            target: Requested location
            radius_km: Spatial confidence radius (defaults to engine default)

        Raises:
            ValueError: If ``records`` is empty or mixes categories
        """
        if not records:
            raise ValueError("Cannot fuse an empty record set")
        category = records[0].category
        if any(r.category != category for r in records):
            raise ValueError("Cannot fuse records of different categories")

        radius_km = self.default_radius_km if radius_km is None else radius_km

        temporal = self.fuse_temporal(records)
        spatial = self.fuse_spatial(records, target, radius_km)
        groups = self.fuse_semantic(records, spatial.source_distances_km)

        derived = derive_alerts(groups)
        if derived:
            alerts = groups.setdefault("alerts", [])
            seen = {alert_identity(a) for a in alerts}
            alerts.extend(a for a in derived if alert_identity(a) not in seen)

        for name in LIST_GROUPS:
            if name in groups:
                groups[name].sort(key=lambda a: SEVERITY_ORDER.get(a.get("severity"), 3))

        source_fields = {
            r.source_id: {
                name: value for name, value in r.fields.items()
                if not isinstance(value, list)
            }
            for r in records
        }

        sources = sorted({r.source_id for r in records})
        logger.debug(
            f"Fused {len(records)} {category.value} records from {sources} "
            f"(skew={temporal.skew_seconds:.0f}s, "
            f"low_confidence={spatial.low_confidence_sources})"
        )

        return FusedRecord(
            category=category,
            sources=sources,
            temporal=temporal,
            spatial=spatial,
            groups=groups,
            source_fields=source_fields,
        )
