"""
Correlation engine.

Four independent passes over a FusedRecord, each pure and
order-independent:
- spatial: sources close to the target
- temporal: how tightly the observations are aligned in time
- causal: an explicit rule table of known domain patterns
- cross-source: pairwise agreement of overlapping numeric fields
"""
import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Callable, Dict, List, Optional, Tuple

from envfusion.core.fields import CATEGORY_FIELDS, FieldKind
from envfusion.core.models import Correlation, CorrelationType, FusedRecord

logger = logging.getLogger(__name__)

TARGET = "target"


def spatial_confidence(distance_km: float, radius_km: float) -> float:
    """1 at the target, falling linearly to 0 at ``radius_km``."""
    if radius_km <= 0:
        return 0.0
    return max(0.0, 1.0 - distance_km / radius_km)


def temporal_confidence(skew_seconds: float, decay_seconds: float) -> float:
    """1 for simultaneous observations, 0 once the spread reaches ``decay_seconds``."""
    if decay_seconds <= 0:
        return 0.0
    return max(0.0, 1.0 - skew_seconds / decay_seconds)


# =============================================================================
# Causal rules
# =============================================================================


@dataclass(frozen=True)
class CausalRule:
    """A named cause -> effect pattern over the fused semantic groups."""

    name: str
    cause: str
    effect: str
    predicate: Callable[[Dict[str, Any]], bool]
    confidence: float
    explanation: str

    def matches(self, groups: Dict[str, Any]) -> bool:
        try:
            return bool(self.predicate(groups))
        except (TypeError, KeyError):
            return False


def _weather(groups: Dict[str, Any]) -> Dict[str, Any]:
    return groups.get("weather") or {}


def _ocean(groups: Dict[str, Any]) -> Dict[str, Any]:
    return groups.get("ocean") or {}


def _gte(value: Optional[float], threshold: float) -> bool:
    return value is not None and value >= threshold


CAUSAL_RULES: List[CausalRule] = [
    CausalRule(
        name="HIGH_OCEAN_TEMP",
        cause="HIGH_OCEAN_TEMP",
        effect="HEAVY_PRECIPITATION",
        predicate=lambda g: (
            (_ocean(g).get("surface_temperature") or 0) > 25
            and _weather(g).get("precipitation_intensity") == "HEAVY"
        ),
        confidence=0.7,
        explanation="Warm ocean temperatures can fuel convective precipitation",
    ),
    CausalRule(
        name="STRONG_WINDS",
        cause="STRONG_WINDS",
        effect="HIGH_SEAS",
        predicate=lambda g: (
            _gte(_weather(g).get("wind_speed"), 17.0)
            and _gte(_ocean(g).get("wave_height"), 4.0)
        ),
        confidence=0.6,
        explanation="Sustained gale-force winds build significant wave height",
    ),
    CausalRule(
        name="LOW_PRESSURE",
        cause="LOW_PRESSURE",
        effect="HEAVY_PRECIPITATION",
        predicate=lambda g: (
            (_weather(g).get("pressure") or 10_000) < 1000
            and _weather(g).get("precipitation_intensity") == "HEAVY"
        ),
        confidence=0.5,
        explanation="Low-pressure systems drive uplift and sustained rainfall",
    ),
]


# =============================================================================
# Engine
# =============================================================================


class CorrelationEngine:
    """
    Derives Correlations from a FusedRecord.

    Args:
        spatial_cutoff_km: Only sources closer than this get a spatial entry
        temporal_decay_seconds: Spread at which temporal confidence hits 0
        agreement_threshold: Minimum agreement for a cross-source entry
        rules: Causal rule table (defaults to CAUSAL_RULES)
    """

    def __init__(
        self,
        spatial_cutoff_km: float = 50.0,
        temporal_decay_seconds: float = 3600.0,
        agreement_threshold: float = 0.5,
        rules: Optional[List[CausalRule]] = None,
    ):
        self.spatial_cutoff_km = spatial_cutoff_km
        self.temporal_decay_seconds = temporal_decay_seconds
        self.agreement_threshold = agreement_threshold
        self.rules = CAUSAL_RULES if rules is None else rules

    def spatial(self, fused: FusedRecord) -> List[Correlation]:
        radius = fused.spatial.radius_km
        correlations = []
        for source_id, distance in sorted(fused.spatial.source_distances_km.items()):
            if distance >= self.spatial_cutoff_km:
                continue
            correlations.append(Correlation(
                type=CorrelationType.SPATIAL,
                subjects=(source_id, TARGET),
                confidence=round(spatial_confidence(distance, radius), 4),
                rationale=f"{source_id} observes {distance:.1f} km from the target",
            ))
        return correlations

    def temporal(self, fused: FusedRecord) -> List[Correlation]:
        if len(fused.sources) < 2:
            return []

        skew = fused.temporal.skew_seconds
        confidence = temporal_confidence(skew, self.temporal_decay_seconds)
        if confidence <= 0:
            return []

        return [Correlation(
            type=CorrelationType.TEMPORAL,
            subjects=(fused.temporal.earliest_source, fused.temporal.latest_source),
            confidence=round(confidence, 4),
            rationale=f"Observations span {skew / 60:.1f} minutes",
        )]

    def causal(self, fused: FusedRecord) -> List[Correlation]:
        return [
            Correlation(
                type=CorrelationType.CAUSAL,
                subjects=(rule.cause, rule.effect),
                confidence=rule.confidence,
                rationale=rule.explanation,
            )
            for rule in self.rules
            if rule.matches(fused.groups)
        ]

    def agreement(
        self, fused: FusedRecord, a: str, b: str
    ) -> Tuple[Optional[float], List[str]]:
        """
        Mean agreement of two sources over their overlapping numeric fields.

        Returns:
            (agreement, compared field names); agreement is None without overlap
        """
        schema = CATEGORY_FIELDS[fused.category]
        fields_a = fused.source_fields.get(a, {})
        fields_b = fused.source_fields.get(b, {})

        scores = []
        compared = []
        for name in sorted(set(fields_a) & set(fields_b)):
            spec = schema.get(name)
            if spec is None or spec.kind != FieldKind.CONTINUOUS or not spec.scale:
                continue
            diff = abs(float(fields_a[name]) - float(fields_b[name]))
            if spec.circular:
                diff = min(diff % 360.0, 360.0 - diff % 360.0)
            scores.append(max(0.0, 1.0 - diff / spec.scale))
            compared.append(name)

        if not scores:
            return None, []
        return sum(scores) / len(scores), compared

    def cross_source(self, fused: FusedRecord) -> List[Correlation]:
        correlations = []
        for a, b in combinations(sorted(fused.sources), 2):
            score, compared = self.agreement(fused, a, b)
            if score is None or score <= self.agreement_threshold:
                continue
            correlations.append(Correlation(
                type=CorrelationType.CROSS_SOURCE,
                subjects=(a, b),
                confidence=round(score, 4),
                rationale=f"{a} and {b} agree on {', '.join(compared)}",
            ))
        return correlations

    def correlate(self, fused: FusedRecord) -> List[Correlation]:
        """Run all four passes; ordering of the result is deterministic."""
        correlations = (
            self.spatial(fused)
            + self.temporal(fused)
            + self.causal(fused)
            + self.cross_source(fused)
        )
        logger.debug(
            f"{len(correlations)} correlations for {fused.category.value} "
            f"from {len(fused.sources)} sources"
        )
        return correlations
