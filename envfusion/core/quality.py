"""
Quality engine: scores a fused result and applies the pass threshold.

The score starts at 0 and accumulates bounded bonuses (source diversity,
recency, high-value data types), then is clamped to [0, 1]. All bonus
values and thresholds come from Settings so they can be tuned without
code changes.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from envfusion.core.config import Settings, get_settings
from envfusion.core.fields import CATEGORY_FIELDS, FieldKind
from envfusion.core.models import (
    Correlation,
    CorrelationType,
    FusedRecord,
    QualityReport,
)
from envfusion.core.source_registry import SOURCE_REGISTRY, SourceDescriptor

logger = logging.getLogger(__name__)

ISSUE_SOURCE_DIVERSITY = "insufficient source diversity"
ISSUE_RECENCY = "insufficient recency"
ISSUE_TEMPORAL_MISALIGNMENT = "temporal misalignment"
ISSUE_LOW_SPATIAL_CONFIDENCE = "low spatial confidence"
ISSUE_NO_AGREEMENT = "no cross-source agreement"
ISSUE_MISSING_INPUT = "missing expected input"


class QualityEngine:
    """Scores FusedRecords against the per-category pass threshold."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[Dict[str, SourceDescriptor]] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = SOURCE_REGISTRY if registry is None else registry

    def data_types_of(self, sources: List[str]) -> set:
        types = set()
        for source_id in sources:
            descriptor = self.registry.get(source_id)
            if descriptor:
                types.update(descriptor.data_types)
        return types

    def recency_bonus(self, age_seconds: float, category: str) -> float:
        weights = self.settings.quality_weights
        full, middle, low = self.settings.recency_windows_for(category)
        if age_seconds < full:
            return weights.recency_30_min
        if age_seconds < middle:
            return weights.recency_2_hours
        if age_seconds < low:
            return weights.recency_6_hours
        return 0.0

    def score(
        self,
        fused: FusedRecord,
        correlations: List[Correlation],
        now: Optional[datetime] = None,
    ) -> QualityReport:
        """
        Score a fused record.

        Args:
            fused: Output of the fusion engine
            correlations: Output of the correlation engine for ``fused``
            now: Reference "now" for data age (defaults to current UTC time)

        Returns:
            QualityReport with score, threshold, pass flag, issues and the
            factors that contributed to the score
        """
        now = now or datetime.now(timezone.utc)
        weights = self.settings.quality_weights
        category = fused.category.value

        score = 0.0
        issues: List[str] = []
        factors: List[str] = []

        # Source diversity
        source_count = len(fused.sources)
        if source_count >= 2:
            score += weights.two_sources
            factors.append(f"{source_count} sources (+{weights.two_sources:g})")
        if source_count >= 3:
            score += weights.three_sources
            factors.append(f">=3 sources (+{weights.three_sources:g})")
        if source_count < 2:
            issues.append(ISSUE_SOURCE_DIVERSITY)

        # Recency
        age_seconds = max(0.0, (now - fused.temporal.reference_time).total_seconds())
        recency = self.recency_bonus(age_seconds, category)
        if recency:
            score += recency
            factors.append(f"data age {age_seconds / 60:.0f} min (+{recency:g})")
        if recency < weights.recency_30_min:
            issues.append(ISSUE_RECENCY)

        if fused.temporal.skew_seconds > self.settings.temporal_decay_seconds:
            issues.append(ISSUE_TEMPORAL_MISALIGNMENT)

        # High-value data types
        present_types = self.data_types_of(fused.sources)
        for data_type, bonus in sorted(weights.data_type_bonuses.items()):
            if data_type in present_types:
                score += bonus
                factors.append(f"{data_type} (+{bonus:g})")

        for expected in self.settings.expected_inputs.get(category, []):
            if expected not in present_types:
                issues.append(f"{ISSUE_MISSING_INPUT}: {expected}")

        # Confidence diagnostics
        if fused.spatial.low_confidence_sources:
            issues.append(
                f"{ISSUE_LOW_SPATIAL_CONFIDENCE}: "
                f"{', '.join(fused.spatial.low_confidence_sources)}"
            )

        has_numeric_fields = any(
            spec.kind == FieldKind.CONTINUOUS
            for spec in CATEGORY_FIELDS[fused.category].values()
        )
        agreed = any(c.type == CorrelationType.CROSS_SOURCE for c in correlations)
        if source_count >= 2 and has_numeric_fields and not agreed:
            issues.append(ISSUE_NO_AGREEMENT)

        score = round(min(1.0, max(0.0, score)), 4)
        threshold = self.settings.quality_threshold_for(category)
        passed = score >= threshold

        logger.debug(
            f"Quality {category}: score={score} threshold={threshold} "
            f"pass={passed} issues={issues}"
        )

        return QualityReport(
            score=score,
            threshold=threshold,
            passed=passed,
            issues=issues,
            factors=factors,
        )
