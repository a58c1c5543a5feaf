"""
Normalizer: raw provider payload -> NormalizedRecord.

One mapping function per (source, category) pair, registered in
``envfusion.sources.SOURCE_MAPPINGS``. The normalizer never fabricates
values: a payload lacking the minimum fields of its category yields None
(NORMALIZATION_SKIPPED) instead of a partial record.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from envfusion.core.api_errors import FetchErrorCode
from envfusion.core.fields import CATEGORY_FIELDS, missing_required
from envfusion.core.models import Category, FetchResult, NormalizedRecord

logger = logging.getLogger(__name__)


def _default_mappings():
    from envfusion.sources import SOURCE_MAPPINGS
    return SOURCE_MAPPINGS


class Normalizer:
    """Applies the (source, category) mapping table to fetch results."""

    def __init__(self, mappings: Optional[Dict] = None):
        self.mappings = _default_mappings() if mappings is None else mappings

    def normalize(
        self, result: FetchResult, category: Category
    ) -> Tuple[Optional[NormalizedRecord], Optional[str]]:
        """
        Map one successful fetch into the common schema.

        Returns:
            (record, None) on success, (None, reason) when skipped
        """
        if not result.success:
            return None, "fetch failed"

        mapping = self.mappings.get((result.source_id, category))
        if mapping is None:
            return None, f"no mapping for {result.source_id}/{category.value}"

        try:
            mapped = mapping(result.payload)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            return None, f"unreadable payload: {e!r}"
        if mapped is None:
            return None, "payload has no usable section"

        known = CATEGORY_FIELDS[category]
        fields = {
            name: value for name, value in mapped.fields.items()
            if name in known and value is not None
        }

        missing = missing_required(category, fields)
        if missing:
            return None, f"missing required field: {missing}"

        observed_at = (
            mapped.observed_at
            or result.timestamp
            or datetime.now(timezone.utc)
        )

        hint = mapped.quality_hint
        if hint is not None:
            hint = min(1.0, max(0.0, hint))

        record = NormalizedRecord(
            category=category,
            source_id=result.source_id,
            fields=fields,
            observed_at=observed_at,
            coordinates=mapped.coordinates,
            quality_hint=hint,
        )
        return record, None

    def normalize_all(
        self, results: Dict[str, FetchResult], category: Category
    ) -> Tuple[List[NormalizedRecord], Dict[str, str]]:
        """
        Normalize every successful result.

        Returns:
            (records, skipped) where skipped maps source_id -> reason
        """
        records: List[NormalizedRecord] = []
        skipped: Dict[str, str] = {}

        for source_id, result in results.items():
            if not result.success:
                continue
            record, reason = self.normalize(result, category)
            if record is None:
                logger.debug(
                    f"[{source_id}] {FetchErrorCode.NORMALIZATION_SKIPPED.value}: {reason}"
                )
                skipped[source_id] = reason
                continue
            records.append(record)

        return records, skipped
