"""
Aggregator: the entry point of the fusion pipeline.

    cache lookup -> fan-out -> normalize -> fuse -> correlate -> score

A result is cached only when it passes the quality gate, so a rejected
call is retried from scratch next time instead of serving a known-bad
answer. Per-source failures are absorbed; only NO_SOURCES_AVAILABLE and
QUALITY_INSUFFICIENT reach the caller.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union

from envfusion.core.api_errors import (
    FetchErrorCode,
    NoSourcesAvailableError,
    QualityInsufficientError,
)
from envfusion.core.cache import InMemoryCache, aggregation_cache_key
from envfusion.core.config import Settings, get_settings
from envfusion.core.correlation import CorrelationEngine
from envfusion.core.fusion import FusionEngine
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import AggregationResult, Category, FetchResult, Location
from envfusion.core.normalizer import Normalizer
from envfusion.core.orchestrator import FetchOrchestrator
from envfusion.core.quality import QualityEngine
from envfusion.core.rate_limiter import RateLimiterService, get_rate_limiter
from envfusion.core.schemas import AggregationParams
from envfusion.core.source_registry import SOURCE_REGISTRY, SourceDescriptor

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Aggregator:
    """
    Owns the cache and drives one aggregation call end to end.

    Every collaborator is injectable; anything left out is built from
    ``settings`` and the default source registry.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clients: Optional[Dict[str, BaseSourceClient]] = None,
        registry: Optional[Dict[str, SourceDescriptor]] = None,
        rate_limiter: Optional[RateLimiterService] = None,
        cache: Optional[InMemoryCache] = None,
        normalizer: Optional[Normalizer] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or get_settings()
        self.registry = SOURCE_REGISTRY if registry is None else registry

        if clients is None:
            from envfusion.sources import build_default_clients
            clients = build_default_clients(self.settings, self.registry)
        self.clients = clients

        self.rate_limiter = rate_limiter or get_rate_limiter()
        self.cache = cache or InMemoryCache(max_size=self.settings.cache_max_size)
        self.orchestrator = FetchOrchestrator(
            clients=self.clients,
            rate_limiter=self.rate_limiter,
            registry=self.registry,
            settings=self.settings,
        )
        self.normalizer = normalizer or Normalizer()
        self.fusion = FusionEngine(
            registry=self.registry,
            default_radius_km=self.settings.default_radius_km,
        )
        self.correlation = CorrelationEngine(
            spatial_cutoff_km=self.settings.spatial_correlation_km,
            temporal_decay_seconds=self.settings.temporal_decay_seconds,
            agreement_threshold=self.settings.cross_source_agreement_threshold,
        )
        self.quality = QualityEngine(settings=self.settings, registry=self.registry)
        self._now = now

    def cache_key(
        self,
        location: Location,
        category: Category,
        params: AggregationParams,
    ) -> str:
        radius_km = params.radius_km or self.settings.default_radius_km
        return aggregation_cache_key(
            category,
            location,
            radius_km,
            precision=self.settings.location_precision,
            days=params.days,
            limit=params.limit,
            sources=params.sources,
            exclude_sources=params.exclude_sources,
        )

    async def aggregate(
        self,
        location: Location,
        category: Union[Category, str],
        params: Optional[AggregationParams] = None,
        force_refresh: bool = False,
    ) -> AggregationResult:
        """
        Produce a fused, quality-scored result for one point and category.

        Args:
            location: Target point
            category: Category member or its name/value
            params: Radius, look-back and source filters
            force_refresh: Skip the cache lookup (a passing result still
                replaces the entry)

        Returns:
            AggregationResult (the cached instance on a cache hit)

        Raises:
            NoSourcesAvailableError: No eligible source, or none produced a
                usable record
            QualityInsufficientError: Fused result scored below threshold
        """
        category = Category.parse(category)
        params = params or AggregationParams()
        radius_km = params.radius_km or self.settings.default_radius_km
        key = self.cache_key(location, category, params)

        if not force_refresh:
            cached = await self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit: {key}")
                return cached
            logger.debug(f"Cache miss: {key}")

        results = await self.orchestrator.fetch_all(location, category, params)
        if not results:
            logger.info(f"No eligible sources for {category.value} at {key}")
            raise NoSourcesAvailableError(
                f"No eligible sources for category '{category.value}' at this location"
            )

        records, skipped = self.normalizer.normalize_all(results, category)
        fetch_summary = self._summarize(results, skipped)
        source_failures = {
            source_id: {"code": summary["code"], "error": summary["error"]}
            for source_id, summary in fetch_summary.items()
            if summary["code"] is not None
        }

        if not records:
            logger.info(
                f"Aggregation {category.value} failed: no usable records "
                f"({len(source_failures)} sources tried)"
            )
            raise NoSourcesAvailableError(
                f"All {len(results)} sources failed or returned unusable data",
                source_failures=source_failures,
            )

        fused = self.fusion.fuse(records, location, radius_km)
        correlations = self.correlation.correlate(fused)
        now = self._now()
        report = self.quality.score(fused, correlations, now=now)

        if not report.passed:
            logger.info(
                f"Aggregation {category.value} rejected: score={report.score} "
                f"< {report.threshold} issues={report.issues}"
            )
            raise QualityInsufficientError(
                f"Quality score {report.score} below threshold {report.threshold}",
                issues=report.issues,
                source_failures=source_failures,
                score=report.score,
            )

        result = AggregationResult(
            location=location,
            category=category,
            fused=fused,
            correlations=correlations,
            quality=report,
            fetch_summary=fetch_summary,
            created_at=now,
        )
        await self.cache.set(key, result, ttl=self.settings.cache_ttl_for(category.value))

        logger.info(
            f"Aggregation {category.value} passed: score={report.score} "
            f"sources={fused.sources}"
        )
        return result

    @staticmethod
    def _summarize(
        results: Dict[str, FetchResult], skipped: Dict[str, str]
    ) -> Dict[str, Dict]:
        summary = {}
        for source_id, result in results.items():
            entry = result.summary()
            if source_id in skipped:
                entry["code"] = FetchErrorCode.NORMALIZATION_SKIPPED.value
                entry["error"] = skipped[source_id]
            summary[source_id] = entry
        return summary

    async def close(self) -> None:
        """Close every source client."""
        for client in self.clients.values():
            await client.close()


# =============================================================================
# Global Aggregator Instance
# =============================================================================

_aggregator: Optional[Aggregator] = None


def get_aggregator() -> Aggregator:
    """Get the global aggregator instance."""
    global _aggregator
    if _aggregator is None:
        _aggregator = Aggregator()
    return _aggregator


def reset_aggregator() -> None:
    """Reset the global aggregator instance (for testing)."""
    global _aggregator
    _aggregator = None
