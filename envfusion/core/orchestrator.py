"""
Fetch orchestrator: concurrent fan-out to every eligible source.

All dispatched calls are started together and jointly awaited; a failure
or timeout of one source never cancels or aborts its siblings. The result
is a complete map with one FetchResult per eligible source.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from envfusion.core.api_errors import FetchErrorCode
from envfusion.core.config import Settings, get_settings
from envfusion.core.http_client import BaseSourceClient
from envfusion.core.models import Category, FetchResult, Location
from envfusion.core.rate_limiter import RateLimiterService, get_rate_limiter
from envfusion.core.schemas import AggregationParams
from envfusion.core.source_registry import (
    SOURCE_REGISTRY,
    SourceDescriptor,
    sources_for_category,
)

logger = logging.getLogger(__name__)


class FetchOrchestrator:
    """
    Issues one request per eligible source and collects every outcome.

    Args:
        clients: source_id -> client
        rate_limiter: Shared limiter service (process-wide by default)
        registry: Source descriptors (defaults to SOURCE_REGISTRY)
        settings: Timeouts and rate-limit wait policy
    """

    def __init__(
        self,
        clients: Dict[str, BaseSourceClient],
        rate_limiter: Optional[RateLimiterService] = None,
        registry: Optional[Dict[str, SourceDescriptor]] = None,
        settings: Optional[Settings] = None,
    ):
        self.clients = clients
        self.rate_limiter = rate_limiter or get_rate_limiter()
        self.registry = SOURCE_REGISTRY if registry is None else registry
        self.settings = settings or get_settings()

    def eligible_sources(
        self,
        location: Location,
        category: Category,
        params: Optional[AggregationParams] = None,
    ) -> List[str]:
        """
        Source ids to fan out to, highest priority first.

        A source is eligible when it declares the category, covers the
        location, passes the request's source filters and has a
        configured client.
        """
        params = params or AggregationParams()
        eligible = []

        for descriptor in sources_for_category(category, self.registry):
            source_id = descriptor.source_id
            if params.sources and source_id not in params.sources:
                continue
            if params.exclude_sources and source_id in params.exclude_sources:
                continue
            if not descriptor.covers(location):
                logger.debug(f"[{source_id}] does not cover {location.lat},{location.lon}")
                continue

            client = self.clients.get(source_id)
            if client is None:
                continue
            if not client.is_configured():
                logger.debug(f"[{source_id}] skipped: credentials not configured")
                continue

            eligible.append(source_id)

        return eligible

    def _rate_limited(self, source_id: str) -> FetchResult:
        wait = self.rate_limiter.wait_time(source_id)
        logger.warning(
            f"[{source_id}] {FetchErrorCode.RATE_LIMITED.value}: next slot in {wait:.1f}s"
        )
        return FetchResult.failure(
            source_id,
            FetchErrorCode.RATE_LIMITED,
            f"Rate limit slot unavailable (next slot in {wait:.1f}s)",
            timestamp=datetime.now(timezone.utc),
        )

    async def _dispatch(
        self,
        source_id: str,
        location: Location,
        category: Category,
        client_params: Dict,
    ) -> FetchResult:
        wait_seconds = self.settings.rate_limit_wait_seconds
        if wait_seconds > 0:
            if not await self.rate_limiter.acquire(source_id, timeout=wait_seconds):
                return self._rate_limited(source_id)

        return await self.clients[source_id].fetch(
            location,
            category,
            client_params,
            timeout=self.settings.fetch_timeout_seconds,
        )

    async def fetch_all(
        self,
        location: Location,
        category: Category,
        params: Optional[AggregationParams] = None,
    ) -> Dict[str, FetchResult]:
        """
        Fan out to every eligible source and wait for all of them.

        Sources refused by their rate limiter are recorded as RATE_LIMITED
        without being called. When no source is eligible the map is empty.

        Returns:
            source_id -> FetchResult, one entry per eligible source
        """
        params = params or AggregationParams()
        radius_km = params.radius_km or self.settings.default_radius_km
        client_params = params.client_params(radius_km)

        results: Dict[str, FetchResult] = {}
        dispatched: List[str] = []

        for source_id in self.eligible_sources(location, category, params):
            # Without a wait budget, claim the slot up front (fail fast)
            if self.settings.rate_limit_wait_seconds <= 0:
                if not self.rate_limiter.try_acquire(source_id):
                    results[source_id] = self._rate_limited(source_id)
                    continue
            dispatched.append(source_id)

        if dispatched:
            logger.info(
                f"Fetching {category.value} for ({location.lat}, {location.lon}) "
                f"from {len(dispatched)} sources: {dispatched}"
            )

        outcomes = await asyncio.gather(
            *(
                self._dispatch(source_id, location, category, client_params)
                for source_id in dispatched
            ),
            return_exceptions=True,
        )

        for source_id, outcome in zip(dispatched, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(f"[{source_id}] client raised unexpectedly: {outcome!r}")
                outcome = FetchResult.failure(
                    source_id,
                    FetchErrorCode.SOURCE_ERROR,
                    f"Unexpected client error: {outcome!r}",
                    timestamp=datetime.now(timezone.utc),
                )
            results[source_id] = outcome

        succeeded = sum(1 for r in results.values() if r.success)
        logger.info(f"Fetch complete for {category.value}: {succeeded}/{len(results)} succeeded")
        return results
