"""
Per-source rate limiter service.

Each source gets a minimum inter-request interval of
``3600 / hourly_budget`` seconds. A call is granted when that interval has
elapsed since the last granted call. This is a leaky-bucket approximation:
bursts beyond the first request of a window are smoothed rather than
banked, and nothing is queued. Callers decide whether to wait, skip, or
fail fast.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Any

from envfusion.core.source_registry import SOURCE_REGISTRY, SourceDescriptor

logger = logging.getLogger(__name__)

DEFAULT_HOURLY_BUDGET = 1000


# =============================================================================
# Single-source limiter
# =============================================================================


@dataclass
class SourceRateLimiter:
    """
    Minimum-interval limiter for one source.

    ``try_acquire`` performs no await, so on a single event loop the
    check-and-record step cannot interleave with another caller.
    """

    source: str
    hourly_budget: int
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    # Current state
    last_granted: Optional[float] = None

    # Statistics
    total_requests: int = 0
    total_throttled: int = 0

    def __post_init__(self):
        if self.hourly_budget <= 0:
            raise ValueError(f"hourly_budget must be positive for '{self.source}'")

    @property
    def min_interval(self) -> float:
        """Seconds that must separate two granted calls."""
        return 3600.0 / self.hourly_budget

    def try_acquire(self) -> bool:
        """
        Try to take the next slot.

        Returns:
            True if granted (and the call time is recorded), False if the
            minimum interval has not elapsed yet
        """
        now = self.clock()
        if self.last_granted is None or now - self.last_granted >= self.min_interval:
            self.last_granted = now
            self.total_requests += 1
            return True

        self.total_throttled += 1
        return False

    def wait_time(self) -> float:
        """
        Seconds until the next slot opens.

        Returns:
            Seconds to wait (0 if a slot is available now)
        """
        if self.last_granted is None:
            return 0.0
        remaining = self.min_interval - (self.clock() - self.last_granted)
        return max(0.0, remaining)

    def reset(self) -> None:
        self.last_granted = None


# =============================================================================
# Rate Limiter Service
# =============================================================================


class RateLimiterService:
    """
    Shared registry of per-source limiters.

    Injected into the fetch orchestrator; shared by every concurrent
    aggregation call so the budget holds across requesters.
    """

    def __init__(
        self,
        registry: Optional[Dict[str, SourceDescriptor]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._registry = SOURCE_REGISTRY if registry is None else registry
        self._clock = clock
        self._limiters: Dict[str, SourceRateLimiter] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_limiter(self, source: str) -> SourceRateLimiter:
        """Get or create the limiter for a source."""
        if source not in self._limiters:
            descriptor = self._registry.get(source)
            budget = descriptor.hourly_budget if descriptor else DEFAULT_HOURLY_BUDGET
            self._limiters[source] = SourceRateLimiter(
                source=source, hourly_budget=budget, clock=self._clock
            )
        return self._limiters[source]

    def _get_lock(self, source: str) -> asyncio.Lock:
        if source not in self._locks:
            self._locks[source] = asyncio.Lock()
        return self._locks[source]

    def try_acquire(self, source: str) -> bool:
        """Non-blocking acquisition; False means RATE_LIMITED."""
        granted = self._get_limiter(source).try_acquire()
        if not granted:
            logger.debug(f"Rate limit slot unavailable for '{source}'")
        return granted

    def wait_time(self, source: str) -> float:
        """Seconds until ``source`` can be called again."""
        return self._get_limiter(source).wait_time()

    async def acquire(self, source: str, timeout: float = 30.0) -> bool:
        """
        Acquire a slot, waiting up to ``timeout`` seconds.

        Waiters for the same source are serialized by a per-source lock so
        only one of them claims each freed slot.

        Returns:
            True if acquired, False if the slot would open after the timeout
        """
        limiter = self._get_limiter(source)
        lock = self._get_lock(source)
        start_time = self._clock()

        while True:
            async with lock:
                if limiter.try_acquire():
                    return True
                wait_time = limiter.wait_time()

            elapsed = self._clock() - start_time
            if elapsed + wait_time > timeout:
                logger.warning(
                    f"Rate limit timeout for source '{source}' "
                    f"(next slot in {wait_time:.1f}s, waited {elapsed:.1f}s)"
                )
                return False

            await asyncio.sleep(min(wait_time, 0.5))

    def get_stats(self, source: str) -> Dict[str, Any]:
        """Get rate limit statistics for a source."""
        limiter = self._get_limiter(source)
        return {
            "source": source,
            "hourly_budget": limiter.hourly_budget,
            "min_interval_seconds": round(limiter.min_interval, 3),
            "wait_seconds": round(limiter.wait_time(), 3),
            "total_requests": limiter.total_requests,
            "total_throttled": limiter.total_throttled,
        }

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get rate limit statistics for all active sources."""
        return {source: self.get_stats(source) for source in self._limiters}

    def configure_source(self, source: str, hourly_budget: int) -> None:
        """Override the hourly budget of a source (resets its state)."""
        self._limiters[source] = SourceRateLimiter(
            source=source, hourly_budget=hourly_budget, clock=self._clock
        )
        logger.info(f"Configured rate limit for '{source}': {hourly_budget}/hour")

    def reset_source(self, source: str) -> None:
        """Forget the last granted call for a source."""
        if source in self._limiters:
            self._limiters[source].reset()
            logger.info(f"Reset rate limit state for '{source}'")


# =============================================================================
# Global Rate Limiter Instance
# =============================================================================

_rate_limiter: Optional[RateLimiterService] = None


def get_rate_limiter() -> RateLimiterService:
    """Get the global rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiterService()
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Reset the global rate limiter instance (for testing)."""
    global _rate_limiter
    _rate_limiter = None
