"""
Caching layer for fused aggregation results.

Provides:
- In-memory cache with per-entry TTL
- Oldest-first eviction once ``max_size`` is reached
- Key generation for (category, location bucket, radius) requests

Entries are idempotent re-derivations of the same inputs within their TTL,
so concurrent writers to one key are resolved last-writer-wins.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from envfusion.core.models import Category, Location

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A single cache entry with value and metadata."""
    key: str
    value: Any
    created_at: float
    ttl: float  # Time-to-live in seconds
    hits: int = 0

    @property
    def expires_at(self) -> float:
        """Get expiration timestamp."""
        return self.created_at + self.ttl

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Check if entry has expired."""
        return (time.time() if now is None else now) >= self.expires_at


class InMemoryCache:
    """
    Simple in-memory cache with TTL support.

    Safe for concurrent coroutines: every read and write goes through one
    asyncio lock. Expired entries are removed lazily on access and by a
    periodic sweep.
    """

    def __init__(
        self,
        default_ttl: float = 300,
        max_size: int = 500,
        cleanup_interval: float = 300,
        clock=time.time,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds
            max_size: Maximum number of entries
            cleanup_interval: How often to clean expired entries (seconds)
            clock: Time source (injectable for tests)
        """
        self.default_ttl = default_ttl
        self.max_size = max_size
        self.cleanup_interval = cleanup_interval
        self._clock = clock

        self._cache: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._last_cleanup = clock()

        # Statistics
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "evictions": 0,
        }

    async def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache.

        Returns:
            Cached value or None if not found/expired
        """
        async with self._lock:
            self._maybe_cleanup()

            entry = self._cache.get(key)

            if entry is None:
                self._stats["misses"] += 1
                return None

            if entry.is_expired(self._clock()):
                del self._cache[key]
                self._stats["misses"] += 1
                return None

            entry.hits += 1
            self._stats["hits"] += 1
            return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Set a value in the cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds (uses default if None)
        """
        if ttl is None:
            ttl = self.default_ttl

        async with self._lock:
            self._maybe_cleanup()

            if len(self._cache) >= self.max_size and key not in self._cache:
                self._evict_oldest()

            self._cache[key] = CacheEntry(
                key=key,
                value=value,
                created_at=self._clock(),
                ttl=ttl,
            )
            self._stats["sets"] += 1

    async def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            total_requests = self._stats["hits"] + self._stats["misses"]
            hit_rate = (
                self._stats["hits"] / total_requests
                if total_requests > 0 else 0
            )

            return {
                **self._stats,
                "size": len(self._cache),
                "max_size": self.max_size,
                "hit_rate": f"{hit_rate:.2%}",
            }

    def _maybe_cleanup(self) -> None:
        """Clean up expired entries if cleanup interval has passed."""
        now = self._clock()
        if now - self._last_cleanup < self.cleanup_interval:
            return

        self._last_cleanup = now
        expired_keys = [
            key for key, entry in self._cache.items()
            if entry.is_expired(now)
        ]

        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.debug(f"Cache cleanup: removed {len(expired_keys)} expired entries")

    def _evict_oldest(self) -> None:
        """Evict the oldest entry from the cache."""
        if not self._cache:
            return

        oldest_key = min(
            self._cache.keys(),
            key=lambda k: self._cache[k].created_at
        )
        del self._cache[oldest_key]
        self._stats["evictions"] += 1


def aggregation_cache_key(
    category: Category,
    location: Location,
    radius_km: float,
    precision: int = 4,
    days: Optional[int] = None,
    limit: Optional[int] = None,
    sources: Optional[Iterable[str]] = None,
    exclude_sources: Optional[Iterable[str]] = None,
) -> str:
    """
    Build the cache key for an aggregation request.

    Locations are rounded to ``precision`` decimal degrees so nearby
    requests within the same bucket share an entry. Every other request
    parameter handed to the source clients (look-back ``days``, item
    ``limit``, source filters) is appended when given.

    Example:
        aggregated:weather:45.5231:-122.6765:r100:d7:n50
    """
    lat, lon = location.rounded(precision)
    radius = f"{radius_km:g}"
    key = f"aggregated:{category.value}:{lat:.{precision}f}:{lon:.{precision}f}:r{radius}"

    if days is not None:
        key += f":d{days}"
    if limit is not None:
        key += f":n{limit}"
    if sources:
        key += ":only=" + ",".join(sorted(set(sources)))
    if exclude_sources:
        key += ":skip=" + ",".join(sorted(set(exclude_sources)))
    return key
