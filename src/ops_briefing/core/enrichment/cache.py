"""In-memory TTL cache for enriched items.

An EnrichmentCache belongs to one Enricher and lives no longer than the
workflow that owns it; nothing is cached at module level. Entries expire
after a time-to-live, and keys may embed a work item's changed date so an
update invalidates the entry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

# Default time-to-live: 15 minutes
DEFAULT_TTL_SECONDS = 900

# Maximum cached entries before eviction
DEFAULT_MAX_SIZE = 1000


@dataclass
class CacheStats:
    """Cache statistics."""

    keys: int
    hits: int
    misses: int


class EnrichmentCache:
    """TTL cache for enrichment results.

    Bounded with the same half-flush eviction as the summary cache: when the
    cache is full, the oldest half of the entries is dropped.

    Example:
        cache = EnrichmentCache(ttl_seconds=900)
        key = EnrichmentCache.build_ado_key(42, "2024-01-15T10:30:00Z")
        enriched = cache.get(key)
        if enriched is None:
            enriched = await ado_enricher.enrich(42)
            cache.set(key, enriched)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        max_size: int = DEFAULT_MAX_SIZE,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the enrichment cache.

        Args:
            ttl_seconds: Time to live for entries in seconds
            max_size: Maximum cache entries before eviction
            enabled: Whether caching is enabled
            clock: Monotonic time source (seconds)
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")

        self._ttl = ttl_seconds
        self._max_size = max_size
        self._enabled = enabled
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._hits = 0
        self._misses = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing, expired or disabled."""
        if not self._enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self._misses += 1
            logger.debug(f"Enrichment cache entry expired: {key}")
            return None

        self._hits += 1
        return value

    def set(self, key: str, value: Any) -> None:
        """Store a value, evicting the oldest half when full."""
        if not self._enabled:
            return

        self._purge_expired()
        if key not in self._entries and len(self._entries) >= self._max_size:
            keys_to_remove = list(self._entries.keys())[: self._max_size // 2 or 1]
            for old_key in keys_to_remove:
                del self._entries[old_key]
            logger.debug(f"Enrichment cache evicted {len(keys_to_remove)} entries")

        self._entries[key] = (self._clock() + self._ttl, value)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    @staticmethod
    def build_ado_key(work_item_id: int, changed_date: Optional[str] = None) -> str:
        """Cache key for an Azure DevOps work item.

        Including the changed date (date part only) invalidates the entry
        when the work item is updated.
        """
        if changed_date:
            return f"ado:{work_item_id}:{changed_date.split('T')[0]}"
        return f"ado:{work_item_id}"

    @staticmethod
    def build_gsd_key(project_path: str) -> str:
        """Cache key for a GSD project, ignoring trailing slashes."""
        return f"gsd:{project_path.rstrip('/')}"

    def stats(self) -> CacheStats:
        self._purge_expired()
        return CacheStats(keys=len(self._entries), hits=self._hits, misses=self._misses)

    def clear(self) -> int:
        """Clear all entries and counters.

        Returns:
            Number of entries cleared
        """
        count = len(self._entries)
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        return count
