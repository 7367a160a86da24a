"""Per-query result memoization.

Entries are keyed by ``(dimension, raw value)`` exactly as submitted and expire
lazily: an expired entry is a miss but stays in place until a sweep removes
it. A sweep runs only when an insertion pushes the cache past
``max_entries`` and deletes expired entries only, so the cache may stay above
the ceiling when most entries are still fresh.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from ..models import Dimension
from ..utils.logging import get_logger
from .stats import CacheStats

logger = get_logger(__name__)

DEFAULT_MAX_ENTRIES = 1000

ResultKey = Tuple[Dimension, str]


@dataclass
class _Entry:
    payload: Any
    timestamp: float


class QueryResultCache:
    """TTL cache for normalized lookup results."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock
        self.stats = CacheStats()
        self._entries: Dict[ResultKey, _Entry] = {}

    def get(self, dimension: Dimension, raw_value: str) -> Optional[Any]:
        entry = self._entries.get((dimension, raw_value))
        if entry is not None and self.clock() - entry.timestamp < self.ttl_seconds:
            self.stats.hits += 1
            return entry.payload

        self.stats.misses += 1
        return None

    def set(self, dimension: Dimension, raw_value: str, payload: Any) -> None:
        self._entries[(dimension, raw_value)] = _Entry(payload=payload, timestamp=self.clock())

        if len(self._entries) > self.max_entries:
            self.sweep()

    def sweep(self) -> int:
        """Delete entries older than the TTL; return how many were removed."""
        now = self.clock()
        expired = [
            key
            for key, entry in self._entries.items()
            if now - entry.timestamp > self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]

        logger.info(
            "result_cache_sweep",
            extra={"removed": len(expired), "remaining": len(self._entries)},
        )
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self.stats.reset()
        logger.info("result_cache_cleared")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: ResultKey) -> bool:
        return key in self._entries
