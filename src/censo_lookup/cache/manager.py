"""Owner of the two cache tiers used by the orchestrator."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from ..models import Dimension
from ..utils.logging import get_logger
from .results import DEFAULT_MAX_ENTRIES, QueryResultCache
from .snapshot import SnapshotCache

logger = get_logger(__name__)


class CacheManager:
    """Snapshot cache plus query result cache, with independent counters.

    The result cache is not invalidated when the snapshot is refreshed; a
    cached "not found" can outlive a change in the remote sheet for up to the
    result TTL.
    """

    def __init__(
        self,
        snapshot_ttl_seconds: float,
        result_ttl_seconds: float,
        header_fragments: Mapping[Dimension, Sequence[str]],
        max_result_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
        snapshot: Optional[SnapshotCache] = None,
        results: Optional[QueryResultCache] = None,
    ):
        self.snapshot = snapshot if snapshot is not None else SnapshotCache(
            ttl_seconds=snapshot_ttl_seconds,
            header_fragments=header_fragments,
            clock=clock,
        )
        self.results = results if results is not None else QueryResultCache(
            ttl_seconds=result_ttl_seconds,
            max_entries=max_result_entries,
            clock=clock,
        )

        logger.debug(
            "cache_manager_initialized",
            extra={
                "snapshot_ttl_seconds": snapshot_ttl_seconds,
                "result_ttl_seconds": result_ttl_seconds,
                "max_result_entries": max_result_entries,
            },
        )

    def clear_all(self) -> None:
        """Drop both tiers."""
        self.snapshot.clear()
        self.results.clear()

    def get_stats(self) -> Dict[str, Any]:
        """Statistics for both cache families."""
        snapshot = self.snapshot
        results = self.results
        return {
            # Bulk snapshot
            "hits": snapshot.stats.hits,
            "misses": snapshot.stats.misses,
            "hit_rate": snapshot.stats.hit_rate,
            "cache_age": snapshot.age_seconds,
            "last_row_count": snapshot.last_row_count,
            "force_refresh": snapshot.force_refresh,
            "index_built": snapshot.index.built,
            "indexed_columns": [d.value for d in snapshot.index.indexed_dimensions],
            # Per-query results
            "search_hits": results.stats.hits,
            "search_misses": results.stats.misses,
            "search_hit_rate": results.stats.hit_rate,
            "search_results_count": len(results),
        }
