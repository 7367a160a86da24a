"""Cache tiers for the lookup layer."""

from .manager import CacheManager
from .results import DEFAULT_MAX_ENTRIES, QueryResultCache
from .snapshot import ColumnIndex, SnapshotCache, normalize_cell
from .stats import CacheStats

__all__ = [
    "CacheManager",
    "CacheStats",
    "ColumnIndex",
    "DEFAULT_MAX_ENTRIES",
    "QueryResultCache",
    "SnapshotCache",
    "normalize_cell",
]
