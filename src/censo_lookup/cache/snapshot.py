"""Bulk snapshot cache with an O(1) column index.

The snapshot is the whole spreadsheet as a list of rows (row 0 is the header).
Whenever a new snapshot is stored the index is rebuilt from scratch; it is
never updated incrementally.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..models import Dimension, IndexMatch, Snapshot
from ..utils.logging import get_logger, timed_operation
from .stats import CacheStats

logger = get_logger(__name__)

Clock = Callable[[], float]


def normalize_cell(value: Any) -> str:
    """Trimmed string form of a cell, as a user would type it.

    Integral floats lose their ``.0`` so numeric cells match typed digits.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ColumnIndex:
    """Per-dimension mapping of normalized cell value to row position."""

    def __init__(self, header_fragments: Mapping[Dimension, Sequence[str]]):
        self.header_fragments = {
            dimension: tuple(f.lower() for f in fragments)
            for dimension, fragments in header_fragments.items()
        }
        self._columns: Dict[Dimension, int] = {}
        self._values: Dict[Dimension, Dict[str, int]] = {}
        self.built = False

    def clear(self) -> None:
        self._columns.clear()
        self._values.clear()
        self.built = False

    def _find_column(self, headers: Sequence[Any], dimension: Dimension) -> Optional[int]:
        fragments = self.header_fragments.get(dimension, ())
        for position, header in enumerate(headers):
            label = "" if header is None else str(header).lower()
            if any(fragment in label for fragment in fragments):
                return position
        return None

    @timed_operation(threshold_ms=100)
    def build(self, snapshot: Optional[Snapshot]) -> None:
        """Rebuild the index from ``snapshot``.

        A snapshot with only a header (or nothing) leaves the index empty and
        not built. Otherwise the index counts as built even if no header
        matched any dimension.
        """
        self.clear()
        if not snapshot or len(snapshot) <= 1:
            return

        headers = snapshot[0]
        for dimension in self.header_fragments:
            column = self._find_column(headers, dimension)
            if column is None:
                continue

            self._columns[dimension] = column
            values: Dict[str, int] = {}
            for position in range(1, len(snapshot)):
                row = snapshot[position]
                if column >= len(row) or _is_absent(row[column]):
                    continue
                # Later rows overwrite earlier duplicates
                values[normalize_cell(row[column])] = position
            self._values[dimension] = values

        self.built = True
        logger.debug(
            "column_index_built",
            extra={
                "rows": len(snapshot) - 1,
                "columns": {d.value: c for d, c in self._columns.items()},
            },
        )

    def lookup(self, dimension: Dimension, value: Any) -> Optional[IndexMatch]:
        """Find ``value`` along ``dimension``.

        Returns ``None`` when the index cannot answer (not built, or no column
        for the dimension).
        """
        if not self.built:
            return None
        values = self._values.get(dimension)
        if values is None:
            return None

        position = values.get(normalize_cell(value))
        if position is None:
            return IndexMatch(found=False)
        return IndexMatch(found=True, row_offset=position, row_number=position + 1)

    @property
    def columns(self) -> Dict[Dimension, int]:
        return dict(self._columns)

    @property
    def indexed_dimensions(self) -> List[Dimension]:
        return list(self._columns)


class SnapshotCache:
    """Holds the last bulk snapshot with a TTL and row-count change detection."""

    def __init__(
        self,
        ttl_seconds: float,
        header_fragments: Mapping[Dimension, Sequence[str]],
        clock: Clock = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.index = ColumnIndex(header_fragments)
        self.stats = CacheStats()

        self._snapshot: Optional[Snapshot] = None
        self._last_update: Optional[float] = None
        self._last_row_count = 0
        self._force_refresh = False

    def _age(self) -> float:
        if self._last_update is None:
            return float("inf")
        return self.clock() - self._last_update

    def is_valid(self) -> bool:
        return self._age() < self.ttl_seconds and not self._force_refresh

    def needs_update(self) -> bool:
        return self._age() > self.ttl_seconds or self._force_refresh

    def get(self) -> Optional[Snapshot]:
        if self.is_valid():
            self.stats.hits += 1
            return self._snapshot
        self.stats.misses += 1
        return None

    def set(self, snapshot: Optional[Snapshot]) -> None:
        """Store a new snapshot and rebuild the index.

        If the row count differs from the previous snapshot the cache is
        marked for refresh again straight away, so the next validity check
        fails.
        """
        self._snapshot = snapshot
        self._last_update = self.clock()
        self._force_refresh = False

        row_count = len(snapshot) if snapshot else 0
        if self._last_row_count > 0 and row_count != self._last_row_count:
            self._force_refresh = True
            logger.info(
                "snapshot_row_count_changed",
                extra={"previous_rows": self._last_row_count, "rows": row_count},
            )
        self._last_row_count = row_count

        self.index.build(snapshot)

    def invalidate(self) -> None:
        self._force_refresh = True
        logger.info("snapshot_invalidated")

    def lookup(self, dimension: Dimension, value: Any) -> Optional[IndexMatch]:
        match = self.index.lookup(dimension, value)
        if match is not None:
            self.stats.record(match.found)
        return match

    def clear(self) -> None:
        self._snapshot = None
        self.index.clear()
        self._last_update = None
        self._last_row_count = 0
        self._force_refresh = False

    @property
    def age_seconds(self) -> Optional[int]:
        """Seconds since the last ``set``; ``None`` if nothing was ever stored."""
        if self._last_update is None:
            return None
        return round(self.clock() - self._last_update)

    @property
    def last_row_count(self) -> int:
        return self._last_row_count

    @property
    def force_refresh(self) -> bool:
        return self._force_refresh
