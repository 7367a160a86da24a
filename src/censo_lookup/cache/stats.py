"""Hit/miss accounting shared by the cache tiers."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class CacheStats:
    """Cache performance statistics."""

    hits: int = 0
    misses: int = 0

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> int:
        """Hit rate as a whole percentage, 0 when nothing was requested."""
        if self.total == 0:
            return 0
        return math.floor(self.hits * 100 / self.total + 0.5)

    def record(self, hit: bool) -> None:
        if hit:
            self.hits += 1
        else:
            self.misses += 1

    def reset(self) -> None:
        """Reset all statistics."""
        self.hits = 0
        self.misses = 0
