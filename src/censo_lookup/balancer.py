"""Round-robin relay selection with failure quarantine.

An endpoint marked failed is skipped until its cooldown has passed; recovery
is lazy and happens when a rotation pass reaches the endpoint again. There is
no background timer.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set

from .exceptions import ConfigurationError
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PoolStats:
    """Snapshot of the endpoint pool."""

    total: int
    failed: int
    available: int
    current_index: int
    failed_endpoints: List[str] = field(default_factory=list)


class EndpointPool:
    """Load balancer over interchangeable relay endpoints."""

    def __init__(
        self,
        endpoints: Optional[Sequence[str]] = None,
        cooldown_seconds: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock

        self._endpoints: List[str] = []
        self._cursor = 0
        self._failed: Set[str] = set()
        self._last_failure: Dict[str, float] = {}

        if endpoints:
            self.configure(endpoints)

    def configure(self, endpoints: Sequence[str]) -> None:
        """Replace the endpoint list and forget all failure state."""
        self._endpoints = list(endpoints)
        self._cursor = 0
        self._failed.clear()
        self._last_failure.clear()
        logger.info("endpoint_pool_configured", extra={"total": len(self._endpoints)})

    def _cooled_down(self, endpoint: str) -> bool:
        last_failure = self._last_failure.get(endpoint, 0.0)
        return self.clock() - last_failure > self.cooldown_seconds

    def _advance(self) -> None:
        self._cursor = (self._cursor + 1) % len(self._endpoints)

    def select_endpoint(self) -> str:
        """Pick the next usable endpoint in rotation order.

        Raises:
            ConfigurationError: if no endpoints are configured
        """
        if not self._endpoints:
            raise ConfigurationError()

        if len(self._endpoints) == 1:
            return self._endpoints[0]

        for _ in range(len(self._endpoints)):
            endpoint = self._endpoints[self._cursor]

            if endpoint not in self._failed:
                self._advance()
                return endpoint

            if self._cooled_down(endpoint):
                self._failed.discard(endpoint)
                self._advance()
                logger.info("endpoint_recovered", extra={"endpoint": endpoint})
                return endpoint

            self._advance()

        # Every endpoint is still cooling down; send the request somewhere anyway
        fallback = self._endpoints[0]
        logger.warning(
            "endpoint_pool_exhausted",
            extra={"fallback": fallback, "failed": len(self._failed)},
        )
        return fallback

    def mark_failed(self, endpoint: str) -> None:
        self._failed.add(endpoint)
        self._last_failure[endpoint] = self.clock()
        logger.warning(
            "endpoint_marked_failed",
            extra={"endpoint": endpoint, "cooldown_seconds": self.cooldown_seconds},
        )

    def reset(self) -> None:
        """Return every endpoint to service regardless of cooldown."""
        self._failed.clear()
        self._last_failure.clear()
        logger.info("endpoint_pool_reset")

    def is_failed(self, endpoint: str) -> bool:
        return endpoint in self._failed

    def get_stats(self) -> PoolStats:
        return PoolStats(
            total=len(self._endpoints),
            failed=len(self._failed),
            available=len(self._endpoints) - len(self._failed),
            current_index=self._cursor,
            failed_endpoints=sorted(self._failed),
        )

    @property
    def endpoints(self) -> List[str]:
        return list(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)
