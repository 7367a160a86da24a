"""Construction of the lookup services from configuration.

Each service is built once and handed to the orchestrator explicitly; nothing
in the package keeps module-level instances.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from aiohttp import ClientSession

from .balancer import EndpointPool
from .cache import CacheManager
from .client import RelayClient
from .config.schema import LookupConfig
from .orchestrator import SearchOrchestrator
from .utils.logging import get_logger

logger = get_logger(__name__)


def build_orchestrator(
    config: LookupConfig,
    client: RelayClient,
    clock: Callable[[], float] = time.time,
) -> SearchOrchestrator:
    """Wire balancer, caches and client into an orchestrator."""
    balancer = EndpointPool(
        endpoints=config.endpoints,
        cooldown_seconds=config.balancer.cooldown_seconds,
        clock=clock,
    )
    cache = CacheManager(
        snapshot_ttl_seconds=config.cache.snapshot_ttl_seconds,
        result_ttl_seconds=config.cache.result_ttl_seconds,
        header_fragments=config.columns.header_fragments,
        max_result_entries=config.cache.result_cache_max_entries,
        clock=clock,
    )

    logger.info(
        "orchestrator_built",
        extra={
            "endpoints": len(config.endpoints),
            "cooldown_seconds": config.balancer.cooldown_seconds,
        },
    )
    return SearchOrchestrator(
        client=client,
        balancer=balancer,
        cache=cache,
        messages=config.messages,
        probe_endpoint=config.effective_probe_endpoint,
        columns=config.columns,
    )


@asynccontextmanager
async def open_orchestrator(
    config: LookupConfig,
    session: Optional[ClientSession] = None,
    clock: Callable[[], float] = time.time,
) -> AsyncIterator[SearchOrchestrator]:
    """Orchestrator whose HTTP session lives for the ``async with`` block."""
    async with RelayClient(session=session) as client:
        yield build_orchestrator(config, client, clock=clock)
