"""Search orchestration: result cache first, then a relay with one failover.

Flow for ``perform_lookup``::

    result cache hit  -> return stored result (no network)
    miss              -> balancer picks endpoint -> relay call
    transport failure -> quarantine endpoint, pick another, call once more
    success           -> normalize, store in result cache, return

Concurrent lookups of the same key are not coalesced; each one checks the
cache and may issue its own request.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

from .balancer import EndpointPool
from .cache import CacheManager
from .client import RelayClient
from .config.schema import ColumnSettings, MessageSettings
from .exceptions import CensoLookupError, ProtocolError, TransportError
from .models import (
    ConnectionReport,
    Dimension,
    IndexMatch,
    IndexStatus,
    LookupResult,
    RemoteLookupResponse,
    Snapshot,
    SnapshotResponse,
)
from .utils.logging import PerformanceLogger, digest, get_logger, request_id

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_SERVER_ERROR = "Error del servidor"


class SearchOrchestrator:
    """Runs lookups against the relays through the cache tiers."""

    def __init__(
        self,
        client: RelayClient,
        balancer: EndpointPool,
        cache: CacheManager,
        messages: MessageSettings,
        probe_endpoint: Optional[str] = None,
        columns: Optional[ColumnSettings] = None,
    ):
        self.client = client
        self.balancer = balancer
        self.cache = cache
        self.messages = messages
        self.probe_endpoint = probe_endpoint
        self.columns = columns if columns is not None else ColumnSettings()

    def _quarantine(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        self.balancer.mark_failed(error.endpoint)
        logger.info("relay_failover", extra={"failed_endpoint": error.endpoint})

    async def _with_failover(self, call: Callable[[str], Awaitable[T]]) -> T:
        """Run ``call(endpoint)``; on transport failure retry once elsewhere."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(2),
            retry=retry_if_exception_type(TransportError),
            before_sleep=self._quarantine,
            reraise=True,
        ):
            with attempt:
                endpoint = self.balancer.select_endpoint()
                result = await call(endpoint)
        return result

    def _normalize(
        self, dimension: Dimension, raw_value: str, response: RemoteLookupResponse
    ) -> LookupResult:
        return LookupResult(
            found=response.found,
            search_value=raw_value,
            dimension=dimension,
            column_name=response.column_name or self.columns.label_for(dimension),
            total_rows=response.total_rows,
            message=self.messages.for_outcome(dimension, response.found),
            row_data=response.row if response.found else None,
        )

    async def perform_lookup(
        self, dimension: Union[Dimension, str], raw_value: str
    ) -> LookupResult:
        """Look up ``raw_value`` along ``dimension``.

        Raises:
            ConfigurationError: no relay endpoints are configured
            TransportError: both the first and the fallback relay gave no response
            ProtocolError: a relay answered with a failure or an unreadable body
        """
        dimension = Dimension(dimension)

        cached = self.cache.results.get(dimension, raw_value)
        if cached is not None:
            logger.debug(
                "lookup_cache_hit",
                extra={"dimension": dimension.value, "value": digest(raw_value)},
            )
            return cached

        token = request_id.set(uuid.uuid4().hex[:12])
        try:
            with PerformanceLogger("perform_lookup", logger, threshold_ms=3000) as perf:
                perf.add_metadata(dimension=dimension.value, value=digest(raw_value))

                async def call(endpoint: str) -> RemoteLookupResponse:
                    response = await self.client.lookup(endpoint, dimension, raw_value)
                    if not response.success:
                        raise ProtocolError(response.error or DEFAULT_SERVER_ERROR, endpoint=endpoint)
                    return response

                response = await self._with_failover(call)

                result = self._normalize(dimension, raw_value, response)
                perf.add_metadata(found=result.found, total_rows=result.total_rows)
        finally:
            request_id.reset(token)

        self.cache.results.set(dimension, raw_value, result)
        return result

    async def refresh_snapshot(self) -> Snapshot:
        """Fetch the whole sheet and replace the cached snapshot."""

        async def call(endpoint: str) -> SnapshotResponse:
            response = await self.client.fetch_snapshot(endpoint)
            if not response.success:
                raise ProtocolError(response.error or DEFAULT_SERVER_ERROR, endpoint=endpoint)
            return response

        response = await self._with_failover(call)

        values = response.data.values if response.data else []
        self.cache.snapshot.set(values)
        logger.info("snapshot_refreshed", extra={"rows": len(values)})
        return values

    async def indexed_lookup(
        self, dimension: Union[Dimension, str], value: str
    ) -> Optional[IndexMatch]:
        """Answer from the bulk snapshot index, fetching the sheet if stale.

        Returns ``None`` when the sheet has no column for ``dimension``.
        """
        dimension = Dimension(dimension)
        if self.cache.snapshot.get() is None:
            await self.refresh_snapshot()
        return self.cache.snapshot.lookup(dimension, value)

    async def check_connection(self) -> ConnectionReport:
        """Probe a relay with a bulk fetch; failures are reported, not raised."""
        endpoint = self.probe_endpoint
        try:
            if endpoint is None:
                endpoint = self.balancer.select_endpoint()

            response = await self.client.fetch_snapshot(endpoint)
            if not response.success:
                raise ProtocolError(response.error or DEFAULT_SERVER_ERROR, endpoint=endpoint)
        except CensoLookupError as e:
            logger.warning(
                "connection_check_failed",
                extra={"endpoint": endpoint, "error": e.message, "error_type": type(e).__name__},
            )
            return ConnectionReport(success=False, message="Error de conexión", error=e.message)

        values = response.data.values if response.data else []
        return ConnectionReport(
            success=True,
            message="Conexión exitosa con el proxy",
            total_rows=len(values),
            headers=values[0] if values else [],
        )

    def force_data_refresh(self) -> str:
        self.cache.snapshot.invalidate()
        return "Datos actualizados - la próxima búsqueda obtendrá información fresca"

    def index_status(self) -> IndexStatus:
        stats = self.cache.get_stats()
        return IndexStatus(
            index_built=stats["index_built"],
            indexed_columns=stats["indexed_columns"],
            total_rows=stats["last_row_count"],
            cache_age_seconds=stats["cache_age"],
            hit_rate=stats["hit_rate"],
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            "cache": self.cache.get_stats(),
            "balancer": asdict(self.balancer.get_stats()),
        }
