"""aiohttp client for spreadsheet relay endpoints.

Failures are classified here: no response at all is a ``TransportError``;
an HTTP error status or a body that is not the expected JSON is a
``ProtocolError``. A well-formed body with ``success: false`` is returned as
is and left to the caller.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Type, TypeVar

import aiohttp
from aiohttp import ClientSession
from pydantic import BaseModel, ValidationError

from .exceptions import ProtocolError, TransportError
from .models import Dimension, RemoteLookupResponse, SnapshotResponse
from .utils.logging import digest, get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RelayClient:
    """Issues lookup and bulk-fetch requests against relay URLs."""

    def __init__(self, session: Optional[ClientSession] = None):
        """
        Initialize relay client.

        Parameters
        ----------
        session : ClientSession, optional
            Externally managed session. When omitted the client opens its own
            on ``__aenter__`` and closes it on ``__aexit__``.
        """
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> RelayClient:
        if self._session is None:
            self._session = ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> ClientSession:
        """Get active session."""
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with RelayClient() as client:'")
        return self._session

    async def _get_json(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            async with self.session.get(endpoint, params=params) as response:
                if response.status >= 400:
                    raise ProtocolError(
                        f"HTTP error! status: {response.status}",
                        endpoint=endpoint,
                        status=response.status,
                    )
                try:
                    # Apps Script deployments do not send a reliable content type
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise ProtocolError(
                        "Relay returned a body that is not JSON",
                        endpoint=endpoint,
                        status=response.status,
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(
                "relay_transport_failure",
                extra={"endpoint": endpoint, "error": str(e), "error_type": type(e).__name__},
            )
            raise TransportError(endpoint, f"Relay endpoint unreachable: {e}") from e

    @staticmethod
    def _parse(model: Type[ModelT], body: Any, endpoint: str) -> ModelT:
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise ProtocolError(
                f"Unexpected relay response shape: {e.error_count()} error(s)",
                endpoint=endpoint,
            ) from e

    async def lookup(
        self, endpoint: str, dimension: Dimension, value: str
    ) -> RemoteLookupResponse:
        """Ask a relay whether ``value`` exists in the ``dimension`` column."""
        logger.debug(
            "relay_lookup",
            extra={"endpoint": endpoint, "dimension": dimension.value, "value": digest(value)},
        )
        body = await self._get_json(
            endpoint, params={"searchType": dimension.value, "searchValue": value}
        )
        return self._parse(RemoteLookupResponse, body, endpoint)

    async def fetch_snapshot(self, endpoint: str) -> SnapshotResponse:
        """Download the whole sheet through a relay."""
        logger.debug("relay_fetch_snapshot", extra={"endpoint": endpoint})
        body = await self._get_json(endpoint)
        return self._parse(SnapshotResponse, body, endpoint)
