"""
Collector transport -- ships batches of telemetry to the remote collector.

The collector contract is minimal: ``POST {collector_url}`` with
``{"events": [...]}``; any 2xx is success and the body is ignored.
"""

import logging
from typing import Optional, Protocol, Sequence

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """The collector rejected a batch or the send failed."""


class CollectorUnreachable(TransportError):
    """The collector could not be reached at all (connection error or timeout)."""


class CollectorTransport(Protocol):
    """What the sync queue needs from a transport."""

    async def send(self, items: Sequence[BaseModel]) -> None:
        ...

    async def probe(self) -> bool:
        ...


def encode_batch(items: Sequence[BaseModel]) -> dict:
    """Wire body for one batch, FIFO order preserved."""
    return {"events": [item.model_dump(mode="json") for item in items]}


class HttpCollectorTransport:
    """httpx-backed transport for the remote collector."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, items: Sequence[BaseModel]) -> None:
        try:
            resp = await self._client.post(self.url, json=encode_batch(items))
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise CollectorUnreachable(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise TransportError(str(exc)) from exc

        if not resp.is_success:
            raise TransportError(f"collector returned {resp.status_code}")
        logger.debug("Collector accepted %d items", len(items))

    async def probe(self) -> bool:
        """True when the collector answers at all, whatever the status code."""
        try:
            await self._client.head(self.url)
        except httpx.HTTPError:
            return False
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
