"""Public call surface: engagements, facts and mappings."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import httpx

from relay42pixel.config.models import PixelConfig
from relay42pixel.dispatch import DEFAULT_TIMEOUT, PixelDispatcher
from relay42pixel.encoding import (
    SYNC_PATH,
    cachebuster,
    encode_engagement,
    encode_fact,
    encode_mapping,
    tracking_path,
)
from relay42pixel.errors import InvalidRequest, NotConfigured
from relay42pixel.events import Engagement, Fact, Mapping
from relay42pixel.results import Failure, Result, ResultCallback

_shared_client: "PixelClient | None" = None


def _deliver(result: Result, on_result: ResultCallback | None) -> Result:
    if on_result is not None:
        on_result(result)
    return result


class PixelClient:
    """Sends engagements, facts and mappings as pixel GET requests.

    Every call resolves to exactly one :class:`Success` or :class:`Failure`,
    returned from the coroutine and, when given, passed to ``on_result``.
    Failures are never raised and never retried.
    """

    def __init__(
        self,
        config: PixelConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._config = config
        self.dispatcher = PixelDispatcher(http_client, timeout=timeout)
        self._background: set[asyncio.Task[Result]] = set()

    @property
    def config(self) -> PixelConfig | None:
        return self._config

    def configure(self, config: PixelConfig) -> None:
        """Replace the configuration used by subsequent calls."""
        self._config = config

    async def track_engagement(
        self,
        uuid: str,
        type: str,
        properties: dict[str, str] | None = None,
        on_result: ResultCallback | None = None,
    ) -> Result:
        """Send ``i``/``e``/``et``/``cb`` plus up to 32 ``cup`` properties."""

        config = self._config
        if config is None:
            return _deliver(Failure(NotConfigured()), on_result)

        event = Engagement(uuid=uuid, type=type, properties=properties or {})
        items = encode_engagement(event, cachebuster())
        result = await self.dispatcher.send(config.base_url, tracking_path(config), items)
        return _deliver(result, on_result)

    async def track_fact(
        self,
        uuid: str,
        type: str,
        ttl_seconds: int,
        properties: dict[str, str] | None = None,
        on_result: ResultCallback | None = None,
    ) -> Result:
        """Send a fact; ``ttl_seconds`` is passed through as ``fttl`` unvalidated."""

        config = self._config
        if config is None:
            return _deliver(Failure(NotConfigured()), on_result)

        event = Fact(uuid=uuid, type=type, ttl_seconds=ttl_seconds, properties=properties or {})
        items = encode_fact(event, cachebuster())
        result = await self.dispatcher.send(config.base_url, tracking_path(config), items)
        return _deliver(result, on_result)

    async def sync_mapping(
        self,
        uuid: str,
        profile_id: str,
        partner_id: str | None = None,
        merge: bool = True,
        on_result: ResultCallback | None = None,
    ) -> Result:
        """Link ``uuid`` (``ca_cookie``) to ``profile_id`` (``pid``) for a partner."""

        config = self._config
        if config is None:
            return _deliver(Failure(NotConfigured()), on_result)

        event = Mapping(uuid=uuid, profile_id=profile_id, partner_id=partner_id, merge=merge)
        try:
            items = encode_mapping(event, config, cachebuster())
        except InvalidRequest as exc:
            return _deliver(Failure(exc), on_result)

        result = await self.dispatcher.send(config.base_url, SYNC_PATH, items)
        return _deliver(result, on_result)

    def submit(self, call: Coroutine[Any, Any, Result]) -> asyncio.Task[Result]:
        """Schedule a tracking call without waiting for it."""

        task = asyncio.get_running_loop().create_task(call)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self) -> list[Result]:
        """Wait for every call scheduled with :meth:`submit`."""
        pending = list(self._background)
        if not pending:
            return []
        return list(await asyncio.gather(*pending))

    async def aclose(self) -> None:
        await self.drain()
        await self.dispatcher.aclose()

    async def __aenter__(self) -> "PixelClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def shared() -> PixelClient:
    """Process-wide default client."""
    global _shared_client
    if _shared_client is None:
        _shared_client = PixelClient()
    return _shared_client


def configure(config: PixelConfig) -> PixelClient:
    client = shared()
    client.configure(config)
    return client
