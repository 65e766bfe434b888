"""Build pixel URLs and issue them as single GET requests."""

from __future__ import annotations

from urllib.parse import quote, urlsplit, urlunsplit

import httpx

from relay42pixel.encoding import QueryItems, encode_query
from relay42pixel.errors import HttpStatus, InvalidRequest, TransportError, Unknown
from relay42pixel.results import Failure, Result, Success
from relay42pixel.runtime_logging import get_runtime_logger

DEFAULT_TIMEOUT = 5.0


def build_url(base_url: str, path: str, items: QueryItems) -> str:
    """Replace the base URL's path and query with ``path`` and ``items``."""

    try:
        parts = urlsplit(base_url)
    except ValueError as exc:
        raise InvalidRequest(f"malformed base URL {base_url!r}: {exc}") from exc

    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise InvalidRequest(f"base URL must be absolute http(s): {base_url!r}")
    if not path.startswith("/"):
        path = f"/{path}"
    return urlunsplit((parts.scheme, parts.netloc, quote(path, safe="/"), encode_query(items), ""))


class PixelDispatcher:
    """Send one GET per call and classify the response into a Result."""

    def __init__(self, http_client: httpx.AsyncClient | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._client = http_client
        self._owns_client = http_client is None
        self.timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def send(self, base_url: str, path: str, items: QueryItems) -> Result:
        logger = get_runtime_logger()
        try:
            url = build_url(base_url, path, items)
        except InvalidRequest as exc:
            logger.debug("pixel.result", outcome="invalid_request", reason=exc.reason)
            return Failure(exc)

        logger.debug("pixel.request", url=url)
        try:
            response = await self.client.get(url)
        except httpx.InvalidURL as exc:
            logger.debug("pixel.result", url=url, outcome="invalid_request", error=str(exc))
            return Failure(InvalidRequest(str(exc)), url=url)
        except httpx.HTTPError as exc:
            logger.debug("pixel.result", url=url, outcome="transport_error", error=repr(exc))
            return Failure(TransportError(exc), url=url)

        status = getattr(response, "status_code", None)
        if not isinstance(status, int):
            logger.debug("pixel.result", url=url, outcome="unknown")
            return Failure(Unknown(), url=url)

        if not 200 <= status < 300:
            logger.debug("pixel.result", url=url, outcome="http_status", status=status)
            return Failure(HttpStatus(status), url=url)

        logger.debug("pixel.result", url=url, outcome="success", status=status)
        return Success(url=url, status_code=status)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
