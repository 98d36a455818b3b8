"""Retrieval of manifests and replacement content.

Resolution only needs two coroutines from a fetcher:

    await fetcher.fetch_json(path)  -> parsed JSON document
    await fetcher.fetch_text(path)  -> response body

Both raise ResourceUnavailable when the path cannot be served. fetch_json
raises ValueError when the body is not JSON.
"""

import json
import logging
from typing import Any, Protocol

import httpx

from src.ab.errors import ResourceUnavailable

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch_json(self, path: str) -> Any: ...

    async def fetch_text(self, path: str) -> str: ...


class HttpFetcher:
    """Fetches site-relative paths from an origin over HTTP.

    Example:
        >>> async with HttpFetcher("https://main--site.example.com") as fetcher:
        ...     manifest = await fetcher.fetch_json("/experiments/hero/manifest.json")
    """

    def __init__(
        self,
        origin: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http_client = httpx.AsyncClient(
            base_url=origin,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        await self._http_client.aclose()

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        await self.close()

    async def _get(self, path: str) -> httpx.Response:
        try:
            response = await self._http_client.get(path)
        except httpx.HTTPError as e:
            logger.warning("Request for %s failed: %s", path, e)
            raise ResourceUnavailable(path, reason=str(e)) from e
        if response.is_error:
            logger.warning("Request for %s returned %d", path, response.status_code)
            raise ResourceUnavailable(path, status=response.status_code)
        return response

    async def fetch_json(self, path: str) -> Any:
        response = await self._get(path)
        return response.json()

    async def fetch_text(self, path: str) -> str:
        response = await self._get(path)
        return response.text


class StaticFetcher:
    """Serves documents from a mapping of path -> JSON value or text.

    Used to resolve experiments against manifests on disk (the simulator and
    the manifest validator) without a running site.
    """

    def __init__(self, resources: dict[str, Any] | None = None) -> None:
        self.resources = dict(resources or {})
        self.requested: list[str] = []

    def _lookup(self, path: str) -> Any:
        self.requested.append(path)
        if path not in self.resources:
            raise ResourceUnavailable(path, status=404)
        return self.resources[path]

    async def fetch_json(self, path: str) -> Any:
        value = self._lookup(path)
        if isinstance(value, (str, bytes)):
            return json.loads(value)
        return value

    async def fetch_text(self, path: str) -> str:
        value = self._lookup(path)
        if not isinstance(value, str):
            raise ResourceUnavailable(path, reason="not a text document")
        return value
