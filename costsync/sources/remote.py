"""Remote record endpoint client.

Every request carries a cache-busting ``v`` query parameter and no-cache
headers so an edited record is visible on the next poll.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

import httpx

from costsync.errors import NetworkError
from costsync.sources.base import BaseSource

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
    "Accept": "application/json",
}


def with_version(url: str, token: str) -> str:
    """Append (or replace) the ``v`` cache-busting parameter."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "v"]
    query.append(("v", token))
    return urlunsplit(parts._replace(query=urlencode(query)))


class RemoteSource(BaseSource):
    """Fetches records over HTTP with httpx."""

    def __init__(
        self,
        url: str,
        data_version: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__("remote")
        self.url = url
        self.data_version = data_version
        self._clock = clock
        self._last_token = 0
        self._version_sent = False
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, headers=NO_CACHE_HEADERS)

    def next_token(self) -> str:
        """Cache-busting token.

        The configured version is sent on the first request only; every later
        request gets a strictly increasing epoch-ms token.
        """
        if self.data_version and not self._version_sent:
            self._version_sent = True
            return self.data_version
        token = int(self._clock() * 1000)
        if token <= self._last_token:
            token = self._last_token + 1
        self._last_token = token
        return str(token)

    async def fetch_text(self) -> str:
        url = with_version(self.url, self.next_token())
        try:
            response = await self.client.get(url, headers=NO_CACHE_HEADERS)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(
                f"HTTP {exc.response.status_code} from {self.url}",
                status_code=exc.response.status_code,
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f"Request to {self.url} failed: {exc}") from exc
        return response.text

    async def close(self) -> None:
        """Close the HTTP client if this source created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> RemoteSource:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
