"""HTTP retrieval of raw feed payloads."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import aiohttp

from roadrisk._constants import USER_AGENT
from roadrisk.exceptions import FetchError

_logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Structural fetch interface used by producers and the geometry bootstrap.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpFetcher`) concrete.
    """

    async def fetch(self, url: str) -> bytes:
        ...


class HttpFetcher:
    """GET feed URLs over a shared :class:`aiohttp.ClientSession`."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 5.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch(self, url: str) -> bytes:
        """Return the response body, raising :class:`FetchError` on any failure."""
        _logger.debug("GET %s", url)
        try:
            async with self._http.get(
                url,
                headers={"user-agent": USER_AGENT},
                timeout=self._timeout,
                allow_redirects=True,
            ) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise FetchError(
                        f"HTTP {resp.status} from {url}: {body[:200]!r}",
                        url=url,
                        status_code=resp.status,
                    )
        except FetchError:
            raise
        except asyncio.TimeoutError as exc:
            raise FetchError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise FetchError(f"Request to {url} failed: {exc}", url=url) from exc
        return body
