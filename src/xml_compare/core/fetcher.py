from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator

import aiohttp
from aiolimiter import AsyncLimiter

from xml_compare.core.config import FetchSettings
from xml_compare.core.errors import NetworkError
from xml_compare.core.sessions import SessionStore
from xml_compare.core.validation import validate_url

logger = logging.getLogger(__name__)


def build_limiter(requests_per_second: float | None) -> AsyncLimiter | None:
    if not requests_per_second:
        return None
    # aiolimiter acquires 1 "token" per request by default.
    # If requests_per_second < 1, we must stretch the time period instead of using a
    # fractional max_rate, otherwise aiolimiter raises:
    # "Can't acquire more than the maximum capacity".
    rps = max(0.1, float(requests_per_second))
    if rps >= 1.0:
        return AsyncLimiter(max_rate=rps, time_period=1.0)
    return AsyncLimiter(max_rate=1.0, time_period=1.0 / rps)


class XmlFetcher:
    """Downloads XML documents, optionally carrying a stored session's cookies.

    Every request has its own timeout and runs as its own task. Failures are
    reported as NetworkError and never retried here.
    """

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession,
        sessions: SessionStore,
        settings: FetchSettings | None = None,
    ) -> None:
        self._session = session
        self._sessions = sessions
        self._settings = settings or FetchSettings()
        self._limiter = build_limiter(self._settings.requests_per_second)
        self._timeout = aiohttp.ClientTimeout(
            total=self._settings.timeout_seconds,
            sock_connect=self._settings.connect_timeout_seconds,
        )

    def _headers(self, session_id: str | None) -> dict[str, str]:
        headers = {
            "User-Agent": self._settings.user_agent,
            "Accept": "application/xml,text/xml;q=0.9,*/*;q=0.8",
        }
        if session_id:
            # SessionNotFound / SessionExpired propagate to the caller.
            cookie = self._sessions.get(session_id).cookie_header()
            if cookie:
                headers["Cookie"] = cookie
        return headers

    @contextlib.asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        if self._limiter is None:
            yield
            return
        async with self._limiter:
            yield

    async def fetch(self, url: str, session_id: str | None = None) -> bytes:
        validate_url(url)
        headers = self._headers(session_id)

        try:
            async with self._slot():
                async with self._session.get(url, headers=headers, timeout=self._timeout, allow_redirects=True) as resp:
                    if not 200 <= resp.status < 300:
                        raise NetworkError(url, f"HTTP {resp.status}", status=resp.status)
                    body = await resp.read()
        except asyncio.TimeoutError as e:
            raise NetworkError(url, "Request timed out") from e
        except aiohttp.ClientError as e:
            raise NetworkError(url, f"Request failed: {e}") from e

        logger.debug("Fetched %s (%d bytes)", url, len(body))
        return body

    async def fetch_pair(self, url1: str, url2: str, session_id: str | None = None) -> tuple[bytes, bytes]:
        """Fetch both documents concurrently; the first failure cancels the sibling."""

        first = asyncio.ensure_future(self.fetch(url1, session_id))
        second = asyncio.ensure_future(self.fetch(url2, session_id))
        try:
            left, right = await asyncio.gather(first, second)
        except BaseException:
            first.cancel()
            second.cancel()
            raise
        return left, right
