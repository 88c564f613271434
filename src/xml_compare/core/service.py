from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Any, Iterable

import aiohttp

from xml_compare.core.auth import Authenticator
from xml_compare.core.batch import BatchOrchestrator
from xml_compare.core.config import AppConfig
from xml_compare.core.errors import ValidationError
from xml_compare.core.fetcher import XmlFetcher
from xml_compare.core.models import (
    BatchResult,
    ComparisonRequest,
    ComparisonResult,
    LoginResult,
    UrlComparisonRequest,
)
from xml_compare.core.sessions import SessionStore, SessionSweeper

logger = logging.getLogger(__name__)


def _as_request(item: ComparisonRequest | dict[str, Any]) -> ComparisonRequest:
    return item if isinstance(item, ComparisonRequest) else ComparisonRequest.from_dict(item)


def _as_url_request(item: UrlComparisonRequest | dict[str, Any]) -> UrlComparisonRequest:
    return item if isinstance(item, UrlComparisonRequest) else UrlComparisonRequest.from_dict(item)


def _comparisons(payload: dict[str, Any] | Iterable[Any]) -> list[Any]:
    if isinstance(payload, dict):
        items = payload.get("comparisons")
        if items is None:
            raise ValidationError("Missing required field: comparisons")
        if not isinstance(items, list):
            raise ValidationError("Field comparisons must be a list")
        return items
    return list(payload)


class ComparisonService:
    """Process-wide entry point wiring the comparison core together.

    One instance owns the HTTP client, the session store and its sweeper, and
    the comparison worker pool. Use it as an async context manager so the
    sweeper and pools are stopped cleanly::

        async with ComparisonService(AppConfig.load()) as svc:
            result = await svc.compare_xml({"xml1": a, "xml2": b})
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        executor: Executor | None = None,
        store: SessionStore | None = None,
    ) -> None:
        self._config = config or AppConfig()
        self._store = store or SessionStore(ttl=self._config.sessions.ttl)
        self._sweeper = SessionSweeper(self._store, interval_seconds=self._config.sessions.sweep_interval_seconds)
        self._batch = BatchOrchestrator(settings=self._config.compare, executor=executor)
        self._http: aiohttp.ClientSession | None = None
        self._fetcher: XmlFetcher | None = None
        self._auth: Authenticator | None = None

    @property
    def sessions(self) -> SessionStore:
        return self._store

    async def start(self) -> None:
        if self._http is not None:
            return
        s = self._config.fetch
        connector = aiohttp.TCPConnector(limit=s.max_concurrency)
        # Cookies travel only through stored sessions, never through a shared jar.
        self._http = aiohttp.ClientSession(
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=None),
            cookie_jar=aiohttp.DummyCookieJar(),
        )
        self._fetcher = XmlFetcher(session=self._http, sessions=self._store, settings=s)
        self._auth = Authenticator(session=self._http, store=self._store, settings=s)
        self._sweeper.start()
        logger.info("Comparison service started")

    async def close(self) -> None:
        await self._sweeper.stop()
        if self._http is not None:
            await self._http.close()
            self._http = None
        self._fetcher = None
        self._auth = None
        self._batch.close()
        logger.info("Comparison service stopped")

    async def __aenter__(self) -> "ComparisonService":
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    def _require_started(self) -> tuple[XmlFetcher, Authenticator]:
        if self._fetcher is None or self._auth is None:
            raise RuntimeError("ComparisonService is not started")
        return self._fetcher, self._auth

    async def compare_xml(self, request: ComparisonRequest | dict[str, Any]) -> ComparisonResult:
        return await self._batch.compare(_as_request(request))

    async def compare_xml_batch(self, payload: dict[str, Any] | Iterable[Any]) -> BatchResult:
        # A malformed item is reported in its own slot rather than rejecting the batch.
        items = _comparisons(payload)
        return await self._batch.run_items(
            items,
            lambda item: self._batch.compare(_as_request(item)),
            concurrency=self._batch.max_workers * 2,
        )

    async def compare_urls(self, request: UrlComparisonRequest | dict[str, Any]) -> ComparisonResult:
        req = _as_url_request(request)
        fetcher, _ = self._require_started()
        if req.session_id or req.auth_credentials is None:
            xml1, xml2 = await fetcher.fetch_pair(req.url1, req.url2, req.session_id)
            return await self._batch.compare(req.to_comparison(xml1, xml2))

        # Inline credentials log in against the first URL; that session only
        # lives for this comparison.
        creds = req.auth_credentials
        login = await self.login(req.url1, creds.username, creds.password)
        try:
            xml1, xml2 = await fetcher.fetch_pair(req.url1, req.url2, login.session_id)
        finally:
            self.logout(login.session_id)
        return await self._batch.compare(req.to_comparison(xml1, xml2))

    async def compare_urls_batch(self, payload: dict[str, Any] | Iterable[Any]) -> BatchResult:
        items = _comparisons(payload)
        self._require_started()
        return await self._batch.run_items(
            items,
            self.compare_urls,
            concurrency=self._config.fetch.max_concurrency,
        )

    async def login(self, url: str, username: str, password: str) -> LoginResult:
        _, auth = self._require_started()
        return await auth.login(url, username, password)

    def logout(self, session_id: str) -> dict[str, bool]:
        _, auth = self._require_started()
        auth.logout(session_id)
        return {"success": True}
