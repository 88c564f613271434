from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from xml_compare.core.errors import SessionExpired, SessionNotFound
from xml_compare.core.models import Session

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """In-memory map of session id -> Session with a fixed TTL.

    Lookups are plain dict reads and never block. ``put``, ``remove`` and
    ``sweep`` hold a short lock that guards only the map itself, so concurrent
    fetches never wait on each other. Session ids are fresh uuid4 values, so two
    logins never race on the same key.
    """

    def __init__(self, *, ttl: timedelta, clock: Callable[[], datetime] = utc_now) -> None:
        self._ttl = ttl
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._write_lock = threading.Lock()

    def create(self, *, session_id: str, url: str, cookies: list[str]) -> Session:
        now = self._clock()
        session = Session(
            session_id=session_id,
            url=url,
            cookies=tuple(cookies),
            created_at=now,
            expires_at=now + self._ttl,
        )
        self.put(session)
        return session

    def put(self, session: Session) -> None:
        with self._write_lock:
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        if session.is_expired(self._clock()):
            self.remove(session_id)
            raise SessionExpired(session_id)
        return session

    def remove(self, session_id: str) -> bool:
        with self._write_lock:
            return self._sessions.pop(session_id, None) is not None

    def sweep(self) -> int:
        now = self._clock()
        with self._write_lock:
            expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info("Evicted %d expired session(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions


class SessionSweeper:
    """Periodic eviction of expired sessions, tied to the owner's lifecycle."""

    def __init__(self, store: SessionStore, *, interval_seconds: float) -> None:
        self._store = store
        self._interval = max(0.01, float(interval_seconds))
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="session-sweeper")
        logger.debug("Session sweeper started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Session sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._store.sweep()
            except Exception:
                logger.exception("Session sweep failed")

    async def __aenter__(self) -> "SessionSweeper":
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()
