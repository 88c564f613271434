from __future__ import annotations

import asyncio
import logging
import uuid

import aiohttp

from xml_compare.core.config import FetchSettings
from xml_compare.core.errors import AuthError, ValidationError
from xml_compare.core.models import LoginResult
from xml_compare.core.sessions import SessionStore
from xml_compare.core.validation import validate_url

logger = logging.getLogger(__name__)


class Authenticator:
    """Logs in against a remote target and keeps the returned cookies as a session."""

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession,
        store: SessionStore,
        settings: FetchSettings | None = None,
    ) -> None:
        self._session = session
        self._store = store
        self._settings = settings or FetchSettings()
        self._timeout = aiohttp.ClientTimeout(
            total=self._settings.timeout_seconds,
            sock_connect=self._settings.connect_timeout_seconds,
        )

    async def login(self, url: str, username: str, password: str) -> LoginResult:
        validate_url(url)
        if not username or not username.strip():
            raise ValidationError("Field username cannot be empty")

        headers = {"User-Agent": self._settings.user_agent}
        try:
            async with self._session.post(
                url,
                auth=aiohttp.BasicAuth(username, password or ""),
                data={"username": username, "password": password or ""},
                headers=headers,
                timeout=self._timeout,
                allow_redirects=False,
            ) as resp:
                if not 200 <= resp.status < 400:
                    raise AuthError(f"Authentication failed: HTTP {resp.status}")
                cookies = list(resp.headers.getall("Set-Cookie", []))
        except asyncio.TimeoutError as e:
            raise AuthError(f"Authentication failed: login target timed out ({url})") from e
        except aiohttp.ClientError as e:
            raise AuthError(f"Authentication failed: {e}") from e

        session = self._store.create(session_id=str(uuid.uuid4()), url=url, cookies=cookies)
        logger.info("Login succeeded for %s; session %s holds %d cookie(s)", url, session.session_id, len(cookies))
        return LoginResult(
            session_id=session.session_id,
            cookies=list(session.cookies),
            expires_at=session.expires_at.isoformat(),
        )

    def logout(self, session_id: str) -> None:
        if self._store.remove(session_id):
            logger.info("Logged out session %s", session_id)
