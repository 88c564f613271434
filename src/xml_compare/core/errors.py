from __future__ import annotations

from typing import Any


class XmlCompareError(Exception):
    """Base class for every error the comparison core reports to callers."""

    error_type = "InternalError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error_type": self.error_type, "message": self.message}


class ParseError(XmlCompareError):
    error_type = "ParseError"


class ValidationError(XmlCompareError):
    error_type = "ValidationError"


class NetworkError(XmlCompareError):
    error_type = "NetworkError"

    def __init__(self, url: str, message: str, *, status: int | None = None) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["url"] = self.url
        if self.status is not None:
            out["status"] = self.status
        return out


class AuthError(XmlCompareError):
    error_type = "AuthError"


class SessionNotFound(XmlCompareError):
    error_type = "SessionNotFound"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class SessionExpired(XmlCompareError):
    error_type = "SessionExpired"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session expired: {session_id}")
        self.session_id = session_id
