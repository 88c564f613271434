from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from xml_compare.core.validation import (
    optional_str_list,
    require_object,
    require_str,
    validate_ignore_paths,
    validate_ignore_properties,
    validate_url,
    validate_xml_content,
)


@dataclass(frozen=True)
class DocumentNode:
    tag: str
    attributes: dict[str, str]
    text: str
    children: tuple["DocumentNode", ...]
    path: tuple[str, ...]

    @property
    def path_str(self) -> str:
        return "/" + "/".join(self.path)

    def describe(self) -> str:
        """Short single-line rendering used in MissingElement/ExtraElement entries."""

        attrs = " ".join(f'{k}="{self.attributes[k]}"' for k in sorted(self.attributes))
        head = f"<{self.tag} {attrs}>" if attrs else f"<{self.tag}>"
        if self.children:
            return f"{head}...</{self.tag}>"
        return f"{head}{self.text}</{self.tag}>"


class DiffType(str, Enum):
    ATTRIBUTE_DIFFERENT = "AttributeDifferent"
    ATTRIBUTE_MISSING = "AttributeMissing"
    ATTRIBUTE_EXTRA = "AttributeExtra"
    CONTENT_DIFFERENT = "ContentDifferent"
    MISSING_ELEMENT = "MissingElement"
    EXTRA_ELEMENT = "ExtraElement"


@dataclass(frozen=True)
class XmlDiff:
    path: str
    diff_type: DiffType
    expected: str | None
    actual: str | None
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "diff_type": self.diff_type.value,
            "expected": self.expected,
            "actual": self.actual,
            "message": self.message,
        }


@dataclass(frozen=True)
class ComparisonRequest:
    xml1: str | bytes
    xml2: str | bytes
    ignore_paths: tuple[str, ...] = ()
    ignore_properties: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComparisonRequest":
        data = require_object(data, "Comparison request")
        xml1 = require_str(data, "xml1")
        xml2 = require_str(data, "xml2")
        validate_xml_content(xml1, field_name="xml1")
        validate_xml_content(xml2, field_name="xml2")
        ignore_paths = optional_str_list(data, "ignore_paths")
        ignore_properties = optional_str_list(data, "ignore_properties")
        validate_ignore_paths(ignore_paths)
        validate_ignore_properties(ignore_properties)
        return cls(xml1=xml1, xml2=xml2, ignore_paths=ignore_paths, ignore_properties=ignore_properties)


@dataclass(frozen=True)
class ComparisonResult:
    matched: bool
    match_ratio: float
    diffs: tuple[XmlDiff, ...]
    total_elements: int
    matched_elements: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "matched": self.matched,
            "match_ratio": self.match_ratio,
            "diffs": [d.to_dict() for d in self.diffs],
            "total_elements": self.total_elements,
            "matched_elements": self.matched_elements,
        }


@dataclass(frozen=True)
class ErrorDescriptor:
    index: int
    error_type: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "error_type": self.error_type, "message": self.message}


@dataclass(frozen=True)
class BatchItemOutcome:
    index: int
    result: ComparisonResult | None = None
    error: ErrorDescriptor | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.result is not None:
            return self.result.to_dict()
        assert self.error is not None
        return self.error.to_dict()


@dataclass(frozen=True)
class BatchResult:
    results: list[BatchItemOutcome]
    total_comparisons: int
    successful_comparisons: int
    failed_comparisons: int

    @classmethod
    def from_outcomes(cls, outcomes: list[BatchItemOutcome]) -> "BatchResult":
        failed = sum(1 for o in outcomes if not o.ok)
        return cls(
            results=outcomes,
            total_comparisons=len(outcomes),
            successful_comparisons=len(outcomes) - failed,
            failed_comparisons=failed,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [o.to_dict() for o in self.results],
            "total_comparisons": self.total_comparisons,
            "successful_comparisons": self.successful_comparisons,
            "failed_comparisons": self.failed_comparisons,
        }


@dataclass(frozen=True)
class AuthCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class UrlComparisonRequest:
    url1: str
    url2: str
    ignore_paths: tuple[str, ...] = ()
    ignore_properties: tuple[str, ...] = ()
    session_id: str | None = None
    auth_credentials: AuthCredentials | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UrlComparisonRequest":
        data = require_object(data, "URL comparison request")
        url1 = require_str(data, "url1")
        url2 = require_str(data, "url2")
        validate_url(url1)
        validate_url(url2)
        ignore_paths = optional_str_list(data, "ignore_paths")
        ignore_properties = optional_str_list(data, "ignore_properties")
        validate_ignore_paths(ignore_paths)
        validate_ignore_properties(ignore_properties)

        creds = None
        raw_creds = data.get("auth_credentials")
        if raw_creds:
            raw_creds = require_object(raw_creds, "Field auth_credentials")
            creds = AuthCredentials(
                username=require_str(raw_creds, "username"),
                password=str(raw_creds.get("password") or ""),
            )
        session_id = data.get("session_id") or None
        return cls(
            url1=url1,
            url2=url2,
            ignore_paths=ignore_paths,
            ignore_properties=ignore_properties,
            session_id=str(session_id) if session_id else None,
            auth_credentials=creds,
        )

    def to_comparison(self, xml1: str | bytes, xml2: str | bytes) -> ComparisonRequest:
        return ComparisonRequest(
            xml1=xml1,
            xml2=xml2,
            ignore_paths=self.ignore_paths,
            ignore_properties=self.ignore_properties,
        )


@dataclass(frozen=True)
class Session:
    session_id: str
    url: str
    cookies: tuple[str, ...]
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def cookie_header(self) -> str:
        """Render stored Set-Cookie values as a single Cookie request header."""

        pairs = []
        for raw in self.cookies:
            pair = raw.split(";", 1)[0].strip()
            if pair:
                pairs.append(pair)
        return "; ".join(pairs)


@dataclass(frozen=True)
class LoginResult:
    session_id: str
    cookies: list[str] = field(default_factory=list)
    expires_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"session_id": self.session_id, "cookies": list(self.cookies), "expires_at": self.expires_at}
