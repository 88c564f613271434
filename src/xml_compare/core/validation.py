from __future__ import annotations

from typing import Any, Iterable

from yarl import URL

from xml_compare.core.errors import ValidationError


def require_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be an object")
    return data


def optional_str_list(data: dict[str, Any], key: str) -> tuple[str, ...]:
    """Read an optional list-of-strings field; absent or null means empty."""

    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"Field {key} must be a list of strings")
    return tuple(value)


def require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        raise ValidationError(f"Missing required field: {key}")
    if not isinstance(value, str):
        raise ValidationError(f"Field {key} must be a string")
    if not value.strip():
        raise ValidationError(f"Field {key} cannot be empty")
    return value


def validate_xml_content(xml: str | bytes, *, field_name: str = "xml") -> None:
    text = xml.decode("utf-8", errors="ignore") if isinstance(xml, bytes) else xml
    stripped = text.lstrip("\ufeff").strip()
    if not stripped:
        raise ValidationError(f"{field_name}: XML content cannot be empty")
    if not stripped.startswith("<"):
        raise ValidationError(f"{field_name}: invalid XML format")


def validate_url(url: str) -> None:
    try:
        parsed = URL(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL: {url}") from e
    if parsed.scheme not in {"http", "https"} or not parsed.host:
        raise ValidationError(f"Invalid URL: {url}")


def validate_ignore_paths(patterns: Iterable[str]) -> None:
    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern:
            raise ValidationError("Ignore path patterns must be non-empty strings")
        if not pattern.startswith("/"):
            raise ValidationError(f"Ignore path must start with '/': {pattern!r}")
        if "*" in pattern[:-1]:
            raise ValidationError(f"Wildcard '*' is only allowed at the end of an ignore path: {pattern!r}")


def validate_ignore_properties(names: Iterable[str]) -> None:
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Ignore properties must be non-empty strings")
