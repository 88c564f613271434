from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

ENV_PREFIX = "XML_COMPARE_"


@dataclass(frozen=True)
class CompareSettings:
    # None sizes the pool to os.cpu_count().
    max_workers: int | None = None
    executor: str = "process"  # "process" or "thread"
    progress_every: int = 10_000


@dataclass(frozen=True)
class FetchSettings:
    timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 10.0
    max_concurrency: int = 64
    requests_per_second: float | None = None
    user_agent: str = "xml-compare/0.1"


@dataclass(frozen=True)
class SessionSettings:
    ttl_minutes: float = 60.0
    sweep_interval_seconds: float = 300.0

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.ttl_minutes)


@dataclass(frozen=True)
class PathsConfig:
    log_path: Path | None = None
    log_level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    compare: CompareSettings = field(default_factory=CompareSettings)
    fetch: FetchSettings = field(default_factory=FetchSettings)
    sessions: SessionSettings = field(default_factory=SessionSettings)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "AppConfig":
        """Build the config from an optional JSON file, then environment overrides.

        The JSON file mirrors the dataclass layout::

            {"compare": {"executor": "thread"}, "sessions": {"ttl_minutes": 30}}

        Environment variables use ``XML_COMPARE_<SECTION>_<FIELD>``, e.g.
        ``XML_COMPARE_FETCH_TIMEOUT_SECONDS=10``.
        """

        cfg = cls()
        if path is not None and path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"Config file must contain a JSON object: {path}")
            cfg = cfg.with_overrides(data)
        return cfg.with_overrides(_env_overrides(os.environ))

    def with_overrides(self, data: dict[str, dict[str, Any]]) -> "AppConfig":
        sections: dict[str, Any] = {}
        for f in fields(self):
            section = getattr(self, f.name)
            raw = data.get(f.name)
            if not raw:
                continue
            if not isinstance(raw, dict):
                raise ValueError(f"Config section {f.name} must be an object")
            known = {sf.name: sf for sf in fields(section)}
            updates: dict[str, Any] = {}
            for key, value in raw.items():
                if key not in known:
                    logger.warning("Ignoring unknown config key %s.%s", f.name, key)
                    continue
                updates[key] = _coerce(getattr(section, key), key, value)
            sections[f.name] = replace(section, **updates)
        return replace(self, **sections)


def _env_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, Any]]:
    out: dict[str, dict[str, Any]] = {}
    section_names = [f.name for f in fields(AppConfig)]
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        rest = key[len(ENV_PREFIX):].lower()
        for name in section_names:
            if rest.startswith(name + "_"):
                out.setdefault(name, {})[rest[len(name) + 1:]] = value
                break
    return out


def _coerce(current: Any, key: str, value: Any) -> Any:
    if value is None or value == "":
        return None
    if key.endswith("_path"):
        return Path(str(value))
    if isinstance(current, bool):
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(current, int) or key == "max_workers":
        return int(value)
    if isinstance(current, float) or key == "requests_per_second":
        return float(value)
    return str(value)
