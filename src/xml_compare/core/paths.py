from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

SEPARATOR = "/"
ANY_DEPTH = "*"


def path_matches(path: str, pattern: str) -> bool:
    """Return True when ``pattern`` excludes the node at ``path``.

    Three pattern forms are understood:

    - exact: ``/root/timestamp`` matches only that path;
    - prefix: ``/root/meta/`` matches ``/root/meta`` and everything below it;
    - wildcard: ``/root/meta/*`` is the prefix form with explicit any-depth
      intent, and also matches ``/root/meta`` itself.

    Matching is case-sensitive and purely textual over whole path segments.
    """

    if pattern == path:
        return True
    if pattern.endswith(ANY_DEPTH):
        pattern = pattern[: -len(ANY_DEPTH)]
        if not pattern.endswith(SEPARATOR):
            # "/root/item*" style: plain string prefix, as the wildcard has always behaved.
            return path.startswith(pattern)
    if pattern.endswith(SEPARATOR):
        base = pattern.rstrip(SEPARATOR)
        if not base:
            return True
        return path == base or path.startswith(base + SEPARATOR)
    return False


@dataclass(frozen=True)
class PathMatcher:
    """Precompiled ignore-path set for one comparison request."""

    exact: frozenset[str]
    prefixes: tuple[str, ...]
    wildcards: tuple[str, ...]

    @classmethod
    def compile(cls, patterns: Iterable[str]) -> "PathMatcher":
        exact: set[str] = set()
        prefixes: list[str] = []
        wildcards: list[str] = []
        for p in patterns:
            if p.endswith(ANY_DEPTH):
                wildcards.append(p)
            elif p.endswith(SEPARATOR):
                prefixes.append(p)
            else:
                exact.add(p)
        return cls(exact=frozenset(exact), prefixes=tuple(prefixes), wildcards=tuple(wildcards))

    def __bool__(self) -> bool:
        return bool(self.exact or self.prefixes or self.wildcards)

    def excludes_position(self, path: str) -> bool:
        """Exact patterns exempt one node's own attributes and text, not its children."""

        return path in self.exact

    def excludes_subtree(self, path: str) -> bool:
        return any(path_matches(path, p) for p in self.prefixes) or any(
            path_matches(path, p) for p in self.wildcards
        )

    def excludes(self, path: str) -> bool:
        return self.excludes_position(path) or self.excludes_subtree(path)
