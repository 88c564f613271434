"""Recursive structural diff of two parsed XML documents.

Children are paired by tag name in first-occurrence order: the first
unconsumed ``<x>`` on the left pairs with the first unconsumed ``<x>`` on the
right. Unpaired children become MissingElement / ExtraElement entries and are
not descended into.

Every visited pair or orphan counts once toward ``total_elements``. A pair
counts toward ``matched_elements`` when it and its whole subtree produced no
discrepancy. Nodes under a prefix or wildcard ignore path, and pairs whose tag
is an ignored property, count as matched without being compared. An exact
ignore path only skips that node's own attributes and text; its children are
still compared.

All state lives in the values returned from each call, so any number of
comparisons can run in parallel threads or processes.
"""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Iterable, Iterator

from xml_compare.core.models import ComparisonRequest, ComparisonResult, DiffType, DocumentNode, XmlDiff
from xml_compare.core.parser import parse_document
from xml_compare.core.paths import PathMatcher
from xml_compare.core.scoring import score


@dataclass(frozen=True)
class DiffOutcome:
    diffs: tuple[XmlDiff, ...]
    total_elements: int
    matched_elements: int


@dataclass(frozen=True)
class IgnoreRules:
    paths: PathMatcher
    properties: frozenset[str]

    @classmethod
    def build(cls, ignore_paths: Iterable[str] = (), ignore_properties: Iterable[str] = ()) -> "IgnoreRules":
        return cls(paths=PathMatcher.compile(ignore_paths), properties=frozenset(ignore_properties))


_EXCLUDED = DiffOutcome(diffs=(), total_elements=1, matched_elements=1)


def compare_documents(
    left: DocumentNode,
    right: DocumentNode,
    *,
    ignore_paths: Iterable[str] = (),
    ignore_properties: Iterable[str] = (),
) -> DiffOutcome:
    rules = IgnoreRules.build(ignore_paths, ignore_properties)
    if left.tag != right.tag:
        # Different roots share no path; report both sides structurally.
        outcomes = [
            _orphan(left, DiffType.MISSING_ELEMENT, rules),
            _orphan(right, DiffType.EXTRA_ELEMENT, rules),
        ]
        return _merge(outcomes)
    return _compare_pair(left, right, rules)


def compare_xml(request: ComparisonRequest) -> ComparisonResult:
    """Parse both documents of ``request``, diff them and score the result.

    Module-level so it can be shipped to a process pool.
    """

    left = parse_document(request.xml1)
    right = parse_document(request.xml2)
    outcome = compare_documents(
        left,
        right,
        ignore_paths=request.ignore_paths,
        ignore_properties=request.ignore_properties,
    )
    return score(outcome.diffs, total_elements=outcome.total_elements, matched_elements=outcome.matched_elements)


def _compare_pair(left: DocumentNode, right: DocumentNode, rules: IgnoreRules) -> DiffOutcome:
    path = left.path_str
    position_only = False
    if rules.paths:
        if rules.paths.excludes_subtree(path):
            return _EXCLUDED
        position_only = rules.paths.excludes_position(path)
    if left.tag in rules.properties:
        return _EXCLUDED

    diffs: list[XmlDiff] = []
    if not position_only:
        diffs.extend(_attribute_diffs(path, left, right, rules.properties))

    if not position_only and not left.children and not right.children and left.text != right.text:
        diffs.append(
            XmlDiff(
                path=path,
                diff_type=DiffType.CONTENT_DIFFERENT,
                expected=left.text,
                actual=right.text,
                message="Content differs",
            )
        )

    total = 1
    matched = 0
    for sub in _child_outcomes(left.children, right.children, rules):
        diffs.extend(sub.diffs)
        total += sub.total_elements
        matched += sub.matched_elements

    if not diffs:
        matched += 1
    return DiffOutcome(diffs=tuple(diffs), total_elements=total, matched_elements=matched)


def _attribute_diffs(
    path: str,
    left: DocumentNode,
    right: DocumentNode,
    ignored: frozenset[str],
) -> Iterator[XmlDiff]:
    for key in sorted(left.attributes.keys() | right.attributes.keys()):
        if key in ignored:
            continue
        lv = left.attributes.get(key)
        rv = right.attributes.get(key)
        if lv is not None and rv is not None:
            if lv != rv:
                yield XmlDiff(
                    path=path,
                    diff_type=DiffType.ATTRIBUTE_DIFFERENT,
                    expected=f"{key}={lv}",
                    actual=f"{key}={rv}",
                    message=f"Attribute '{key}' differs",
                )
        elif lv is not None:
            yield XmlDiff(
                path=path,
                diff_type=DiffType.ATTRIBUTE_MISSING,
                expected=f"{key}={lv}",
                actual=None,
                message=f"Attribute '{key}' missing in second XML",
            )
        else:
            yield XmlDiff(
                path=path,
                diff_type=DiffType.ATTRIBUTE_EXTRA,
                expected=None,
                actual=f"{key}={rv}",
                message=f"Extra attribute '{key}' in second XML",
            )


def _child_outcomes(
    left_children: tuple[DocumentNode, ...],
    right_children: tuple[DocumentNode, ...],
    rules: IgnoreRules,
) -> Iterator[DiffOutcome]:
    available: dict[str, deque[int]] = defaultdict(deque)
    for idx, child in enumerate(right_children):
        available[child.tag].append(idx)

    consumed: set[int] = set()
    for child in left_children:
        queue = available.get(child.tag)
        if queue:
            idx = queue.popleft()
            consumed.add(idx)
            yield _compare_pair(child, right_children[idx], rules)
        else:
            yield _orphan(child, DiffType.MISSING_ELEMENT, rules)

    for idx, child in enumerate(right_children):
        if idx not in consumed:
            yield _orphan(child, DiffType.EXTRA_ELEMENT, rules)


def _orphan(node: DocumentNode, kind: DiffType, rules: IgnoreRules) -> DiffOutcome:
    path = node.path_str
    if rules.paths and rules.paths.excludes(path):
        return _EXCLUDED
    if kind is DiffType.MISSING_ELEMENT:
        entry = XmlDiff(
            path=path,
            diff_type=kind,
            expected=node.describe(),
            actual=None,
            message="Element missing in second XML",
        )
    else:
        entry = XmlDiff(
            path=path,
            diff_type=kind,
            expected=None,
            actual=node.describe(),
            message="Extra element in second XML",
        )
    return DiffOutcome(diffs=(entry,), total_elements=1, matched_elements=0)


def _merge(outcomes: list[DiffOutcome]) -> DiffOutcome:
    diffs: list[XmlDiff] = []
    for o in outcomes:
        diffs.extend(o.diffs)
    return DiffOutcome(
        diffs=tuple(diffs),
        total_elements=sum(o.total_elements for o in outcomes),
        matched_elements=sum(o.matched_elements for o in outcomes),
    )
