from __future__ import annotations

from typing import Sequence

from xml_compare.core.models import ComparisonResult, XmlDiff


def match_ratio(matched_elements: int, total_elements: int) -> float:
    if total_elements <= 0:
        return 1.0
    return min(1.0, max(0.0, matched_elements / total_elements))


def score(diffs: Sequence[XmlDiff], *, total_elements: int, matched_elements: int) -> ComparisonResult:
    return ComparisonResult(
        matched=len(diffs) == 0,
        match_ratio=match_ratio(matched_elements, total_elements),
        diffs=tuple(diffs),
        total_elements=total_elements,
        matched_elements=matched_elements,
    )
