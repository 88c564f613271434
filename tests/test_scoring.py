from __future__ import annotations

from xml_compare.core.models import DiffType, XmlDiff
from xml_compare.core.scoring import match_ratio, score


def test_empty_denominator_scores_as_full_match() -> None:
    assert match_ratio(0, 0) == 1.0


def test_ratio_is_clamped() -> None:
    assert match_ratio(3, 4) == 0.75
    assert match_ratio(5, 4) == 1.0
    assert match_ratio(-1, 4) == 0.0


def test_matched_follows_diff_list_not_ratio() -> None:
    diff = XmlDiff(path="/a", diff_type=DiffType.CONTENT_DIFFERENT, expected="1", actual="2", message="Content differs")
    r = score([diff], total_elements=10, matched_elements=9)
    assert not r.matched
    assert r.match_ratio == 0.9
    assert r.diffs == (diff,)

    r = score([], total_elements=2, matched_elements=2)
    assert r.matched
    assert r.to_dict() == {
        "matched": True,
        "match_ratio": 1.0,
        "diffs": [],
        "total_elements": 2,
        "matched_elements": 2,
    }
