from __future__ import annotations

import pytest

from xml_compare.core.comparison import compare_documents, compare_xml
from xml_compare.core.errors import ParseError
from xml_compare.core.models import ComparisonRequest, DiffType
from xml_compare.core.parser import parse_document


def _cmp(xml1: str, xml2: str, *, paths: list[str] | None = None, props: list[str] | None = None):
    return compare_xml(
        ComparisonRequest(xml1=xml1, xml2=xml2, ignore_paths=tuple(paths or ()), ignore_properties=tuple(props or ()))
    )


DOC = '<a c="C"><child>hey</child></a>'


def test_identical_documents_match() -> None:
    r = _cmp(DOC, DOC)
    assert r.matched
    assert r.match_ratio == 1.0
    assert r.diffs == ()
    assert r.total_elements == 2
    assert r.matched_elements == 2


def test_ignored_attribute_key_is_not_compared() -> None:
    r = _cmp(DOC, '<a c="D"><child>hey</child></a>', props=["c"])
    assert r.matched
    assert r.diffs == ()
    assert r.match_ratio == 1.0


def test_attribute_difference_is_reported_with_key_value_pairs() -> None:
    r = _cmp(DOC, '<a c="D"><child>hey</child></a>')
    assert not r.matched
    assert r.match_ratio == 0.5
    assert r.total_elements == 2
    assert r.matched_elements == 1
    assert [d.to_dict() for d in r.diffs] == [
        {
            "path": "/a",
            "diff_type": "AttributeDifferent",
            "expected": "c=C",
            "actual": "c=D",
            "message": "Attribute 'c' differs",
        }
    ]


def test_attribute_missing_and_extra_in_key_order() -> None:
    r = _cmp('<a z="1" b="2" m="3"/>', '<a m="3" y="9" b="2"/>')
    assert [(d.diff_type, d.expected, d.actual) for d in r.diffs] == [
        (DiffType.ATTRIBUTE_EXTRA, None, "y=9"),
        (DiffType.ATTRIBUTE_MISSING, "z=1", None),
    ]


def test_attribute_and_content_differences_both_reported() -> None:
    r = _cmp('<Mapping date="20250819">test</Mapping>', '<Mapping date="20250818">test2</Mapping>')
    assert not r.matched
    assert [d.diff_type for d in r.diffs] == [DiffType.ATTRIBUTE_DIFFERENT, DiffType.CONTENT_DIFFERENT]
    assert r.diffs[1].expected == "test"
    assert r.diffs[1].actual == "test2"
    assert all(d.path == "/Mapping" for d in r.diffs)


def test_text_is_compared_trimmed() -> None:
    assert _cmp("<a>  x </a>", "<a>x</a>").matched


def test_ignored_element_name_hides_content_at_any_depth() -> None:
    left = "<r><meta><ts>1</ts></meta><x><meta k='1'>a</meta></x></r>"
    right = "<r><meta><ts>2</ts><extra/></meta><x><meta k='2'>b</meta></x></r>"
    r = _cmp(left, right, props=["meta"])
    assert r.matched
    assert r.diffs == ()
    # r, meta, x, x/meta: the suppressed subtrees still count once each.
    assert r.total_elements == 4
    assert r.matched_elements == 4


def test_ignored_element_name_still_reports_presence_mismatch() -> None:
    r = _cmp("<r><meta>1</meta></r>", "<r/>", props=["meta"])
    assert not r.matched
    assert [(d.path, d.diff_type) for d in r.diffs] == [("/r/meta", DiffType.MISSING_ELEMENT)]


def test_exact_ignore_path_does_not_cover_descendants() -> None:
    left = "<root><timestamp v='1'><extra>a</extra></timestamp></root>"
    right = "<root><timestamp v='2'><extra>b</extra></timestamp></root>"
    r = _cmp(left, right, paths=["/root/timestamp"])
    assert [(d.path, d.diff_type) for d in r.diffs] == [("/root/timestamp/extra", DiffType.CONTENT_DIFFERENT)]

    assert _cmp(left, right, paths=["/root/timestamp/"]).matched
    assert _cmp(left, right, paths=["/root/timestamp/*"]).matched


def test_exact_ignore_path_only_suppresses_that_position() -> None:
    left = "<root><timestamp>1</timestamp><other>a</other></root>"
    right = "<root><timestamp>2</timestamp><other>b</other></root>"
    r = _cmp(left, right, paths=["/root/timestamp"])
    assert [d.path for d in r.diffs] == ["/root/other"]

    r = _cmp(
        "<root><timestamp><extra>1</extra></timestamp></root>",
        "<root><timestamp><extra>2</extra></timestamp></root>",
        paths=["/root/timestamp/extra/"],
    )
    assert r.matched


def test_wildcard_ignore_path_covers_subtree_and_keeps_denominator() -> None:
    left = "<root><child><deep>test1</deep></child><other>test2</other></root>"
    right = "<root><child><deep>different</deep><new/></child><other>test2</other></root>"
    r = _cmp(left, right, paths=["/root/child/*"])
    assert r.matched
    # root, child (excluded, counted once), other
    assert r.total_elements == 3
    assert r.matched_elements == 3
    assert r.match_ratio == 1.0


def test_missing_and_extra_children_are_not_descended() -> None:
    left = "<r><a><x/><y/></a><b/></r>"
    right = "<r><b/><c><z/></c></r>"
    r = _cmp(left, right)
    assert [(d.path, d.diff_type) for d in r.diffs] == [
        ("/r/a", DiffType.MISSING_ELEMENT),
        ("/r/c", DiffType.EXTRA_ELEMENT),
    ]
    assert r.diffs[0].expected == "<a>...</a>"
    assert r.diffs[1].actual == "<c>...</c>"
    # r, a (orphan), b, c (orphan)
    assert r.total_elements == 4
    assert r.matched_elements == 1


def test_duplicate_siblings_pair_in_first_occurrence_order() -> None:
    left = "<r><i>1</i><i>2</i><i>3</i></r>"
    right = "<r><i>1</i><i>2</i></r>"
    r = _cmp(left, right)
    assert [(d.path, d.diff_type, d.expected) for d in r.diffs] == [
        ("/r/i", DiffType.MISSING_ELEMENT, "<i>3</i>"),
    ]

    r = _cmp("<r><i>1</i><i>2</i></r>", "<r><i>2</i><i>1</i></r>")
    assert [(d.expected, d.actual) for d in r.diffs] == [("1", "2"), ("2", "1")]


def test_sibling_order_of_different_tags_does_not_matter() -> None:
    assert _cmp("<r><a>1</a><b>2</b></r>", "<r><b>2</b><a>1</a></r>").matched


def test_different_root_tags_report_both_roots() -> None:
    r = _cmp("<a/>", "<b/>")
    assert [(d.path, d.diff_type) for d in r.diffs] == [
        ("/a", DiffType.MISSING_ELEMENT),
        ("/b", DiffType.EXTRA_ELEMENT),
    ]
    assert r.total_elements == 2
    assert r.match_ratio == 0.0


def test_output_is_deterministic() -> None:
    left = '<r q="1" a="2"><x k="1">a</x><y/><x k="2">b</x><z>c</z></r>'
    right = '<r a="3" q="4"><z>d</z><x k="9">a</x><w/><x>b</x></r>'
    first = _cmp(left, right)
    for _ in range(5):
        assert _cmp(left, right) == first


def test_compare_documents_on_prebuilt_trees() -> None:
    left = parse_document("<a><b>1</b></a>")
    right = parse_document("<a><b>2</b></a>")
    out = compare_documents(left, right, ignore_paths=["/a/b"])
    assert out.diffs == ()
    assert (out.total_elements, out.matched_elements) == (2, 2)


def test_parse_failure_raises_without_partial_result() -> None:
    with pytest.raises(ParseError):
        _cmp(DOC, "<a><child>hey</a>")


def test_xml_prefixed_attribute_differences_are_reported() -> None:
    r = _cmp('<a xml:lang="en" lang="x"/>', '<a xml:lang="fr" lang="x"/>')
    assert [(d.diff_type, d.expected, d.actual) for d in r.diffs] == [
        (DiffType.ATTRIBUTE_DIFFERENT, "xml:lang=en", "xml:lang=fr"),
    ]

    r = _cmp('<a xml:lang="en"/>', '<a lang="en"/>')
    assert [(d.diff_type, d.expected, d.actual) for d in r.diffs] == [
        (DiffType.ATTRIBUTE_EXTRA, None, "lang=en"),
        (DiffType.ATTRIBUTE_MISSING, "xml:lang=en", None),
    ]


def test_prefixes_sharing_a_uri_are_compared_as_written() -> None:
    left = '<r xmlns:a="urn:u" xmlns:b="urn:u"><b:x/></r>'
    right = '<r xmlns:a="urn:u" xmlns:b="urn:u"><a:x/></r>'
    r = _cmp(left, right)
    assert [(d.path, d.diff_type) for d in r.diffs] == [
        ("/r/b:x", DiffType.MISSING_ELEMENT),
        ("/r/a:x", DiffType.EXTRA_ELEMENT),
    ]
