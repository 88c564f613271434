from __future__ import annotations

import pytest

from xml_compare.core.errors import ParseError
from xml_compare.core.parser import parse_document


def test_parse_builds_paths_attributes_and_text() -> None:
    root = parse_document('<a c="C"><child>  hey  </child><child k="1"/></a>')
    assert root.tag == "a"
    assert root.path_str == "/a"
    assert root.attributes == {"c": "C"}
    assert [c.path_str for c in root.children] == ["/a/child", "/a/child"]
    assert root.children[0].text == "hey"
    assert root.children[1].attributes == {"k": "1"}


def test_parse_drops_comments_and_processing_instructions() -> None:
    root = parse_document("<a><!-- note --><?pi x?><b>1</b></a>")
    assert [c.tag for c in root.children] == ["b"]


def test_parse_accepts_bytes_and_str_with_encoding_declaration() -> None:
    decl = '<?xml version="1.0" encoding="UTF-8"?><a>é</a>'
    assert parse_document(decl).text == "é"
    assert parse_document(decl.encode("utf-8")).text == "é"


def test_prefixed_names_are_kept_as_written() -> None:
    root = parse_document('<ns:a xmlns:ns="urn:x" ns:k="v"><ns:b/></ns:a>')
    assert root.tag == "ns:a"
    assert root.attributes == {"ns:k": "v"}
    assert root.children[0].path_str == "/ns:a/ns:b"


@pytest.mark.parametrize("bad", ["", "   ", "<a><b></a>", "not xml", "<a/><b/>"])
def test_malformed_input_raises_parse_error(bad: str) -> None:
    with pytest.raises(ParseError):
        parse_document(bad)


def test_xml_prefixed_attribute_is_distinct_from_plain_one() -> None:
    root = parse_document('<a xml:lang="en" lang="x"/>')
    assert root.attributes == {"xml:lang": "en", "lang": "x"}


def test_tag_prefix_is_the_one_written_when_prefixes_share_a_uri() -> None:
    root = parse_document('<r xmlns:a="urn:u" xmlns:b="urn:u"><b:x/><a:y/></r>')
    assert [c.tag for c in root.children] == ["b:x", "a:y"]


def test_default_namespace_leaves_tags_unprefixed() -> None:
    root = parse_document('<r xmlns="urn:d"><x/></r>')
    assert root.path_str == "/r"
    assert root.children[0].path_str == "/r/x"


def test_attribute_with_ambiguous_prefix_keeps_its_uri() -> None:
    root = parse_document('<r xmlns:a="urn:u" xmlns:b="urn:u" b:k="1" xmlns:c="urn:c" c:k="2"/>')
    assert root.attributes == {"{urn:u}k": "1", "c:k": "2"}
