from __future__ import annotations

import logging

from lxml import etree

from xml_compare.core.errors import ParseError
from xml_compare.core.models import DocumentNode

logger = logging.getLogger(__name__)


def _make_parser(*, encoding: str | None) -> etree.XMLParser:
    # No DTDs, entities, XInclude or network access; comments and PIs never
    # take part in comparison.
    return etree.XMLParser(
        encoding=encoding,
        resolve_entities=False,
        load_dtd=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
        huge_tree=False,
    )


XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


def _tag_name(element: etree._Element) -> str:
    local = etree.QName(element).localname
    return f"{element.prefix}:{local}" if element.prefix else local


def _attribute_name(name: str, nsmap: dict[str | None, str]) -> str:
    """Render a Clark-notation attribute name ("{uri}local") as "prefix:local".

    lxml keeps no per-attribute prefix, so the prefix is recovered from the
    in-scope namespace map. When several prefixes are bound to the same URI the
    name stays in Clark notation rather than guessing which one was written.
    """

    if not name.startswith("{"):
        return name
    uri, local = name[1:].split("}", 1)
    if uri == XML_NAMESPACE:
        return f"xml:{local}"
    prefixes = [p for p, ns in nsmap.items() if ns == uri and p]
    if len(prefixes) == 1:
        return f"{prefixes[0]}:{local}"
    return name


def _build(element: etree._Element, parent_path: tuple[str, ...]) -> DocumentNode:
    tag = _tag_name(element)
    path = parent_path + (tag,)
    attributes: dict[str, str] = {}
    for key, value in element.attrib.items():
        name = _attribute_name(str(key), element.nsmap)
        if name in attributes:
            raise ParseError(f"Attribute {name!r} appears twice on <{tag}>")
        attributes[name] = str(value)
    children = tuple(
        _build(child, path)
        for child in element
        # Unresolved entity references show up as non-element children.
        if isinstance(child.tag, str)
    )
    return DocumentNode(
        tag=tag,
        attributes=attributes,
        text=(element.text or "").strip(),
        children=children,
        path=path,
    )


def parse_document(source: str | bytes) -> DocumentNode:
    """Parse raw XML text into an immutable DocumentNode tree.

    Raises ParseError for empty or malformed input; no partial tree is returned.
    """

    if isinstance(source, str):
        # lxml refuses str input that carries an encoding declaration.
        data = source.encode("utf-8")
        parser = _make_parser(encoding="utf-8")
    else:
        data = source
        parser = _make_parser(encoding=None)

    if not data.strip():
        raise ParseError("XML content is empty")

    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as e:
        raise ParseError(f"XML parsing error: {e}") from e

    if root is None:
        raise ParseError("XML document has no root element")
    return _build(root, ())
