from __future__ import annotations

import re

from lxml import etree

from scenariobook.core.errors import WorkbookTemplateError

SPREADSHEET_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
OFFICE_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
XML_NS = "http://www.w3.org/XML/1998/namespace"

# Characters outside the XML 1.0 Char production.
_ILLEGAL_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

_PARSER = etree.XMLParser(
    remove_blank_text=False,
    resolve_entities=False,
    no_network=True,
    huge_tree=True,
)


def parse_xml(text: str, *, entry: str = "<xml>") -> etree._Element:
    try:
        return etree.fromstring(text.encode("utf-8"), parser=_PARSER)
    except etree.XMLSyntaxError as exc:
        raise WorkbookTemplateError(f"Malformed XML in {entry}: {exc}") from exc


def serialize_xml(root: etree._Element) -> str:
    tree = root.getroottree()
    docinfo = tree.docinfo
    data = etree.tostring(
        tree,
        xml_declaration=True,
        encoding="UTF-8",
        standalone=docinfo.standalone,
    )
    return data.decode("utf-8")


def local_tag(tag: object) -> str:
    if not isinstance(tag, str):
        # Comments and processing instructions.
        return ""
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def qualified(root: etree._Element, name: str) -> str:
    """Qualify ``name`` with the namespace of ``root`` so new nodes reuse its prefix."""
    namespace = etree.QName(root).namespace
    if namespace:
        return f"{{{namespace}}}{name}"
    return name


def iter_children(node: etree._Element, name: str):
    for child in node:
        if local_tag(child.tag) == name:
            yield child


def find_child(node: etree._Element, name: str) -> etree._Element | None:
    return next(iter_children(node, name), None)


def clean_text(value: str) -> str:
    return _ILLEGAL_XML_CHARS.sub("", value)
