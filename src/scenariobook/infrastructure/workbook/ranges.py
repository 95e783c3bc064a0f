from __future__ import annotations

from scenariobook.core.errors import WorkbookTemplateError
from scenariobook.infrastructure.workbook.markup import find_child, local_tag, parse_xml, qualified, serialize_xml

HEADER_ROW = 1


def column_letters(column: int) -> str:
    """Return the spreadsheet column name for a 1-based column number (1 -> A, 27 -> AA)."""
    if column < 1:
        raise ValueError(f"Column number must be >= 1, got {column}")
    letters = ""
    n = column
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def cell_ref(column_index: int, row: int) -> str:
    """Cell address for a 0-based column offset and a 1-based row number."""
    return f"{column_letters(column_index + 1)}{row}"


def compute_range(field_count: int, record_count: int) -> str:
    last_column = column_letters(field_count)
    last_row = HEADER_ROW + max(1, record_count)
    return f"A1:{last_column}{last_row}"


def upsert_dimension(sheet_xml: str, ref: str) -> str:
    root = parse_xml(sheet_xml, entry="worksheet")
    if local_tag(root.tag) != "worksheet":
        raise WorkbookTemplateError(f"Expected a worksheet part, found <{local_tag(root.tag)}>")

    dimension = find_child(root, "dimension")
    if dimension is not None:
        dimension.set("ref", ref)
        return serialize_xml(root)

    dimension = root.makeelement(qualified(root, "dimension"), {"ref": ref})
    # CT_Worksheet orders sheetPr before dimension.
    position = 1 if len(root) and local_tag(root[0].tag) == "sheetPr" else 0
    root.insert(position, dimension)
    return serialize_xml(root)


def update_table_range(table_xml: str, ref: str) -> str:
    root = parse_xml(table_xml, entry="table")
    if local_tag(root.tag) != "table":
        raise WorkbookTemplateError(f"Expected a table part, found <{local_tag(root.tag)}>")
    root.set("ref", ref)
    auto_filter = find_child(root, "autoFilter")
    if auto_filter is not None:
        auto_filter.set("ref", ref)
    return serialize_xml(root)


def read_dimension(sheet_xml: str) -> str | None:
    dimension = find_child(parse_xml(sheet_xml, entry="worksheet"), "dimension")
    return None if dimension is None else dimension.get("ref")


def read_table_range(table_xml: str) -> str | None:
    return parse_xml(table_xml, entry="table").get("ref")
