from __future__ import annotations

import json
import math
import re
import unicodedata
from collections.abc import Collection, Mapping, Sequence

from lxml import etree

from scenariobook.core.errors import WorkbookTemplateError
from scenariobook.infrastructure.workbook.ranges import cell_ref
from scenariobook.infrastructure.workbook.markup import (
    SPREADSHEET_NS,
    XML_NS,
    clean_text,
    find_child,
    iter_children,
    parse_xml,
    qualified,
    serialize_xml,
)

DATA_START_ROW = 2

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_CELL_COLUMN = re.compile(r"[A-Z]+")


def parse_numeric(value: object) -> float | None:
    """Best-effort numeric reading of a cell value.

    Accepts finite numbers as-is and strings such as ``"$1,234.50"`` or
    ``"(500)"`` (accounting negative). Anything else yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None

    text = str(value).strip()
    negative = False
    if len(text) >= 2 and text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]

    cleaned = "".join(
        ch for ch in text if ch != "," and not ch.isspace() and unicodedata.category(ch) != "Sc"
    )
    if not _DECIMAL.fullmatch(cleaned):
        return None
    try:
        number = float(cleaned)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return -abs(number) if negative else number


def format_numeric(number: float) -> str:
    if number.is_integer() and abs(number) < 1e16:
        return str(int(number))
    return repr(number)


def text_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _row_number(row: etree._Element, implied: int) -> int:
    raw = str(row.get("r") or "").strip()
    return int(raw) if raw.isdigit() else implied


def _template_cell_styles(row: etree._Element | None) -> dict[str, str]:
    """Column letter -> style index of the cells in a template data row."""
    if row is None:
        return {}
    styles: dict[str, str] = {}
    for cell in iter_children(row, "c"):
        match = _CELL_COLUMN.match(str(cell.get("r") or ""))
        style = cell.get("s")
        if match and style:
            styles[match.group(0)] = style
    return styles


def _append_cell(
    row: etree._Element,
    ref: str,
    value: object,
    *,
    numeric: bool,
    style: str | None,
) -> None:
    attrib = {"r": ref}
    if style:
        attrib["s"] = style

    if numeric:
        cell = etree.SubElement(row, qualified(row, "c"), attrib)
        number = parse_numeric(value)
        if number is not None:
            etree.SubElement(cell, qualified(row, "v")).text = format_numeric(number)
        return

    attrib["t"] = "inlineStr"
    cell = etree.SubElement(row, qualified(row, "c"), attrib)
    inline = etree.SubElement(cell, qualified(row, "is"))
    text_node = etree.SubElement(inline, qualified(row, "t"))
    text = clean_text(text_value(value))
    if text != text.strip():
        text_node.set(f"{{{XML_NS}}}space", "preserve")
    text_node.text = text


def _append_rows(
    sheet_data: etree._Element,
    records: Sequence[Mapping[str, object]],
    fields: Sequence[str],
    numeric_fields: Collection[str],
    start_row: int,
    styles: Mapping[str, str] | None = None,
) -> list[etree._Element]:
    styles = styles or {}
    rows: list[etree._Element] = []
    for offset, record in enumerate(records):
        row_number = start_row + offset
        row = etree.SubElement(sheet_data, qualified(sheet_data, "row"), {"r": str(row_number)})
        for idx, field in enumerate(fields):
            ref = cell_ref(idx, row_number)
            _append_cell(
                row,
                ref,
                record.get(field),
                numeric=field in numeric_fields,
                style=styles.get(ref.rstrip("0123456789")),
            )
        rows.append(row)

    if not rows:
        # Never leave the table region zero-length.
        rows.append(etree.SubElement(sheet_data, qualified(sheet_data, "row"), {"r": str(start_row)}))
    return rows


def build_rows(
    records: Sequence[Mapping[str, object]],
    fields: Sequence[str],
    numeric_fields: Collection[str],
    start_row: int = DATA_START_ROW,
) -> list[etree._Element]:
    sheet_data = etree.Element(f"{{{SPREADSHEET_NS}}}sheetData", nsmap={None: SPREADSHEET_NS})
    return _append_rows(sheet_data, records, fields, numeric_fields, start_row)


def replace_rows(
    sheet_xml: str,
    records: Sequence[Mapping[str, object]],
    fields: Sequence[str],
    numeric_fields: Collection[str],
    start_row: int = DATA_START_ROW,
) -> str:
    """Discard every row at or below ``start_row`` and append freshly built rows."""
    root = parse_xml(sheet_xml, entry="worksheet")
    sheet_data = find_child(root, "sheetData")
    if sheet_data is None:
        raise WorkbookTemplateError("Worksheet has no <sheetData> element")

    first_data_row: etree._Element | None = None
    implied = 0
    for row in list(iter_children(sheet_data, "row")):
        implied = _row_number(row, implied + 1)
        if implied < start_row:
            continue
        if first_data_row is None and implied == start_row:
            first_data_row = row
        sheet_data.remove(row)

    # Drop whitespace left behind by removed rows so output is stable.
    if len(sheet_data):
        sheet_data[-1].tail = None
    else:
        sheet_data.text = None

    _append_rows(
        sheet_data,
        records,
        fields,
        numeric_fields,
        start_row,
        styles=_template_cell_styles(first_data_row),
    )
    return serialize_xml(root)
