from __future__ import annotations

import io
import zipfile

import pytest

from scenariobook.domain.models.table_schema import LOGICAL_TABLES
from scenariobook.infrastructure.workbook.ranges import column_letters

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
TABLE_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/table"
WORKSHEET_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet"
PRINTER_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/printerSettings"

DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
VBA_BYTES = bytes(range(256)) * 4


def header_row(fields: tuple[str, ...]) -> str:
    cells = "".join(
        f'<c r="{column_letters(idx + 1)}1" t="inlineStr" s="1"><is><t>{name}</t></is></c>'
        for idx, name in enumerate(fields)
    )
    return f'<row r="1">{cells}</row>'


def worksheet_xml(sheet_data: str, *, dimension: str | None = "A1:B2", sheet_pr: bool = False) -> str:
    parts = [
        DECLARATION,
        f'<worksheet xmlns="{MAIN_NS}" xmlns:r="{REL_NS}" '
        'xmlns:mc="http://schemas.openxmlformats.org/markup-compatibility/2006" '
        'xmlns:x14ac="http://schemas.microsoft.com/office/spreadsheetml/2009/9/ac" '
        'mc:Ignorable="x14ac">',
    ]
    if sheet_pr:
        parts.append('<sheetPr codeName="Sheet1"/>')
    if dimension is not None:
        parts.append(f'<dimension ref="{dimension}"/>')
    parts.append('<sheetViews><sheetView workbookViewId="0"/></sheetViews>')
    parts.append(f"<sheetData>{sheet_data}</sheetData>")
    parts.append('<pageMargins left="0.7" right="0.7" top="0.75" bottom="0.75" header="0.3" footer="0.3"/>')
    parts.append('<tableParts count="1"><tablePart r:id="rId1"/></tableParts>')
    parts.append("</worksheet>")
    return "".join(parts)


def table_xml(table_id: int, name: str, fields: tuple[str, ...], ref: str) -> str:
    columns = "".join(
        f'<tableColumn id="{idx + 1}" name="{field}"/>' for idx, field in enumerate(fields)
    )
    return (
        f"{DECLARATION}"
        f'<table xmlns="{MAIN_NS}" id="{table_id}" name="{name}" displayName="{name}" '
        f'ref="{ref}" totalsRowShown="0">'
        f'<autoFilter ref="{ref}"/>'
        f'<tableColumns count="{len(fields)}">{columns}</tableColumns>'
        '<tableStyleInfo name="TableStyleMedium2" showRowStripes="1"/>'
        "</table>"
    )


def sheet_rels_xml(table_target: str, *, with_printer: bool = False) -> str:
    rels = []
    if with_printer:
        rels.append(
            f'<Relationship Id="rId2" Type="{PRINTER_REL_TYPE}" '
            'Target="../printerSettings/printerSettings1.bin"/>'
        )
    rels.append(f'<Relationship Id="rId1" Type="{TABLE_REL_TYPE}" Target="{table_target}"/>')
    return f'{DECLARATION}<Relationships xmlns="{PKG_REL_NS}">{"".join(rels)}</Relationships>'


def build_template_bytes(*, omit_sheet: str | None = None) -> bytes:
    sheets = [("Summary", "sheet1.xml")]
    for idx, table in enumerate(LOGICAL_TABLES, start=2):
        if table.sheet_name != omit_sheet:
            sheets.append((table.sheet_name, f"sheet{idx}.xml"))

    workbook = (
        f"{DECLARATION}"
        f'<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}"><sheets>'
        + "".join(
            f'<sheet name="{name}" sheetId="{idx}" r:id="rId{idx}"/>'
            for idx, (name, _file) in enumerate(sheets, start=1)
        )
        + "</sheets></workbook>"
    )
    workbook_rels = (
        f'{DECLARATION}<Relationships xmlns="{PKG_REL_NS}">'
        + "".join(
            f'<Relationship Id="rId{idx}" Type="{WORKSHEET_REL_TYPE}" Target="worksheets/{file}"/>'
            for idx, (_name, file) in enumerate(sheets, start=1)
        )
        + "</Relationships>"
    )

    entries: list[tuple[str, bytes]] = [
        ("[Content_Types].xml", b"<Types/>"),
        ("xl/workbook.xml", workbook.encode("utf-8")),
        ("xl/_rels/workbook.xml.rels", workbook_rels.encode("utf-8")),
        ("xl/styles.xml", f'{DECLARATION}<styleSheet xmlns="{MAIN_NS}"/>'.encode("utf-8")),
        (
            "xl/worksheets/sheet1.xml",
            worksheet_xml(
                '<row r="1"><c r="A1"><f>SUM(Data_Lines[Expenditure])</f><v>0</v></c></row>',
                dimension="A1",
            ).encode("utf-8"),
        ),
        ("xl/vbaProject.bin", VBA_BYTES),
    ]

    for idx, table in enumerate(LOGICAL_TABLES, start=2):
        if table.sheet_name == omit_sheet:
            continue
        last_col = column_letters(table.field_count)
        stale_rows = "".join(
            f'<row r="{r}"><c r="A{r}" s="3" t="inlineStr"><is><t>old {r}</t></is></c>'
            f'<c r="B{r}" s="4"><v>{r}</v></c></row>'
            for r in (2, 3, 4, 5, 6)
        )
        sheet_data = header_row(table.fields) + stale_rows
        # Exercise both an existing dimension and an inserted one.
        dimension = None if table.kind == "sub_lines" else f"A1:{last_col}6"
        entries.append(
            (
                f"xl/worksheets/sheet{idx}.xml",
                worksheet_xml(sheet_data, dimension=dimension, sheet_pr=True).encode("utf-8"),
            )
        )
        entries.append(
            (
                f"xl/worksheets/_rels/sheet{idx}.xml.rels",
                sheet_rels_xml(
                    f"../tables/table{idx}.xml",
                    with_printer=table.kind == "lines",
                ).encode("utf-8"),
            )
        )
        entries.append(
            (
                f"xl/tables/table{idx}.xml",
                table_xml(idx, table.sheet_name.replace("-", "_"), table.fields, f"A1:{last_col}6").encode(
                    "utf-8"
                ),
            )
        )

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries:
            info = zipfile.ZipInfo(name, date_time=(2024, 5, 1, 12, 0, 0))
            info.compress_type = zipfile.ZIP_STORED if name.endswith(".bin") else zipfile.ZIP_DEFLATED
            archive.writestr(info, data)
    return buffer.getvalue()


def read_entries(data: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(data), "r") as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


@pytest.fixture
def template_bytes() -> bytes:
    return build_template_bytes()


@pytest.fixture
def template_factory():
    return build_template_bytes


@pytest.fixture
def zip_entries():
    return read_entries
