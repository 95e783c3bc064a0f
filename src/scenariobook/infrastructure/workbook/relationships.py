from __future__ import annotations

import posixpath
from dataclasses import dataclass

from scenariobook.core.errors import SheetNotFoundError, TableNotFoundError
from scenariobook.infrastructure.workbook.markup import OFFICE_REL_NS, iter_children, local_tag, parse_xml

WORKBOOK_PATH = "xl/workbook.xml"
WORKBOOK_RELS_PATH = "xl/_rels/workbook.xml.rels"

_WORKBOOK_DIR = "xl"
_RELATIONSHIP_ID_ATTR = f"{{{OFFICE_REL_NS}}}id"


@dataclass(slots=True)
class SheetEntry:
    name: str
    rel_id: str
    path: str | None


def resolve_target(base_dir: str, target: str) -> str:
    """Resolve a relationship target against the directory of the part that owns it."""
    normalized = target.replace("\\", "/").strip()
    if normalized.startswith("/"):
        return posixpath.normpath(normalized.lstrip("/"))
    return posixpath.normpath(posixpath.join(base_dir, normalized))


def sheet_rels_path(sheet_path: str) -> str:
    directory, file_name = posixpath.split(sheet_path)
    return posixpath.join(directory, "_rels", f"{file_name}.rels")


def _relationship_targets(rels_xml: str, *, entry: str) -> list[tuple[str, str, str]]:
    root = parse_xml(rels_xml, entry=entry)
    out: list[tuple[str, str, str]] = []
    for rel in iter_children(root, "Relationship"):
        out.append(
            (
                str(rel.get("Id") or ""),
                str(rel.get("Type") or ""),
                str(rel.get("Target") or ""),
            )
        )
    return out


def list_sheets(workbook_xml: str, workbook_rels_xml: str) -> list[SheetEntry]:
    root = parse_xml(workbook_xml, entry=WORKBOOK_PATH)
    targets = {
        rel_id: target
        for rel_id, _type, target in _relationship_targets(workbook_rels_xml, entry=WORKBOOK_RELS_PATH)
        if rel_id and target
    }
    sheets: list[SheetEntry] = []
    for node in root.iter():
        if local_tag(node.tag) != "sheet":
            continue
        rel_id = str(node.get(_RELATIONSHIP_ID_ATTR) or "")
        target = targets.get(rel_id)
        sheets.append(
            SheetEntry(
                name=str(node.get("name") or ""),
                rel_id=rel_id,
                path=resolve_target(_WORKBOOK_DIR, target) if target else None,
            )
        )
    return sheets


def find_sheet_path_by_name(workbook_xml: str, workbook_rels_xml: str, sheet_name: str) -> str:
    for sheet in list_sheets(workbook_xml, workbook_rels_xml):
        if sheet.name != sheet_name:
            continue
        if not sheet.rel_id:
            raise SheetNotFoundError(f"Sheet has no relationship id in workbook.xml: {sheet_name}")
        if sheet.path is None:
            raise SheetNotFoundError(f"workbook.xml.rels missing target for {sheet.rel_id}")
        return sheet.path
    raise SheetNotFoundError(f"Sheet not found in workbook.xml: {sheet_name}")


def find_table_path_for_sheet(sheet_path: str, sheet_rels_xml: str) -> str:
    # Only the first table relationship is honoured: one table per data sheet.
    for _rel_id, rel_type, target in _relationship_targets(sheet_rels_xml, entry=sheet_rels_path(sheet_path)):
        if rel_type.endswith("/table") and target:
            return resolve_target(posixpath.dirname(sheet_path), target)
    raise TableNotFoundError(f"No table relationship found for sheet: {sheet_path}")
