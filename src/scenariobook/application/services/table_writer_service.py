from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from scenariobook.domain.models.report import TableWriteResult
from scenariobook.domain.models.table_schema import LogicalTable
from scenariobook.infrastructure.workbook.package import WorkbookPackage
from scenariobook.infrastructure.workbook.ranges import compute_range, update_table_range, upsert_dimension
from scenariobook.infrastructure.workbook.relationships import (
    find_sheet_path_by_name,
    find_table_path_for_sheet,
    sheet_rels_path,
)
from scenariobook.infrastructure.workbook.sheet_rows import DATA_START_ROW, replace_rows

logger = logging.getLogger(__name__)


class TableWriterService:
    def __init__(self, *, start_row: int = DATA_START_ROW) -> None:
        self.start_row = start_row

    def write_table(
        self,
        package: WorkbookPackage,
        *,
        workbook_xml: str,
        workbook_rels_xml: str,
        table: LogicalTable,
        records: Sequence[Mapping[str, object]],
    ) -> TableWriteResult:
        sheet_path = find_sheet_path_by_name(workbook_xml, workbook_rels_xml, table.sheet_name)
        sheet_xml = package.read_entry_text(sheet_path)
        sheet_rels_xml = package.read_entry_text(sheet_rels_path(sheet_path))
        table_path = find_table_path_for_sheet(sheet_path, sheet_rels_xml)
        table_xml = package.read_entry_text(table_path)

        ref = compute_range(table.field_count, len(records))
        sheet_xml = replace_rows(
            sheet_xml,
            records,
            table.fields,
            table.numeric_fields,
            self.start_row,
        )
        sheet_xml = upsert_dimension(sheet_xml, ref)
        table_xml = update_table_range(table_xml, ref)

        package.write_entry(sheet_path, sheet_xml)
        package.write_entry(table_path, table_xml)
        logger.info("Wrote %s: %d rows, range %s", table.sheet_name, len(records), ref)
        return TableWriteResult(
            sheet_name=table.sheet_name,
            sheet_path=sheet_path,
            table_path=table_path,
            ref=ref,
            record_count=len(records),
        )
