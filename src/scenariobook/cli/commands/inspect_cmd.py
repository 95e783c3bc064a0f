from __future__ import annotations

import argparse
from pathlib import Path

from rich.table import Table

from scenariobook.cli.context import CLIContext
from scenariobook.core.errors import ConfigurationError, WorkbookTemplateError
from scenariobook.domain.models.table_schema import LOGICAL_TABLES
from scenariobook.infrastructure.workbook.package import WorkbookPackage
from scenariobook.infrastructure.workbook.ranges import read_dimension, read_table_range
from scenariobook.infrastructure.workbook.relationships import (
    WORKBOOK_PATH,
    WORKBOOK_RELS_PATH,
    find_table_path_for_sheet,
    list_sheets,
    sheet_rels_path,
)


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("inspect", help="Show how a template binds the data tables")
    parser.add_argument("template", type=Path)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not args.template.is_file():
        raise ConfigurationError(f"Template not found: {args.template}")

    package = WorkbookPackage.from_bytes(args.template.read_bytes())
    sheets = {
        sheet.name: sheet
        for sheet in list_sheets(
            package.read_entry_text(WORKBOOK_PATH),
            package.read_entry_text(WORKBOOK_RELS_PATH),
        )
    }

    table = Table(title=f"Template {args.template.name}")
    table.add_column("Sheet")
    table.add_column("Fields", justify="right")
    table.add_column("Sheet part", overflow="fold")
    table.add_column("Table part", overflow="fold")
    table.add_column("Dimension")
    table.add_column("Table ref")

    problems = 0
    for logical in LOGICAL_TABLES:
        sheet = sheets.get(logical.sheet_name)
        if sheet is None or sheet.path is None:
            table.add_row(logical.sheet_name, str(logical.field_count), "[red]missing[/red]", "", "", "")
            problems += 1
            continue
        try:
            sheet_xml = package.read_entry_text(sheet.path)
            table_path = find_table_path_for_sheet(
                sheet.path, package.read_entry_text(sheet_rels_path(sheet.path))
            )
            table_ref = read_table_range(package.read_entry_text(table_path))
        except WorkbookTemplateError as exc:
            table.add_row(logical.sheet_name, str(logical.field_count), sheet.path, f"[red]{exc}[/red]", "", "")
            problems += 1
            continue
        table.add_row(
            logical.sheet_name,
            str(logical.field_count),
            sheet.path,
            table_path,
            read_dimension(sheet_xml) or "-",
            table_ref or "-",
        )

    ctx.console.print(table)
    return 0 if problems == 0 else 1
