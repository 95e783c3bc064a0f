from __future__ import annotations

import argparse
import json
from pathlib import Path

from rich.table import Table

from scenariobook.application.services.report_service import ReportService
from scenariobook.cli.context import CLIContext
from scenariobook.core.errors import ConfigurationError
from scenariobook.core.files import write_bytes_atomic
from scenariobook.infrastructure.importers.payload_importer import normalize_payload


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("render", help="Render a payload JSON file into a workbook template")
    parser.add_argument("payload", type=Path, help="Request body JSON file")
    parser.add_argument("--template", type=Path, required=True, help="Template .xlsm to fill")
    parser.add_argument("--output", type=Path, required=True, help="Where to write the rendered workbook")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not args.template.is_file():
        raise ConfigurationError(f"Template not found: {args.template}")
    try:
        body = json.loads(args.payload.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigurationError(f"Payload is not valid JSON: {args.payload}") from exc

    payload = normalize_payload(body)
    rendered = ReportService().render_workbook(args.template.read_bytes(), payload)
    write_bytes_atomic(args.output, rendered.content)

    table = Table(title=f"Rendered {payload.scenario_id}")
    table.add_column("Sheet")
    table.add_column("Rows", justify="right")
    table.add_column("Range")
    table.add_column("Table part", overflow="fold")
    for result in rendered.tables:
        table.add_row(result.sheet_name, str(result.record_count), result.ref, result.table_path)
    ctx.console.print(table)
    ctx.console.print(f"[green]Wrote[/green] {args.output}")
    return 0
