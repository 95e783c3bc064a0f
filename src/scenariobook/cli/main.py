from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from scenariobook.cli.commands import inspect_cmd, render_cmd, web_cmd
from scenariobook.cli.context import CLIContext
from scenariobook.core.config import load_settings
from scenariobook.core.errors import ScenarioBookError
from scenariobook.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scenariobook",
        description="Budget scenario workbook renderer",
    )
    parser.add_argument(
        "--home",
        type=Path,
        default=None,
        help="Directory holding the template and report buckets (default: $SCENARIOBOOK_HOME or ./.scenariobook)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    render_cmd.register(subparsers)
    inspect_cmd.register(subparsers)
    web_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    settings = load_settings(args.home)
    ctx = CLIContext(settings=settings, console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except ScenarioBookError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
