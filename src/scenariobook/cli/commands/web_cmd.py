from __future__ import annotations

import argparse

from scenariobook.cli.context import CLIContext
from scenariobook.web.app import create_app


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("web", help="Run the report HTTP service")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8787)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    try:
        import uvicorn
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("uvicorn is required for web mode. Install project dependencies.") from exc

    app = create_app(ctx.settings)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0
