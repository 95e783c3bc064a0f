from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

from scenariobook.core.config import AppSettings


@dataclass(slots=True)
class CLIContext:
    settings: AppSettings
    console: Console
