from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppSettings:
    home_dir: Path
    template_bucket_dir: Path
    report_bucket_dir: Path
    template_key: str
    api_key: str | None
    public_base_url: str | None


DEFAULT_HOME_DIRNAME = ".scenariobook"
DEFAULT_TEMPLATE_KEY = "templates/final-report-template.xlsm"


def _env_text(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def load_settings(home: Path | None = None) -> AppSettings:
    home_raw = _env_text("SCENARIOBOOK_HOME")
    if home is not None:
        home_dir = home.expanduser().resolve()
    elif home_raw:
        home_dir = Path(home_raw).expanduser().resolve()
    else:
        home_dir = Path.cwd().resolve() / DEFAULT_HOME_DIRNAME

    public_base_url = _env_text("SCENARIOBOOK_PUBLIC_BASE_URL")
    if public_base_url:
        public_base_url = public_base_url.rstrip("/")

    return AppSettings(
        home_dir=home_dir,
        template_bucket_dir=home_dir / "template-bucket",
        report_bucket_dir=home_dir / "report-bucket",
        template_key=_env_text("SCENARIOBOOK_TEMPLATE_KEY") or DEFAULT_TEMPLATE_KEY,
        api_key=_env_text("SCENARIOBOOK_API_KEY"),
        public_base_url=public_base_url,
    )
