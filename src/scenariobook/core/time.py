from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def file_timestamp(moment: datetime | None = None) -> str:
    """Return a UTC ISO timestamp with millisecond precision that is safe in file names.

    ``2026-10-18T09:30:12.345Z`` becomes ``2026-10-18T09-30-12-345Z``.
    """
    value = (moment or now_utc()).astimezone(timezone.utc)
    iso = value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")
