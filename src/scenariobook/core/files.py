from __future__ import annotations

import os
import tempfile
from pathlib import Path


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_bytes_atomic(dst: Path, data: bytes) -> None:
    ensure_directory(dst.parent)
    # Concurrent writers may target the same file; each gets its own temp name.
    fd, temp_name = tempfile.mkstemp(prefix=f".{dst.name}.", suffix=".tmp", dir=dst.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(temp_name, dst)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
