from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from scenariobook.core.errors import StorageError
from scenariobook.core.files import ensure_directory, write_bytes_atomic
from scenariobook.core.hashing import compute_bytes_digest
from scenariobook.core.time import now_utc

_META_SUFFIX = ".meta.json"


@dataclass(slots=True)
class StoredObject:
    key: str
    path: Path
    content_type: str
    size_bytes: int
    digest_sha256: str


class ObjectStore:
    """Key/value blob store laid out as plain files under ``base_dir``."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    def ensure_layout(self) -> None:
        ensure_directory(self.base_dir)

    @staticmethod
    def validate_key(key: str) -> PurePosixPath:
        rel = PurePosixPath(str(key or "").strip())
        if not rel.parts or rel.is_absolute() or ".." in rel.parts:
            raise StorageError(f"Invalid object key: {key!r}")
        if rel.name.endswith(_META_SUFFIX):
            raise StorageError(f"Object key uses reserved suffix: {key!r}")
        return rel

    def path_for_key(self, key: str) -> Path:
        return self.base_dir.joinpath(*self.validate_key(key).parts)

    def get_bytes(self, key: str) -> bytes | None:
        path = self.path_for_key(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def put_bytes(self, key: str, data: bytes, *, content_type: str) -> StoredObject:
        self.ensure_layout()
        path = self.path_for_key(key)
        digest = compute_bytes_digest(data)
        try:
            write_bytes_atomic(path, data)
            meta = {
                "key": key,
                "content_type": content_type,
                "size_bytes": len(data),
                "digest_sha256": digest,
                "stored_at": now_utc().replace(microsecond=0).isoformat(),
            }
            write_bytes_atomic(
                path.with_name(path.name + _META_SUFFIX),
                json.dumps(meta, indent=2).encode("utf-8"),
            )
        except OSError as exc:
            raise StorageError(f"Unable to store object {key}: {exc}") from exc
        return StoredObject(
            key=key,
            path=path,
            content_type=content_type,
            size_bytes=len(data),
            digest_sha256=digest,
        )
