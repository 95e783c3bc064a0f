from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass

from scenariobook.core.errors import MissingEntryError, WorkbookTemplateError

logger = logging.getLogger(__name__)

# Timestamp given to entries that did not exist in the source archive.
_INSERTED_ENTRY_DATE = (1980, 1, 1, 0, 0, 0)


@dataclass(slots=True)
class _Entry:
    info: zipfile.ZipInfo
    data: bytes


class WorkbookPackage:
    """In-memory view of a workbook zip that re-packs with untouched entries preserved."""

    def __init__(self, entries: list[_Entry], comment: bytes = b"") -> None:
        self._entries: dict[str, _Entry] = {entry.info.filename: entry for entry in entries}
        self._comment = comment

    @classmethod
    def from_bytes(cls, data: bytes) -> WorkbookPackage:
        try:
            with zipfile.ZipFile(io.BytesIO(data), "r") as archive:
                entries = [_Entry(info=info, data=archive.read(info)) for info in archive.infolist()]
                comment = archive.comment
        except zipfile.BadZipFile as exc:
            raise WorkbookTemplateError(f"Workbook template is not a zip archive: {exc}") from exc
        logger.debug("Opened workbook package with %d entries", len(entries))
        return cls(entries, comment)

    def read_entry_bytes(self, path: str) -> bytes:
        entry = self._entries.get(path)
        if entry is None:
            raise MissingEntryError(f"Missing zip entry: {path}")
        return entry.data

    def read_entry_text(self, path: str) -> str:
        return self.read_entry_bytes(path).decode("utf-8")

    def write_entry(self, path: str, content: str | bytes) -> None:
        data = content.encode("utf-8") if isinstance(content, str) else content
        existing = self._entries.get(path)
        if existing is not None:
            existing.data = data
            return
        info = zipfile.ZipInfo(filename=path, date_time=_INSERTED_ENTRY_DATE)
        info.compress_type = zipfile.ZIP_DEFLATED
        self._entries[path] = _Entry(info=info, data=data)

    def serialize(self) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.comment = self._comment
            for entry in self._entries.values():
                archive.writestr(entry.info, entry.data)
        return buffer.getvalue()
