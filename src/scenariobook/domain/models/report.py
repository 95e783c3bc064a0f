from __future__ import annotations

from dataclasses import dataclass, field

from scenariobook.domain.models.table_schema import (
    FUND_SOURCES_KIND,
    LINES_KIND,
    SCENARIO_KIND,
    SUB_LINES_KIND,
)

Record = dict[str, object]


@dataclass(slots=True)
class ScenarioPayload:
    scenario_id: str
    scenario_name: str | None
    scenario: Record = field(default_factory=dict)
    projection_lines: list[Record] = field(default_factory=list)
    sub_lines: list[Record] = field(default_factory=list)
    fund_sources: list[Record] = field(default_factory=list)

    def records_for(self, kind: str) -> list[Record]:
        if kind == SCENARIO_KIND:
            return [self.scenario]
        if kind == LINES_KIND:
            return self.projection_lines
        if kind == SUB_LINES_KIND:
            return self.sub_lines
        if kind == FUND_SOURCES_KIND:
            return self.fund_sources
        raise KeyError(f"Unknown logical table kind: {kind}")


@dataclass(slots=True)
class TableWriteResult:
    sheet_name: str
    sheet_path: str
    table_path: str
    ref: str
    record_count: int


@dataclass(slots=True)
class RenderedWorkbook:
    content: bytes
    tables: list[TableWriteResult]


@dataclass(slots=True)
class StoredReport:
    key: str
    file_name: str
    file_url: str
    size_bytes: int
    digest_sha256: str
