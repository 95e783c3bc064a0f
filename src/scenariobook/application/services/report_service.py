from __future__ import annotations

import logging
import re
from datetime import datetime
from urllib.parse import quote

from scenariobook.application.services.table_writer_service import TableWriterService
from scenariobook.core.errors import ConfigurationError, TemplateNotFoundError
from scenariobook.core.time import file_timestamp
from scenariobook.domain.models.report import RenderedWorkbook, ScenarioPayload, StoredReport
from scenariobook.domain.models.table_schema import LOGICAL_TABLES, LogicalTable
from scenariobook.infrastructure.importers.payload_importer import DEFAULT_SCENARIO_NAME
from scenariobook.infrastructure.storage.object_store import ObjectStore
from scenariobook.infrastructure.workbook.package import WorkbookPackage
from scenariobook.infrastructure.workbook.relationships import WORKBOOK_PATH, WORKBOOK_RELS_PATH

logger = logging.getLogger(__name__)

XLSM_CONTENT_TYPE = "application/vnd.ms-excel.sheet.macroEnabled.12"
REPORTS_PREFIX = "reports"
_MAX_NAME_CHARS = 120
_UNSAFE_NAME_CHARS = re.compile(r"[^\w\-]+", re.ASCII)


def safe_file_stem(name: str | None) -> str:
    return _UNSAFE_NAME_CHARS.sub("_", str(name or DEFAULT_SCENARIO_NAME))[:_MAX_NAME_CHARS]


def public_url(base_url: str, key: str) -> str:
    encoded = "/".join(quote(part, safe="!*'()") for part in key.split("/"))
    return f"{base_url.rstrip('/')}/{encoded}"


class ReportService:
    """Renders scenario payloads into the workbook template and stores the result."""

    def __init__(
        self,
        *,
        template_store: ObjectStore | None = None,
        report_store: ObjectStore | None = None,
        template_key: str = "",
        public_base_url: str | None = None,
        table_writer: TableWriterService | None = None,
        tables: tuple[LogicalTable, ...] = LOGICAL_TABLES,
    ) -> None:
        self.template_store = template_store
        self.report_store = report_store
        self.template_key = template_key
        self.public_base_url = public_base_url
        self.table_writer = table_writer or TableWriterService()
        self.tables = tables

    def render_workbook(self, template_bytes: bytes, payload: ScenarioPayload) -> RenderedWorkbook:
        package = WorkbookPackage.from_bytes(template_bytes)
        workbook_xml = package.read_entry_text(WORKBOOK_PATH)
        workbook_rels_xml = package.read_entry_text(WORKBOOK_RELS_PATH)

        results = [
            self.table_writer.write_table(
                package,
                workbook_xml=workbook_xml,
                workbook_rels_xml=workbook_rels_xml,
                table=table,
                records=payload.records_for(table.kind),
            )
            for table in self.tables
        ]
        return RenderedWorkbook(content=package.serialize(), tables=results)

    def load_template(self) -> bytes:
        if self.template_store is None:
            raise ConfigurationError("Template store is not configured")
        data = self.template_store.get_bytes(self.template_key)
        if data is None:
            raise TemplateNotFoundError(f"Template not found: {self.template_key}")
        return data

    def build_file_name(self, payload: ScenarioPayload, moment: datetime | None = None) -> str:
        return f"{file_timestamp(moment)}-{safe_file_stem(payload.scenario_name)}.xlsm"

    def generate_report(self, payload: ScenarioPayload, *, moment: datetime | None = None) -> StoredReport:
        if self.report_store is None:
            raise ConfigurationError("Report store is not configured")
        if not self.public_base_url:
            raise ConfigurationError("Missing public base URL (SCENARIOBOOK_PUBLIC_BASE_URL)")

        rendered = self.render_workbook(self.load_template(), payload)

        file_name = self.build_file_name(payload, moment)
        key = f"{REPORTS_PREFIX}/{payload.scenario_id}/{file_name}"
        stored = self.report_store.put_bytes(key, rendered.content, content_type=XLSM_CONTENT_TYPE)
        logger.info("Stored report %s (%d bytes)", key, stored.size_bytes)

        return StoredReport(
            key=key,
            file_name=file_name,
            file_url=public_url(self.public_base_url, key),
            size_bytes=stored.size_bytes,
            digest_sha256=stored.digest_sha256,
        )
