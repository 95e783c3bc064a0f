from __future__ import annotations

import hmac
import json
import logging
from typing import Any

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from scenariobook.application.services.report_service import ReportService
from scenariobook.core.config import AppSettings
from scenariobook.core.errors import (
    ConfigurationError,
    PayloadError,
    WorkbookTemplateError,
)
from scenariobook.infrastructure.importers.payload_importer import normalize_payload
from scenariobook.infrastructure.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


class ReportResponse(BaseModel):
    fileUrl: str
    fileName: str


def create_app(settings: AppSettings) -> FastAPI:
    app = FastAPI(title="scenariobook", version="0.1.0")

    def get_report_service() -> ReportService:
        return ReportService(
            template_store=ObjectStore(settings.template_bucket_dir),
            report_store=ObjectStore(settings.report_bucket_dir),
            template_key=settings.template_key,
            public_base_url=settings.public_base_url,
        )

    def check_api_key(header_value: str | None) -> None:
        if not header_value:
            raise HTTPException(status_code=403, detail="Forbidden: missing x-api-key")
        if not settings.api_key:
            raise HTTPException(status_code=500, detail="Forbidden: API key not configured")
        if not hmac.compare_digest(header_value.encode("utf-8"), settings.api_key.encode("utf-8")):
            raise HTTPException(status_code=403, detail="Forbidden: api key mismatch")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"ok": True}

    @app.post("/", response_model=ReportResponse)
    @app.post("/api/reports", response_model=ReportResponse)
    async def create_report(
        request: Request,
        x_api_key: str | None = Header(default=None),
    ) -> ReportResponse:
        check_api_key(x_api_key)

        raw = await request.body()
        try:
            body = json.loads(raw)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid JSON") from exc

        try:
            payload = normalize_payload(body)
        except PayloadError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        try:
            report = await run_in_threadpool(get_report_service().generate_report, payload)
        except (ConfigurationError, WorkbookTemplateError) as exc:
            logger.error("Report generation failed for %s: %s", payload.scenario_id, exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Unexpected failure rendering report for %s", payload.scenario_id)
            raise HTTPException(status_code=500, detail=f"Report generation failed: {exc}") from exc

        return ReportResponse(fileUrl=report.file_url, fileName=report.file_name)

    return app
