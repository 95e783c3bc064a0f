import json
from pathlib import Path

from fastapi.testclient import TestClient

from scenariobook.core.config import AppSettings
from scenariobook.infrastructure.storage.object_store import ObjectStore
from scenariobook.web.app import create_app

TEMPLATE_KEY = "templates/final-report-template.xlsm"


def _settings(tmp_path: Path, *, api_key: str | None = "secret", base_url: str | None = "https://r2.example.org") -> AppSettings:
    home = tmp_path / "home"
    return AppSettings(
        home_dir=home,
        template_bucket_dir=home / "template-bucket",
        report_bucket_dir=home / "report-bucket",
        template_key=TEMPLATE_KEY,
        api_key=api_key,
        public_base_url=base_url,
    )


def _client(tmp_path: Path, template: bytes | None, **kwargs: object) -> tuple[TestClient, AppSettings]:
    settings = _settings(tmp_path, **kwargs)
    if template is not None:
        ObjectStore(settings.template_bucket_dir).put_bytes(TEMPLATE_KEY, template, content_type="application/octet-stream")
    return TestClient(create_app(settings)), settings


def _stored_reports(settings: AppSettings) -> list[Path]:
    root = settings.report_bucket_dir / "reports"
    if not root.exists():
        return []
    return [p for p in root.rglob("*.xlsm")]


BODY = {
    "scenarioId": "recABC",
    "scenarioName": "Spring Update",
    "scenario": {"Name": "Spring"},
    "projectionLines": [{"Name": "L1"}, {"Name": "L2"}, {"Name": "L3"}],
    "subLines": "[]",
    "fundSources": [],
}


def test_report_end_to_end(tmp_path: Path, template_bytes: bytes, zip_entries) -> None:
    client, settings = _client(tmp_path, template_bytes)

    r = client.post("/", json=BODY, headers={"x-api-key": "secret"})
    assert r.status_code == 200
    payload = r.json()
    assert payload["fileName"].endswith("-Spring_Update.xlsm")
    assert payload["fileUrl"] == f"https://r2.example.org/reports/recABC/{payload['fileName']}"

    stored = _stored_reports(settings)
    assert [p.name for p in stored] == [payload["fileName"]]
    lines_table = zip_entries(stored[0].read_bytes())["xl/tables/table3.xml"].decode("utf-8")
    assert 'ref="A1:S4"' in lines_table


def test_report_accepts_string_envelope(tmp_path: Path, template_bytes: bytes) -> None:
    client, _settings_ = _client(tmp_path, template_bytes)
    r = client.post("/api/reports", json={"_payloadJson": json.dumps(BODY)}, headers={"x-api-key": "secret"})
    assert r.status_code == 200
    assert r.json()["fileName"].endswith("-Spring_Update.xlsm")


def test_report_rejects_get(tmp_path: Path) -> None:
    client, _settings_ = _client(tmp_path, None)
    assert client.get("/").status_code == 405


def test_report_auth_failures(tmp_path: Path, template_bytes: bytes) -> None:
    client, settings = _client(tmp_path, template_bytes)
    assert client.post("/", json=BODY).status_code == 403
    r = client.post("/", json=BODY, headers={"x-api-key": "wrong"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Forbidden: api key mismatch"
    assert _stored_reports(settings) == []

    unconfigured, _ = _client(tmp_path / "other", template_bytes, api_key=None)
    assert unconfigured.post("/", json=BODY, headers={"x-api-key": "secret"}).status_code == 500


def test_report_invalid_json_and_missing_id(tmp_path: Path, template_bytes: bytes) -> None:
    client, settings = _client(tmp_path, template_bytes)
    headers = {"x-api-key": "secret", "content-type": "application/json"}

    r = client.post("/", content=b"{not json", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid JSON"

    r = client.post("/", json={k: v for k, v in BODY.items() if k != "scenarioId"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing scenarioId"
    assert _stored_reports(settings) == []


def test_report_rejects_unsafe_scenario_id(tmp_path: Path, template_bytes: bytes) -> None:
    client, settings = _client(tmp_path, template_bytes)

    for scenario_id in ("../../evil", ".", "a/b"):
        r = client.post("/", json={**BODY, "scenarioId": scenario_id}, headers={"x-api-key": "secret"})
        assert r.status_code == 400
        assert r.json()["detail"].startswith("Invalid scenarioId")
    assert _stored_reports(settings) == []
    assert not settings.report_bucket_dir.exists()


def test_report_configuration_errors(tmp_path: Path, template_bytes: bytes, template_factory) -> None:
    headers = {"x-api-key": "secret"}

    missing_template, _ = _client(tmp_path / "a", None)
    r = missing_template.post("/", json=BODY, headers=headers)
    assert r.status_code == 500
    assert TEMPLATE_KEY in r.json()["detail"]

    no_base, settings = _client(tmp_path / "b", template_bytes, base_url=None)
    assert no_base.post("/", json=BODY, headers=headers).status_code == 500
    assert _stored_reports(settings) == []

    broken, settings = _client(tmp_path / "c", template_factory(omit_sheet="Data_Lines"))
    r = broken.post("/", json=BODY, headers=headers)
    assert r.status_code == 500
    assert "Data_Lines" in r.json()["detail"]
    assert _stored_reports(settings) == []


def test_health(tmp_path: Path) -> None:
    client, _settings_ = _client(tmp_path, None)
    assert client.get("/health").json() == {"ok": True}
