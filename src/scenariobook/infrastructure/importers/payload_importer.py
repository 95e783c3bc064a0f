from __future__ import annotations

import json
import logging

from scenariobook.core.errors import PayloadError
from scenariobook.domain.models.report import Record, ScenarioPayload

logger = logging.getLogger(__name__)

ENVELOPE_KEY = "_payloadJson"
DEFAULT_SCENARIO_NAME = "Final_Report"

# Automation tools wrap values in single-element lists and/or JSON strings.
# Each logical input is unwrapped at most this many times.
MAX_UNWRAP_DEPTH = 2


def decode_json_text(value: object) -> object | None:
    """Parse ``value`` when it is a string that looks like a JSON object or array."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not (text.startswith("{") or text.startswith("[")):
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def _as_record(value: dict[object, object]) -> Record:
    return {str(k): v for k, v in value.items()}


def unwrap_envelope(payload: object) -> object:
    if isinstance(payload, str):
        decoded = decode_json_text(payload)
        if decoded is not None:
            payload = decoded
    if isinstance(payload, dict) and isinstance(payload.get(ENVELOPE_KEY), str):
        decoded = decode_json_text(payload[ENVELOPE_KEY])
        if isinstance(decoded, dict):
            return decoded
    return payload


def normalize_record(value: object) -> Record:
    current = value
    for _ in range(MAX_UNWRAP_DEPTH):
        if isinstance(current, list) and len(current) == 1:
            current = current[0]
        if isinstance(current, str):
            decoded = decode_json_text(current)
            if isinstance(decoded, (dict, list)):
                current = decoded
        if isinstance(current, dict):
            return _as_record(current)
    if isinstance(current, list) and len(current) == 1 and isinstance(current[0], dict):
        current = current[0]
    if isinstance(current, dict):
        return _as_record(current)
    return {}


def normalize_rows(value: object) -> list[Record]:
    current = value
    decoded_list = False
    for _ in range(MAX_UNWRAP_DEPTH):
        decoded = decode_json_text(current)
        if isinstance(decoded, list):
            current = decoded
            decoded_list = True
            continue
        if isinstance(current, list) and len(current) == 1 and isinstance(current[0], str):
            inner = decode_json_text(current[0])
            if isinstance(inner, list):
                current = inner
                decoded_list = True
                continue
        break

    if not isinstance(current, list):
        return []

    # A decoded JSON list is taken as-is; entries that are not objects
    # still occupy a (blank) row.
    if decoded_list:
        return [_as_record(item) if isinstance(item, dict) else {} for item in current]

    rows: list[Record] = []
    dropped = 0
    for item in current:
        decoded = decode_json_text(item)
        candidate = item if decoded is None else decoded
        if isinstance(candidate, dict):
            rows.append(_as_record(candidate))
        else:
            dropped += 1
    if dropped:
        logger.debug("Dropped %d non-object rows", dropped)
    return rows


def _describe(value: object) -> str:
    if isinstance(value, list):
        first = type(value[0]).__name__ if value else "-"
        return f"list(len={len(value)}, first={first})"
    return type(value).__name__


def _scenario_id(body: dict[str, object]) -> str:
    value = body.get("scenarioId")
    if value is None or isinstance(value, bool) or str(value).strip() == "":
        raise PayloadError("Missing scenarioId")
    scenario_id = str(value).strip()
    # The id becomes one segment of the report's storage key.
    if scenario_id in (".", "..") or "/" in scenario_id or "\\" in scenario_id:
        raise PayloadError(f"Invalid scenarioId: {scenario_id!r}")
    return scenario_id


def normalize_payload(payload: object) -> ScenarioPayload:
    body = unwrap_envelope(payload)
    if not isinstance(body, dict):
        body = {}

    scenario_id = _scenario_id(body)

    scenario_name = body.get("scenarioName")
    logger.debug(
        "Raw inputs: scenario=%s projectionLines=%s subLines=%s fundSources=%s",
        _describe(body.get("scenario")),
        _describe(body.get("projectionLines")),
        _describe(body.get("subLines")),
        _describe(body.get("fundSources")),
    )

    normalized = ScenarioPayload(
        scenario_id=scenario_id,
        scenario_name=str(scenario_name) if scenario_name not in (None, "") else None,
        scenario=normalize_record(body.get("scenario")),
        projection_lines=normalize_rows(body.get("projectionLines")),
        sub_lines=normalize_rows(body.get("subLines")),
        fund_sources=normalize_rows(body.get("fundSources")),
    )
    logger.info(
        "Normalized scenario %s: %d scenario fields, %d lines, %d sub-lines, %d fund sources",
        normalized.scenario_id,
        len(normalized.scenario),
        len(normalized.projection_lines),
        len(normalized.sub_lines),
        len(normalized.fund_sources),
    )
    return normalized
