"""Row normalization.

Turns raw upstream records into LogRow values using the active profile. Records
without a usable time are dropped: the table cannot place them on its time axis.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Iterable
from typing import Any

from .errors import UpstreamPayloadError
from .fields import resolve_text
from .models import LogRow, RawLogRecord
from .profiles.models import LogProfile, SingleField
from .time_window import to_iso_millis, try_parse_iso_dt

logger = logging.getLogger(__name__)

_SEQUENCE_RE = re.compile(r"^SEQ:(\d+)")


def build_row_key(stream_id: str | None, time: str, tie_breaker: str) -> str:
    """Row identity used for ordering fallback and de-duplication."""
    return f"{stream_id or 'unknown'}:{time}:{tie_breaker}"


def normalize_time(value: str | None) -> str | None:
    """Parse a time value and render it canonically, or None if unparseable."""
    if value is None:
        return None
    dt = try_parse_iso_dt(value)
    if dt is None:
        return None
    return to_iso_millis(dt)


def build_tie_breaker(record: RawLogRecord, profile: LogProfile) -> str:
    """SHA-1 over the profile's tie-break fields joined with ':' (missing -> '')."""
    source = ":".join(
        resolve_text(record, SingleField(field=name)) or "" for name in profile.tie_breaker.fields
    )
    return hashlib.sha1(source.encode("utf-8")).hexdigest()


def extract_stream_id(record: RawLogRecord, profile: LogProfile) -> str | None:
    return resolve_text(record, profile.core_fields.stream_id)


def parse_sequence(message: str) -> int | None:
    """Return N from a leading ``SEQ:N`` marker."""
    m = _SEQUENCE_RE.match(message)
    if not m:
        return None
    return int(m.group(1))


def extract_sequence_hint(record: RawLogRecord, profile: LogProfile) -> int | None:
    """Best-effort sequence number embedded at the start of the message."""
    message = resolve_text(record, profile.core_fields.message)
    return parse_sequence(message) if message else None


def normalize_record(record: RawLogRecord, profile: LogProfile) -> LogRow | None:
    """Normalize one raw record; None when its time is missing or unparseable."""
    time = normalize_time(resolve_text(record, profile.core_fields.time))
    if time is None:
        return None

    stream_id = extract_stream_id(record, profile)
    tie_breaker = build_tie_breaker(record, profile)
    return LogRow(
        key=build_row_key(stream_id, time, tie_breaker),
        time=time,
        tie_breaker=tie_breaker,
        raw=record,
    )


def normalize_records(records: Iterable[RawLogRecord], profile: LogProfile) -> list[LogRow]:
    """Normalize records in bulk, silently dropping rows without a usable time."""
    rows: list[LogRow] = []
    dropped = 0
    for record in records:
        row = normalize_record(record, profile)
        if row is None:
            dropped += 1
            continue
        rows.append(row)
    if dropped:
        logger.debug("Dropped %d record(s) without a parseable time", dropped)
    return rows


def describe_payload_shape(payload: Any) -> dict[str, Any]:
    """Small summary of an upstream payload for diagnostics."""
    if isinstance(payload, list):
        return {"payloadType": "array", "payloadLength": len(payload)}
    if payload is None:
        return {"payloadType": "null"}
    if isinstance(payload, dict):
        return {"payloadType": "object", "payloadKeys": list(payload)[:20]}
    return {"payloadType": type(payload).__name__, "payloadValue": repr(payload)[:200]}


def extract_raw_records(payload: Any) -> list[RawLogRecord]:
    """Accept a record or a list of records; anything else is a protocol violation.

    Non-object entries of a list are dropped.
    """
    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list):
        raise UpstreamPayloadError(
            "Upstream returned an invalid logs payload",
            details=describe_payload_shape(payload),
        )

    records = [item for item in payload if isinstance(item, dict)]
    if len(records) != len(payload):
        logger.warning(
            "Logs payload contained %d non-object entries which were ignored",
            len(payload) - len(records),
        )
    return records


def resolve_core_fields(row: LogRow, profile: LogProfile) -> dict[str, str | None]:
    """Resolve the profile's display fields for a row."""
    core = profile.core_fields
    return {
        "message": resolve_text(row.raw, core.message),
        "streamId": resolve_text(row.raw, core.stream_id),
        "stream": resolve_text(row.raw, core.stream),
        "severity": resolve_text(row.raw, core.severity),
        "serviceName": resolve_text(row.raw, core.service_name),
        "traceId": resolve_text(row.raw, core.trace_id),
        "spanId": resolve_text(row.raw, core.span_id),
    }
