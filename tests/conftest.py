from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from vic_viewer.core.profiles import FALLBACK_LOG_PROFILE, LogProfile
from vic_viewer.core.sources import SyntheticRecordSource

FIXED_NOW = datetime(2026, 2, 14, 20, 0, 0, tzinfo=UTC)

PROFILE_YAML = """\
id: team-default
name: Team default
version: 2
coreFields:
  time:
    field: ts
  message:
    fields: [msg, _msg]
  streamId:
    field: stream
  severity:
    field: level
tieBreaker:
  fields: [stream, span, msg]
logTable:
  columns:
    - id: time
      title: Time
      field: ts
    - id: message
      title: Message
      fields: [msg, _msg]
logDetails:
  fieldSets:
    - id: other
      name: Other
      fields:
        - type: RemainingFields
"""


class StaticSource:
    """Record source returning a fixed payload and recording each call."""

    def __init__(self, payload: Any) -> None:
        self.payload = payload
        self.calls: list[dict[str, Any]] = []

    async def query_raw(self, query, start, end, limit, cursor_direction=None):
        self.calls.append(
            {
                "query": query,
                "start": start,
                "end": end,
                "limit": limit,
                "cursor_direction": cursor_direction,
            }
        )
        return self.payload


class ListSource:
    """Record source honoring the window and limit over an in-memory list."""

    def __init__(self, records: list[dict[str, Any]]) -> None:
        self.records = records
        self.calls = 0

    async def query_raw(self, query, start, end, limit, cursor_direction=None):
        self.calls += 1
        inside = [r for r in self.records if start <= r["_time"] <= end]
        inside.sort(key=lambda r: (r["_time"], r["_msg"]), reverse=True)
        if cursor_direction is not None and cursor_direction.value == "newer":
            return inside[-limit:]
        return inside[:limit]


@pytest.fixture
def profile() -> LogProfile:
    return FALLBACK_LOG_PROFILE


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    def _make(time: str, msg: str = "hello", **extra: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "_time": time,
            "_msg": msg,
            "_stream_id": "stream-a",
            "_stream": '{service.name="api"}',
            "severity": "INFO",
            "service.name": "api",
        }
        record.update(extra)
        return record

    return _make


@pytest.fixture
def synthetic_source() -> SyntheticRecordSource:
    return SyntheticRecordSource("steady", "s1", now=FIXED_NOW)


@pytest.fixture
def write_profile() -> Callable[[Path, str], Path]:
    def _write(path: Path, text: str = PROFILE_YAML) -> Path:
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def static_source() -> Callable[[Any], StaticSource]:
    return StaticSource


@pytest.fixture
def list_source() -> Callable[[list[dict[str, Any]]], ListSource]:
    return ListSource
