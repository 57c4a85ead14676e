"""Core data models for log pagination."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .profiles.models import LogProfile
from .time_window import canonical_iso

RawLogRecord = dict[str, Any]


class CursorDirection(str, Enum):
    """Temporal direction a cursor pages into."""

    OLDER = "older"
    NEWER = "newer"


@dataclass(frozen=True, slots=True)
class LogRow:
    """Normalized log record.

    ``key``, ``time`` and ``tie_breaker`` are pure functions of the raw record and
    the profile used to normalize it.
    """

    key: str
    time: str  # ISO-8601 UTC, millisecond precision
    tie_breaker: str
    raw: RawLogRecord


class _CursorModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class CursorWindow(_CursorModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _iso_datetime(cls, value: str) -> str:
        canonical_iso(value)
        return value


class CursorAnchor(_CursorModel):
    time: str
    streamId: str | None
    tieBreaker: str
    sequence: int | None = Field(default=None, ge=0)

    @field_validator("time")
    @classmethod
    def _iso_datetime(cls, value: str) -> str:
        canonical_iso(value)
        return value


class LogsCursor(_CursorModel):
    """Self-describing resume position, bound to the query that produced it.

    Field names are the wire names; bump ``v`` on any incompatible change to the
    window or anchor shape.
    """

    v: Literal[1] = 1
    dir: CursorDirection
    queryHash: str = Field(pattern=r"^[0-9a-f]{64}$")
    window: CursorWindow
    anchor: CursorAnchor


CursorTransport = str | LogsCursor


@dataclass(frozen=True, slots=True)
class PageInfo:
    has_older: bool
    has_newer: bool
    older_cursor: CursorTransport | None = None
    newer_cursor: CursorTransport | None = None


@dataclass(frozen=True, slots=True)
class LogsPage:
    """One page of rows in ascending time order."""

    rows: list[LogRow]
    page_info: PageInfo
    query_hash: str
    profile: LogProfile  # snapshot the page was built with


@dataclass(frozen=True, slots=True)
class LogsQuery:
    """Normalized pagination request.

    ``start``/``end`` are canonical ISO strings; ``cursor`` is whatever the client
    sent back (encoded string or structured cursor).
    """

    query: str
    start: str
    end: str
    limit: int
    cursor: str | LogsCursor | dict[str, Any] | None = None
