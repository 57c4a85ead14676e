"""Deterministic synthetic record source for development and tests.

Builds a seeded virtual timeline ending at a fixed "now" and answers query_raw
like an upstream would. Every value is derived from a SHA-1 of the seed and the
tick, so overlapping queries reproduce identical records. Messages start with an
absolute ``SEQ:<n>`` marker numbered from the timeline origin.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from functools import cached_property
from typing import Any, TypeVar

from ..models import CursorDirection, RawLogRecord
from ..time_window import from_epoch_ms, to_epoch_ms, to_iso_millis, try_parse_iso_dt

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEVERITIES: tuple[str, ...] = ("TRACE", "DEBUG", "INFO", "WARN", "ERROR")
SERVICES: tuple[str, ...] = ("api", "worker", "scheduler", "frontend", "billing", "search")
CHECKPOINT_EVERY = 250
STREAMS_PER_SERVICE = 20
NOISY_JITTER_MS = 200
HISTORICAL_MARGIN_MS = 60_000

_HOUR_MS = 60 * 60 * 1000
_DAY_MS = 24 * _HOUR_MS

_SERVICE_FILTER_RE = re.compile(r"service\.name:(\S+)", re.IGNORECASE)
_SEVERITY_FILTER_RE = re.compile(r"severity:(\S+)", re.IGNORECASE)
_CONNECTIVES = {"and", "or"}


class SyntheticProfile(str, Enum):
    """Volume shape of the generated timeline."""

    STEADY = "steady"
    BURSTY = "bursty"
    NOISY = "noisy"


# (last hour, last day, older) cadence in milliseconds
_CADENCE_MS: dict[SyntheticProfile, tuple[int, int, int]] = {
    SyntheticProfile.STEADY: (5_000, 60_000, 15 * 60_000),
    SyntheticProfile.BURSTY: (3_000, 30_000, 10 * 60_000),
    SyntheticProfile.NOISY: (2_000, 20_000, 5 * 60_000),
}


@dataclass(frozen=True, slots=True)
class SyntheticRecord:
    sequence: int
    timestamp_ms: int
    raw: RawLogRecord


def hash_to_unit_interval(seed: str) -> float:
    """Map a seed string to [0, 1] via the first 32 bits of its SHA-1."""
    digest = hashlib.sha1(seed.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) / 0xFFFFFFFF


def pick_from(items: Sequence[T], seed: str) -> T:
    index = int(hash_to_unit_interval(seed) * len(items))
    return items[min(index, len(items) - 1)]


def resolve_cadence_ms(age_ms: int, profile: SyntheticProfile) -> int:
    """Tick spacing; fresher ticks are denser."""
    recent, daily, older = _CADENCE_MS[profile]
    if age_ms <= _HOUR_MS:
        return recent
    if age_ms <= _DAY_MS:
        return daily
    return older


def resolve_records_per_tick(profile: SyntheticProfile, seed: str) -> int:
    r = hash_to_unit_interval(seed)
    if profile is SyntheticProfile.STEADY:
        return 2 if r < 0.08 else 1
    if profile is SyntheticProfile.BURSTY:
        if r < 0.15:
            return 3
        return 2 if r < 0.4 else 1
    if r < 0.1:
        return 4
    return 2 if r < 0.45 else 1


def build_message(*, sequence: int, service: str, severity: str, profile: SyntheticProfile) -> str:
    checkpoint = (
        f" | CHECKPOINT:{sequence // CHECKPOINT_EVERY}" if sequence % CHECKPOINT_EVERY == 0 else ""
    )
    return (
        f"SEQ:{sequence:09d}{checkpoint} | svc={service} | level={severity} "
        f"| profile={profile.value}"
    )


def build_stream(service: str, severity: str) -> str:
    return f'{{service.name="{service}",severity="{severity}"}}'


def _filter_value(raw: str) -> str:
    return raw.strip("\"'").lower()


def query_matches(raw: RawLogRecord, query: str) -> bool:
    """Minimal query engine: two field equality filters plus free-text tokens."""
    normalized = query.strip()
    if not normalized or normalized == "*":
        return True

    service_match = _SERVICE_FILTER_RE.search(normalized)
    if service_match:
        service = str(raw.get("service.name", "")).lower()
        if service != _filter_value(service_match.group(1)):
            return False

    severity_match = _SEVERITY_FILTER_RE.search(normalized)
    if severity_match:
        severity = str(raw.get("severity", "")).lower()
        if severity != _filter_value(severity_match.group(1)):
            return False

    searchable = str(raw.get("_msg", "")).lower()
    free_text = _SEVERITY_FILTER_RE.sub(" ", _SERVICE_FILTER_RE.sub(" ", normalized))
    tokens = [t.lower() for t in free_text.split() if t.lower() not in _CONNECTIVES and t != "*"]
    return all(token in searchable for token in tokens)


class SyntheticRecordSource:
    """Seeded stand-in for the upstream log backend.

    The timeline covers ``[now - lookback, now]`` and is fixed at construction,
    so every query against one instance sees the same records. ``now`` does not
    advance: an instance never emits records newer than its construction time,
    and a long-running server has to build a new source to see fresh ones.
    """

    def __init__(
        self,
        profile: SyntheticProfile | str = SyntheticProfile.STEADY,
        seed: str = "vic-viewer-synthetic-seed",
        *,
        now: datetime | None = None,
        lookback: timedelta = timedelta(days=7),
    ) -> None:
        if lookback <= timedelta(0):
            raise ValueError("lookback must be positive")
        self.profile = SyntheticProfile(profile)
        self.seed = seed
        self._now_ms = to_epoch_ms(now or datetime.now(UTC))
        self._origin_ms = self._now_ms - lookback // timedelta(milliseconds=1)

    @property
    def now(self) -> datetime:
        return from_epoch_ms(self._now_ms)

    @property
    def origin(self) -> datetime:
        return from_epoch_ms(self._origin_ms)

    @cached_property
    def timeline(self) -> tuple[SyntheticRecord, ...]:
        """All records of the virtual timeline, in tick order."""
        return tuple(self._generate())

    def _generate(self) -> list[SyntheticRecord]:
        records: list[SyntheticRecord] = []
        sequence = 0
        tick_ms = self._origin_ms
        seed = self.seed

        while tick_ms <= self._now_ms:
            cadence_ms = resolve_cadence_ms(self._now_ms - tick_ms, self.profile)
            count = resolve_records_per_tick(self.profile, f"{seed}:count:{tick_ms}")

            for index in range(count):
                sequence += 1
                stream_seed = f"{seed}:stream:{tick_ms}:{index}"
                service = pick_from(SERVICES, f"{stream_seed}:service")
                severity = pick_from(SEVERITIES, f"{stream_seed}:severity")
                stream_no = int(hash_to_unit_interval(f"{stream_seed}:id") * STREAMS_PER_SERVICE)
                stream_id = f"stream-{service}-{min(stream_no, STREAMS_PER_SERVICE - 1)}"

                jitter_ms = 0
                if self.profile is SyntheticProfile.NOISY:
                    unit = hash_to_unit_interval(f"{stream_seed}:jitter")
                    jitter_ms = int(unit * 2 * NOISY_JITTER_MS) - NOISY_JITTER_MS
                timestamp_ms = max(self._origin_ms, min(self._now_ms, tick_ms + jitter_ms))

                trace_id = hashlib.sha1(f"{stream_seed}:trace".encode()).hexdigest()[:32]
                span_id = hashlib.sha1(f"{stream_seed}:span".encode()).hexdigest()[:16]

                records.append(
                    SyntheticRecord(
                        sequence=sequence,
                        timestamp_ms=timestamp_ms,
                        raw={
                            "_time": to_iso_millis(from_epoch_ms(timestamp_ms)),
                            "_msg": build_message(
                                sequence=sequence,
                                service=service,
                                severity=severity,
                                profile=self.profile,
                            ),
                            "_stream_id": stream_id,
                            "_stream": build_stream(service, severity),
                            "severity": severity,
                            "service.name": service,
                            "trace_id": trace_id,
                            "span_id": span_id,
                        },
                    )
                )

            tick_ms += cadence_ms

        logger.debug(
            "Generated synthetic timeline: profile=%s records=%d", self.profile.value, len(records)
        )
        return records

    def _is_historical(self, end_ms: int) -> bool:
        return end_ms < self._now_ms - HISTORICAL_MARGIN_MS

    async def query_raw(
        self,
        query: str,
        start: str,
        end: str,
        limit: int,
        cursor_direction: CursorDirection | None = None,
    ) -> list[dict[str, Any]]:
        """Return up to ``limit`` matching records between start and end, newest first.

        older -> the newest matches (nearest an older-direction anchor),
        newer -> the oldest matches (nearest a newer-direction anchor),
        no direction on a historical window -> a middle slice,
        otherwise -> the newest matches.
        """
        start_dt = try_parse_iso_dt(start)
        end_dt = try_parse_iso_dt(end)
        if start_dt is None or end_dt is None or limit < 1:
            return []

        start_ms = to_epoch_ms(start_dt)
        end_ms = to_epoch_ms(end_dt)
        if end_ms < start_ms:
            return []

        matches = [
            record
            for record in self.timeline
            if start_ms <= record.timestamp_ms <= end_ms and query_matches(record.raw, query)
        ]
        matches.sort(key=lambda r: (r.timestamp_ms, r.sequence), reverse=True)

        selected = matches
        if len(matches) > limit:
            direction = CursorDirection(cursor_direction) if cursor_direction else None
            if direction is CursorDirection.OLDER:
                selected = matches[:limit]
            elif direction is CursorDirection.NEWER:
                selected = matches[len(matches) - limit :]
            elif self._is_historical(end_ms):
                middle = (len(matches) - limit) // 2
                selected = matches[middle : middle + limit]
            else:
                selected = matches[:limit]

        return [dict(record.raw) for record in selected]
