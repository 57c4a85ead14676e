"""Total order over log rows.

Rows sort by time, then by sequence hint (rows carrying one first), then by the
``stream:time:tie_breaker`` key. The same comparison places rows relative to a
cursor anchor, so a row can never land on both sides of a cursor.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from functools import cmp_to_key

from .models import CursorAnchor, LogRow
from .normalize import build_row_key, extract_sequence_hint, extract_stream_id
from .profiles.models import LogProfile


@dataclass(frozen=True, slots=True)
class SortTarget:
    time: str
    key: str
    sequence: int | None


def build_sort_target(row: LogRow, profile: LogProfile) -> SortTarget:
    """Sort target for a row; stream id is re-resolved with the given profile."""
    return SortTarget(
        time=row.time,
        key=build_row_key(extract_stream_id(row.raw, profile), row.time, row.tie_breaker),
        sequence=extract_sequence_hint(row.raw, profile),
    )


def sort_target_from_anchor(anchor: CursorAnchor) -> SortTarget:
    return SortTarget(
        time=anchor.time,
        key=build_row_key(anchor.streamId, anchor.time, anchor.tieBreaker),
        sequence=anchor.sequence,
    )


def _cmp(left: str | int, right: str | int) -> int:
    return (left > right) - (left < right)


def compare_sort_targets(left: SortTarget, right: SortTarget) -> int:
    delta = _cmp(left.time, right.time)
    if delta:
        return delta

    if left.sequence is not None and right.sequence is not None:
        delta = _cmp(left.sequence, right.sequence)
    else:
        # sequenced rows sort ahead of unsequenced ones at the same time
        delta = _cmp(left.sequence is None, right.sequence is None)
    if delta:
        return delta

    return _cmp(left.key, right.key)


def compare_rows(left: LogRow, right: LogRow, profile: LogProfile) -> int:
    """Return -1, 0 or 1."""
    return compare_sort_targets(build_sort_target(left, profile), build_sort_target(right, profile))


def sort_rows(rows: Iterable[LogRow], profile: LogProfile) -> list[LogRow]:
    """Rows in ascending order."""
    targets = [(build_sort_target(row, profile), row) for row in rows]
    targets.sort(key=cmp_to_key(lambda a, b: compare_sort_targets(a[0], b[0])))
    return [row for _, row in targets]


def is_before_anchor(row: LogRow, anchor: CursorAnchor, profile: LogProfile) -> bool:
    return compare_sort_targets(build_sort_target(row, profile), sort_target_from_anchor(anchor)) < 0


def is_after_anchor(row: LogRow, anchor: CursorAnchor, profile: LogProfile) -> bool:
    return compare_sort_targets(build_sort_target(row, profile), sort_target_from_anchor(anchor)) > 0
