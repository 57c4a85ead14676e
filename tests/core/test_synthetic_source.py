from __future__ import annotations

from datetime import timedelta

import pytest

from vic_viewer.core.models import CursorDirection
from vic_viewer.core.normalize import parse_sequence
from vic_viewer.core.sources.synthetic import (
    SyntheticProfile,
    SyntheticRecordSource,
    build_message,
    hash_to_unit_interval,
    pick_from,
    query_matches,
    resolve_cadence_ms,
)
from vic_viewer.core.time_window import to_epoch_ms, to_iso_millis


def _window(now, *, ago: timedelta, span: timedelta) -> tuple[str, str]:
    end = now - ago
    return to_iso_millis(end - span), to_iso_millis(end)


def test_hash_to_unit_interval_is_stable_and_bounded() -> None:
    a = hash_to_unit_interval("seed:1")
    assert a == hash_to_unit_interval("seed:1")
    assert 0.0 <= a <= 1.0
    assert pick_from(["x", "y", "z"], "seed:1") in {"x", "y", "z"}


def test_cadence_is_denser_for_fresh_ticks() -> None:
    recent = resolve_cadence_ms(1_000, SyntheticProfile.STEADY)
    daily = resolve_cadence_ms(2 * 60 * 60 * 1000, SyntheticProfile.STEADY)
    old = resolve_cadence_ms(3 * 24 * 60 * 60 * 1000, SyntheticProfile.STEADY)
    assert recent < daily < old


def test_build_message_marks_checkpoints() -> None:
    msg = build_message(sequence=500, service="api", severity="INFO", profile=SyntheticProfile.STEADY)
    assert msg.startswith("SEQ:000000500 | CHECKPOINT:2 |")
    plain = build_message(sequence=7, service="api", severity="INFO", profile=SyntheticProfile.NOISY)
    assert plain == "SEQ:000000007 | svc=api | level=INFO | profile=noisy"


@pytest.mark.parametrize(
    ("query", "expected"),
    [
        ("*", True),
        ("", True),
        ('service.name:"api"', True),
        ("service.name:worker", False),
        ("severity:error", True),
        ("severity:info", False),
        ("svc=api AND level=ERROR", True),
        ("checkpoint", False),
    ],
)
def test_query_matches(query, expected) -> None:
    raw = {
        "_msg": "SEQ:000000007 | svc=api | level=ERROR | profile=steady",
        "service.name": "api",
        "severity": "ERROR",
    }
    assert query_matches(raw, query) is expected


@pytest.mark.asyncio
async def test_overlapping_windows_reproduce_identical_records(fixed_now) -> None:
    a = SyntheticRecordSource("noisy", "s1", now=fixed_now)
    b = SyntheticRecordSource("noisy", "s1", now=fixed_now)
    start_a, end_a = _window(fixed_now, ago=timedelta(minutes=20), span=timedelta(minutes=30))
    start_b, end_b = _window(fixed_now, ago=timedelta(minutes=5), span=timedelta(minutes=30))

    first = await a.query_raw("*", start_a, end_a, 10_000)
    second = await b.query_raw("*", start_b, end_b, 10_000)

    overlap_start, overlap_end = start_b, end_a
    in_first = [r for r in first if overlap_start <= r["_time"] <= overlap_end]
    in_second = [r for r in second if overlap_start <= r["_time"] <= overlap_end]
    assert in_first
    assert in_first == in_second


@pytest.mark.asyncio
async def test_different_seed_changes_records(fixed_now) -> None:
    start, end = _window(fixed_now, ago=timedelta(0), span=timedelta(minutes=10))
    a = await SyntheticRecordSource("bursty", "s1", now=fixed_now).query_raw("*", start, end, 500)
    b = await SyntheticRecordSource("bursty", "s2", now=fixed_now).query_raw("*", start, end, 500)
    assert a != b


@pytest.mark.asyncio
async def test_sequence_numbers_increase_with_time(synthetic_source, fixed_now) -> None:
    start, end = _window(fixed_now, ago=timedelta(0), span=timedelta(minutes=10))

    records = await synthetic_source.query_raw("*", start, end, 10_000)
    seqs = [parse_sequence(r["_msg"]) for r in records]

    # newest first, strictly decreasing sequence
    assert seqs == sorted(seqs, reverse=True)
    assert len(set(seqs)) == len(seqs)
    assert all(start <= r["_time"] <= end for r in records)


@pytest.mark.asyncio
async def test_direction_hint_selects_slice(synthetic_source, fixed_now) -> None:
    start, end = _window(fixed_now, ago=timedelta(minutes=10), span=timedelta(minutes=30))
    everything = await synthetic_source.query_raw("*", start, end, 10_000)

    older = await synthetic_source.query_raw("*", start, end, 5, CursorDirection.OLDER)
    newer = await synthetic_source.query_raw("*", start, end, 5, CursorDirection.NEWER)
    middle = await synthetic_source.query_raw("*", start, end, 5)

    assert older == everything[:5]
    assert newer == everything[-5:]
    offset = (len(everything) - 5) // 2
    assert middle == everything[offset : offset + 5]


@pytest.mark.asyncio
async def test_recent_window_without_hint_returns_newest(synthetic_source, fixed_now) -> None:
    start, end = _window(fixed_now, ago=timedelta(0), span=timedelta(minutes=30))
    everything = await synthetic_source.query_raw("*", start, end, 10_000)

    assert await synthetic_source.query_raw("*", start, end, 5) == everything[:5]


@pytest.mark.asyncio
async def test_field_filter_applies(synthetic_source, fixed_now) -> None:
    start, end = _window(fixed_now, ago=timedelta(0), span=timedelta(minutes=30))
    records = await synthetic_source.query_raw('service.name:"api"', start, end, 10_000)

    assert records
    assert {r["service.name"] for r in records} == {"api"}


@pytest.mark.asyncio
async def test_invalid_or_inverted_window_is_empty(synthetic_source, fixed_now) -> None:
    start, end = _window(fixed_now, ago=timedelta(0), span=timedelta(minutes=30))
    assert await synthetic_source.query_raw("*", "garbage", end, 10) == []
    assert await synthetic_source.query_raw("*", end, start, 10) == []
    assert await synthetic_source.query_raw("*", start, end, 0) == []


def test_noisy_jitter_stays_inside_timeline(fixed_now) -> None:
    source = SyntheticRecordSource(SyntheticProfile.NOISY, "s1", now=fixed_now, lookback=timedelta(hours=2))
    origin_ms = to_epoch_ms(source.origin)
    now_ms = to_epoch_ms(source.now)

    assert source.now == fixed_now
    assert all(origin_ms <= r.timestamp_ms <= now_ms for r in source.timeline)
    assert [r.sequence for r in source.timeline] == list(range(1, len(source.timeline) + 1))


@pytest.mark.asyncio
async def test_timeline_stops_at_construction_time(synthetic_source, fixed_now) -> None:
    later_start = to_iso_millis(fixed_now + timedelta(milliseconds=1))
    later_end = to_iso_millis(fixed_now + timedelta(hours=1))

    assert await synthetic_source.query_raw("*", later_start, later_end, 100) == []


def test_lookback_must_be_positive(fixed_now) -> None:
    with pytest.raises(ValueError):
        SyntheticRecordSource("steady", "s1", now=fixed_now, lookback=timedelta(0))
