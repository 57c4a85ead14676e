"""Time parsing and window helpers.

All times handled by the pipeline are UTC and rendered as ISO-8601 with a fixed
millisecond precision, so their string order matches chronological order.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_HOUR_RE = re.compile(r"^(?P<d>\d{4}-\d{2}-\d{2})T(?P<h>\d{2})$")
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def parse_iso_dt(s: str) -> datetime:
    """Parse ISO8601 datetime. If tz is missing, assume UTC."""
    text = s.strip().replace("Z", "+00:00")
    # fromisoformat caps fractional seconds at microseconds
    text = _FRACTION_RE.sub(r"\1", text)
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    try:
        return dt.astimezone(UTC)
    except OverflowError as exc:
        raise ValueError(f"datetime out of range in UTC: {s!r}") from exc


def try_parse_iso_dt(s: str) -> datetime | None:
    """Like parse_iso_dt, but return None for unparseable input."""
    try:
        return parse_iso_dt(s)
    except ValueError:
        return None


def to_iso_millis(dt: datetime) -> str:
    """Render a datetime as UTC ISO-8601 with millisecond precision (``...sssZ``)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def canonical_iso(s: str) -> str:
    """Parse and re-render a timestamp in the canonical millisecond form."""
    return to_iso_millis(parse_iso_dt(s))


def to_epoch_ms(dt: datetime) -> int:
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


def range_for_date(s: str) -> tuple[datetime, datetime]:
    """Return the UTC day window for an ISO date string."""
    d = date.fromisoformat(s)
    start = datetime(d.year, d.month, d.day, tzinfo=UTC)
    end = start + timedelta(days=1)
    return start, end


def range_for_hour(s: str) -> tuple[datetime, datetime]:
    """Return the UTC hour window for a YYYY-MM-DDTHH selector."""
    m = _HOUR_RE.match(s)
    if not m:
        raise ValueError("hour must look like YYYY-MM-DDTHH (e.g., 2025-12-29T10)")
    d = date.fromisoformat(m.group("d"))
    start = datetime(d.year, d.month, d.day, int(m.group("h")), tzinfo=UTC)
    return start, start + timedelta(hours=1)


def resolve_time_window(
    *,
    since: str | None = None,
    until: str | None = None,
    date_: str | None = None,
    hour: str | None = None,
    hours_lookback: int | None = None,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Resolve a closed UTC window.

    Precedence: date/hour selectors, then explicit since/until, then lookback
    (default one hour) ending at ``now``.
    """
    if date_:
        return range_for_date(date_)
    if hour:
        return range_for_hour(hour)

    if now is None:
        now = datetime.now(UTC)
    if hours_lookback is not None and hours_lookback < 0:
        raise ValueError("hours_lookback must be >= 0")

    u = parse_iso_dt(until) if until else now
    if since:
        s = parse_iso_dt(since)
    else:
        s = u - timedelta(hours=hours_lookback if hours_lookback is not None else 1)

    if s > u:
        raise ValueError("since must be <= until")
    return s, u
