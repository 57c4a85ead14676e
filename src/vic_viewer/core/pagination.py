"""Keyset pagination over a record source.

Stateless per request: everything needed to resume lives in the request or in
the cursor. Each request takes one profile snapshot and uses it for the query
hash, normalization, ordering and the next cursors.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .cursor import (
    CursorTransportMode,
    build_cursor_from_row,
    build_query_hash,
    parse_cursor_input,
    serialize_cursor,
)
from .errors import CursorDecodeError, InvalidCursorError
from .models import CursorDirection, CursorTransport, LogRow, LogsCursor, LogsPage, LogsQuery, PageInfo
from .normalize import extract_raw_records, normalize_records
from .ordering import is_after_anchor, is_before_anchor, sort_rows
from .profiles.models import LogProfile
from .sources.base import RecordSource
from .time_window import canonical_iso, parse_iso_dt

logger = logging.getLogger(__name__)

WILDCARD_QUERY = "*"
DEFAULT_LIMIT = 200
MIN_LIMIT = 1
MAX_LIMIT = 500
MAX_FETCH_ROUNDS = 4
MAX_FETCH_LIMIT = 4000


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(MIN_LIMIT, min(int(limit), MAX_LIMIT))


def normalize_query(
    *,
    query: str | None,
    start: str,
    end: str,
    limit: int | None = None,
    cursor: Any = None,
) -> LogsQuery:
    """Canonicalize a request: wildcard for blank queries, clamped limit, ISO bounds."""
    try:
        start_c = canonical_iso(start)
        end_c = canonical_iso(end)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"start and end must be ISO-8601 datetimes: {exc}") from exc
    if start_c > end_c:
        raise ValueError("start must be <= end")

    return LogsQuery(
        query=(query or "").strip() or WILDCARD_QUERY,
        start=start_c,
        end=end_c,
        limit=clamp_limit(limit),
        cursor=cursor if cursor not in (None, "") else None,
    )


def resolve_fetch_window(request: LogsQuery, cursor: LogsCursor | None) -> dict[str, str]:
    """Narrow the window to the unseen side of the anchor."""
    if cursor is None:
        return {"start": request.start, "end": request.end}
    if cursor.dir is CursorDirection.OLDER:
        return {"start": request.start, "end": cursor.anchor.time}
    return {"start": cursor.anchor.time, "end": request.end}


def apply_cursor_filter(
    rows: list[LogRow], cursor: LogsCursor | None, profile: LogProfile
) -> list[LogRow]:
    """Keep rows strictly on the cursor's side of its anchor."""
    if cursor is None:
        return rows
    anchor = cursor.anchor
    if cursor.dir is CursorDirection.OLDER:
        return [row for row in rows if is_before_anchor(row, anchor, profile)]
    return [row for row in rows if is_after_anchor(row, anchor, profile)]


class LogsPaginator:
    """Serves pages of normalized rows from a record source."""

    def __init__(
        self,
        source: RecordSource,
        get_active_profile: Callable[[], LogProfile],
        *,
        cursor_mode: CursorTransportMode = CursorTransportMode.ENCODED,
    ) -> None:
        self._source = source
        self._get_active_profile = get_active_profile
        self._cursor_mode = cursor_mode

    @property
    def cursor_mode(self) -> CursorTransportMode:
        return self._cursor_mode

    def _resolve_cursor(
        self, request: LogsQuery, query_hash: str
    ) -> LogsCursor | None:
        if request.cursor is None:
            return None
        try:
            cursor = parse_cursor_input(request.cursor, self._cursor_mode)
        except CursorDecodeError as exc:
            logger.warning(
                "Rejected logs query: undecodable cursor (query_hash=%s mode=%s): %s",
                query_hash,
                self._cursor_mode.value,
                exc,
            )
            raise InvalidCursorError("Cursor is invalid for this query context") from exc

        if (
            cursor.queryHash != query_hash
            or cursor.window.start != request.start
            or cursor.window.end != request.end
        ):
            logger.warning(
                "Rejected logs query: cursor context mismatch (query_hash=%s cursor_hash=%s)",
                query_hash,
                cursor.queryHash,
            )
            raise InvalidCursorError("Cursor is invalid for this query context")
        return cursor

    async def _fetch_rows(
        self,
        request: LogsQuery,
        window: dict[str, str],
        cursor: LogsCursor | None,
        profile: LogProfile,
    ) -> list[LogRow]:
        # The narrowed window still holds the anchor and rows tied with it,
        # so a cursor page asks for one extra and widens while it comes up short.
        fetch_limit = request.limit + 1 if cursor is not None else request.limit
        direction = cursor.dir if cursor is not None else None
        rows: list[LogRow] = []

        for round_no in range(1, MAX_FETCH_ROUNDS + 1):
            payload = await self._source.query_raw(
                request.query, window["start"], window["end"], fetch_limit, direction
            )
            records = extract_raw_records(payload)
            rows = apply_cursor_filter(normalize_records(records, profile), cursor, profile)

            if len(rows) >= request.limit or len(records) < fetch_limit:
                break
            if fetch_limit >= MAX_FETCH_LIMIT or round_no == MAX_FETCH_ROUNDS:
                break
            fetch_limit = min(fetch_limit * 2, MAX_FETCH_LIMIT)
            logger.debug(
                "Short page (%d/%d rows), refetching with limit=%d",
                len(rows),
                request.limit,
                fetch_limit,
            )
        return rows

    def _directional_cursor(
        self,
        *,
        has_more: bool,
        row: LogRow | None,
        direction: CursorDirection,
        profile: LogProfile,
        query_hash: str,
        window: dict[str, str],
    ) -> CursorTransport | None:
        if not has_more or row is None:
            return None
        cursor = build_cursor_from_row(direction, row, profile, query_hash, window)
        return serialize_cursor(cursor, self._cursor_mode)

    async def paginate(self, request: LogsQuery) -> LogsPage:
        """Serve one page.

        Raises InvalidCursorError, UpstreamRequestError or UpstreamPayloadError.
        """
        profile = self._get_active_profile()
        request_window = {"start": request.start, "end": request.end}
        query_hash = build_query_hash(request.query, request_window, profile.identity)

        cursor = self._resolve_cursor(request, query_hash)
        fetch_window = resolve_fetch_window(request, cursor)

        logger.info(
            "Logs query: query=%r window=%s..%s fetch=%s..%s dir=%s limit=%d hash=%s profile=%s@%s",
            request.query,
            request.start,
            request.end,
            fetch_window["start"],
            fetch_window["end"],
            cursor.dir.value if cursor else "-",
            request.limit,
            query_hash[:12],
            profile.id,
            profile.version,
        )

        rows = await self._fetch_rows(request, fetch_window, cursor, profile)
        rows = sort_rows(rows, profile)
        # An older page keeps the rows adjacent to its anchor.
        if cursor is not None and cursor.dir is CursorDirection.OLDER:
            rows = rows[-request.limit :]
        else:
            rows = rows[: request.limit]

        oldest = rows[0] if rows else None
        newest = rows[-1] if rows else None
        has_older = oldest is not None and parse_iso_dt(oldest.time) > parse_iso_dt(request.start)
        has_newer = newest is not None and parse_iso_dt(newest.time) < parse_iso_dt(request.end)

        page_info = PageInfo(
            has_older=has_older,
            has_newer=has_newer,
            older_cursor=self._directional_cursor(
                has_more=has_older,
                row=oldest,
                direction=CursorDirection.OLDER,
                profile=profile,
                query_hash=query_hash,
                window=request_window,
            ),
            newer_cursor=self._directional_cursor(
                has_more=has_newer,
                row=newest,
                direction=CursorDirection.NEWER,
                profile=profile,
                query_hash=query_hash,
                window=request_window,
            ),
        )
        return LogsPage(rows=rows, page_info=page_info, query_hash=query_hash, profile=profile)
