"""Implementations behind the `query_logs` and `reload_log_profile` MCP tools.

Rows and page info are rendered with the camelCase keys clients expect; typed
query failures become `{"error": {...}}` payloads.
"""

from __future__ import annotations

import logging
from typing import Any

from vic_viewer.core.cursor import cursor_to_wire
from vic_viewer.core.errors import LogsQueryError, ProfileLoadError
from vic_viewer.core.models import CursorTransport, LogRow, LogsCursor, LogsPage
from vic_viewer.core.normalize import resolve_core_fields
from vic_viewer.core.pagination import LogsPaginator, normalize_query
from vic_viewer.core.profiles import LogProfile, ProfileStore

logger = logging.getLogger(__name__)


def _cursor_to_json(cursor: CursorTransport | None) -> str | dict[str, Any] | None:
    if cursor is None:
        return None
    if isinstance(cursor, LogsCursor):
        return cursor_to_wire(cursor)
    return cursor


def row_to_dict(row: LogRow, profile: LogProfile, *, include_raw: bool = True) -> dict[str, Any]:
    """Convert a LogRow into a JSON-serializable dict with resolved display fields."""
    d: dict[str, Any] = {
        "key": row.key,
        "time": row.time,
        "tieBreaker": row.tie_breaker,
        **resolve_core_fields(row, profile),
    }
    if include_raw:
        d["raw"] = row.raw
    return d


def page_to_dict(page: LogsPage, profile: LogProfile, *, include_raw: bool = True) -> dict[str, Any]:
    info = page.page_info
    page_info: dict[str, Any] = {"hasOlder": info.has_older, "hasNewer": info.has_newer}
    if info.older_cursor is not None:
        page_info["olderCursor"] = _cursor_to_json(info.older_cursor)
    if info.newer_cursor is not None:
        page_info["newerCursor"] = _cursor_to_json(info.newer_cursor)
    return {
        "rows": [row_to_dict(r, profile, include_raw=include_raw) for r in page.rows],
        "pageInfo": page_info,
    }


async def query_logs_impl(
    *,
    paginator: LogsPaginator,
    query: str | None,
    start: str,
    end: str,
    limit: int | None = None,
    cursor: str | dict[str, Any] | None = None,
    include_raw: bool = True,
) -> dict[str, Any]:
    """Implementation for the `query_logs` MCP tool.

    Notes
    -----
    - Invalid start/end raise ValueError (request validation).
    - Cursor and upstream failures are returned as ``{"error": {...}}`` so clients
      can tell "drop your cursor" (INVALID_CURSOR) from "backend is down"
      (UPSTREAM_UNAVAILABLE / UPSTREAM_RESPONSE_INVALID).
    """
    request = normalize_query(query=query, start=start, end=end, limit=limit, cursor=cursor)

    try:
        page = await paginator.paginate(request)
    except LogsQueryError as exc:
        logger.warning("Logs query failed: %s (%s)", exc.code, exc.message)
        return {"error": exc.to_dict()}

    # Display fields use the same profile snapshot the page was built with.
    return page_to_dict(page, page.profile, include_raw=include_raw)


async def reload_log_profile_impl(*, profiles: ProfileStore) -> dict[str, Any]:
    """Implementation for the `reload_log_profile` MCP tool."""
    try:
        profile = await profiles.reload()
    except ProfileLoadError as exc:
        logger.warning("Log profile reload failed: %s", exc)
        return {"error": {"code": "PROFILE_INVALID", "message": str(exc)}}
    return {
        "id": profile.id,
        "name": profile.name,
        "version": profile.version,
        "path": str(profiles.path) if profiles.path is not None else None,
    }
