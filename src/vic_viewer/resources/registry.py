"""MCP resource registry.

Read-only views of the pagination setup: the active profile, the cursor schema
and a sample record the fallback profile can read.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from vic_viewer.core.cursor import SORT_ALGORITHM_VERSION, CursorTransportMode
from vic_viewer.core.models import LogsCursor
from vic_viewer.core.pagination import DEFAULT_LIMIT, MAX_LIMIT, MIN_LIMIT
from vic_viewer.core.profiles import ProfileStore

SAMPLE_RECORD: dict[str, Any] = {
    "_time": "2026-02-14T19:25:34.66023Z",
    "_stream_id": "00000000000000007edb33edb5f802307f4bb0759c0efd35",
    "_stream": '{service.name="ProcureHub.BlazorApp"}',
    "_msg": "Assigned user 52eb2e5b-8fbf-4785-b305-83d9c595b473 to department ca5b4fd6",
    "service.name": "ProcureHub.BlazorApp",
    "severity": "Information",
    "span_id": "57675a26d8b5a3fb",
    "trace_id": "ae301d04af9409e9d0045e81ae1eb77c",
}


def register_resources(
    mcp: FastMCP,
    *,
    profiles: ProfileStore,
    cursor_mode: CursorTransportMode,
) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://vic-viewer/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://vic-viewer/help\n"
            "- app://vic-viewer/profiles/active\n"
            "- app://vic-viewer/schemas/logs-cursor\n"
            "- app://vic-viewer/examples/sample-record\n"
            f"\nCursor transport: {cursor_mode.value}\n"
            f"Page limit: {MIN_LIMIT}..{MAX_LIMIT} (default {DEFAULT_LIMIT})\n"
            f"Sort: {SORT_ALGORITHM_VERSION}\n"
        )

    @mcp.resource("app://vic-viewer/profiles/active")
    def active_profile() -> dict[str, Any]:
        """Return the active log profile as configured (camelCase keys)."""
        return profiles.get_active_profile().model_dump(mode="json", by_alias=True, exclude_none=True)

    @mcp.resource("app://vic-viewer/schemas/logs-cursor")
    def cursor_schema() -> dict[str, Any]:
        """Return the JSON schema of a decoded cursor."""
        return LogsCursor.model_json_schema()

    @mcp.resource("app://vic-viewer/examples/sample-record")
    def sample_record() -> dict[str, Any]:
        """Return a raw VictoriaLogs record readable by the fallback profile."""
        return dict(SAMPLE_RECORD)
