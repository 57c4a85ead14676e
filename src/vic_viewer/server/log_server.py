"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: paginated log queries and profile reloads
- Resources: the active profile, the cursor schema and a sample record

Run locally (stdio):
    python -m vic_viewer.server.log_server
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP

from vic_viewer.core.config import AppConfig, load_config
from vic_viewer.core.pagination import DEFAULT_LIMIT, LogsPaginator
from vic_viewer.core.profiles import ProfileStore
from vic_viewer.core.sources import RecordSource, SyntheticRecordSource, VictoriaLogsSource
from vic_viewer.resources.registry import register_resources
from vic_viewer.tools.logs import query_logs_impl, reload_log_profile_impl

LOGGER = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; stdout carries the protocol.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass(frozen=True, slots=True)
class Services:
    profiles: ProfileStore
    source: RecordSource
    paginator: LogsPaginator


def build_record_source(config: AppConfig) -> RecordSource:
    if config.logs_data_mode == "synthetic":
        LOGGER.info(
            "Using synthetic logs (profile=%s seed=%s)",
            config.synthetic_profile.value,
            config.synthetic_seed,
        )
        return SyntheticRecordSource(config.synthetic_profile, config.synthetic_seed)
    return VictoriaLogsSource(
        config.victoria_logs_url, timeout_s=config.vicstack_timeout_ms / 1000
    )


def build_services(config: AppConfig) -> Services:
    profiles = ProfileStore.from_path(
        config.log_profile_path, expected_profile_id=config.log_profile_id
    )
    source = build_record_source(config)
    paginator = LogsPaginator(source, profiles.get_active_profile, cursor_mode=config.cursor_mode)
    return Services(profiles=profiles, source=source, paginator=paginator)


def build_server(config: AppConfig | None = None, *, services: Services | None = None) -> FastMCP:
    """Create the FastMCP app with tools and resources registered."""
    config = config or load_config()
    services = services or build_services(config)
    mcp = FastMCP("vic-viewer-logs", json_response=True)

    register_resources(mcp, profiles=services.profiles, cursor_mode=config.cursor_mode)

    @mcp.tool()
    async def query_logs(
        query: str,
        start: str,
        end: str,
        limit: int = DEFAULT_LIMIT,
        cursor: str | dict[str, Any] | None = None,
        include_raw: bool = True,
    ) -> dict[str, Any]:
        """Return one page of normalized log rows in ascending time order.

        Parameters
        ----------
        query:
            LogsQL query passed to the backend. Blank means "*" (everything).
        start/end:
            ISO-8601 datetimes bounding the window (e.g., 2026-02-14T19:00:00Z).
            Keep them unchanged while paging: cursors are bound to the window.
        limit:
            Rows per page, clamped to 1..500.
        cursor:
            pageInfo.olderCursor or pageInfo.newerCursor from a previous page of the
            same query and window.
        include_raw:
            Whether to include the raw record in each row.

        Returns
        -------
        dict:
            {"rows": [...], "pageInfo": {"hasOlder", "hasNewer", "olderCursor"?, "newerCursor"?}}
            or {"error": {"code", "message", "status"}} with code INVALID_CURSOR,
            UPSTREAM_UNAVAILABLE or UPSTREAM_RESPONSE_INVALID.
        """
        return await query_logs_impl(
            paginator=services.paginator,
            query=query,
            start=start,
            end=end,
            limit=limit,
            cursor=cursor,
            include_raw=include_raw,
        )

    @mcp.tool()
    async def reload_log_profile() -> dict[str, Any]:
        """Re-read the configured log profile file and make it active.

        Cursors issued under the previous profile version stop validating.
        """
        return await reload_log_profile_impl(profiles=services.profiles)

    return mcp


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    config = load_config()
    _configure_logging(config.log_level)
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    build_server(config).run(transport="stdio")


if __name__ == "__main__":
    main()
