from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from vic_viewer.core.config import AppConfig, load_config
from vic_viewer.core.cursor import CursorTransportMode
from vic_viewer.core.pagination import DEFAULT_LIMIT, LogsPaginator
from vic_viewer.core.profiles import ProfileStore
from vic_viewer.core.sources import RecordSource, SyntheticProfile, SyntheticRecordSource, VictoriaLogsSource
from vic_viewer.core.time_window import resolve_time_window, to_iso_millis
from vic_viewer.tools.logs import query_logs_impl


def _build_source(args: argparse.Namespace, config: AppConfig) -> RecordSource:
    if args.synthetic:
        return SyntheticRecordSource(args.synthetic, args.seed or config.synthetic_seed)
    if config.logs_data_mode == "synthetic":
        return SyntheticRecordSource(config.synthetic_profile, args.seed or config.synthetic_seed)
    return VictoriaLogsSource(args.url or config.victoria_logs_url, timeout_s=config.vicstack_timeout_ms / 1000)


async def _run(args: argparse.Namespace, config: AppConfig) -> dict[str, Any]:
    since, until = resolve_time_window(
        since=args.since,
        until=args.until,
        date_=args.date,
        hour=args.hour,
        hours_lookback=args.hours,
    )
    profiles = ProfileStore.from_path(
        args.profile or config.log_profile_path, expected_profile_id=config.log_profile_id
    )
    source = _build_source(args, config)
    paginator = LogsPaginator(source, profiles.get_active_profile, cursor_mode=CursorTransportMode.ENCODED)
    try:
        return await query_logs_impl(
            paginator=paginator,
            query=args.query,
            start=to_iso_millis(since),
            end=to_iso_millis(until),
            limit=args.limit,
            cursor=args.cursor,
            include_raw=args.include_raw,
        )
    finally:
        if isinstance(source, VictoriaLogsSource):
            await source.close()


def main() -> None:
    p = argparse.ArgumentParser(description="Fetch one page of logs in ascending time order.")
    p.add_argument("query", nargs="?", default="*", help='LogsQL query (default: "*")')
    p.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Rows per page (1..500)")
    p.add_argument("--cursor", default=None, help="Cursor printed by a previous run (repeat its --since/--until)")
    p.add_argument("--url", default=None, help="VictoriaLogs base URL (default: VICTORIA_LOGS_URL)")
    p.add_argument("--profile", default=None, help="Log profile YAML (default: LOG_PROFILE_PATH)")
    p.add_argument(
        "--synthetic",
        choices=[sp.value for sp in SyntheticProfile],
        default=None,
        help="Query the synthetic generator instead of VictoriaLogs",
    )
    p.add_argument("--seed", default=None, help="Synthetic seed (default: SYNTHETIC_LOGS_SEED)")
    p.add_argument("--json", dest="as_json", action="store_true", help="Print the page as JSON")
    p.add_argument("--raw", dest="include_raw", action="store_true", help="Include raw records (JSON output)")
    p.set_defaults(include_raw=False)

    # Lookback (simple mode)
    p.add_argument("--hours", type=int, default=None, help="Look back N hours (default: 1)")

    # Time window (advanced mode)
    p.add_argument("--since", default=None, help="ISO8601 start time (assumes UTC if tz missing)")
    p.add_argument("--until", default=None, help="ISO8601 end time (assumes UTC if tz missing)")
    p.add_argument("--date", default=None, help="YYYY-MM-DD (UTC day)")
    p.add_argument("--hour", default=None, help="YYYY-MM-DDTHH (UTC hour)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log pagination details to stderr")

    args = p.parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config()
        out = asyncio.run(_run(args, config))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    if args.as_json:
        print(json.dumps(out, indent=2, ensure_ascii=False))
        return

    if "error" in out:
        err = out["error"]
        print(f"Error: {err['code']}: {err['message']}", file=sys.stderr)
        raise SystemExit(1)

    for row in out["rows"]:
        level = row.get("severity") or "-"
        service = row.get("serviceName") or "-"
        print(f"{row['time']} [{level}] {service}: {row.get('message') or ''}")

    info = out["pageInfo"]
    print(f"\nReturned {len(out['rows'])} rows.")
    if info.get("olderCursor"):
        print(f"older: {info['olderCursor']}")
    if info.get("newerCursor"):
        print(f"newer: {info['newerCursor']}")


if __name__ == "__main__":
    main()
