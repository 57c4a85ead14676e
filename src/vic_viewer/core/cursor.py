"""Cursor construction and transport encoding.

A cursor is an opaque, stateless capability: base64url of a small JSON document
carrying the resume anchor, the window, and a hash of the query context it was
produced under.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import ValidationError

from .errors import CursorDecodeError
from .models import CursorAnchor, CursorDirection, CursorTransport, CursorWindow, LogRow, LogsCursor
from .normalize import extract_sequence_hint, extract_stream_id
from .profiles.models import LogProfile

SORT_ALGORITHM_VERSION = "time-asc-seq-asc-key-asc"


class CursorTransportMode(str, Enum):
    """How cursors travel to and from clients."""

    ENCODED = "encoded"
    JSON = "json"


def _canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def build_query_hash(query: str, window: Mapping[str, str], profile_identity: Mapping[str, Any]) -> str:
    """SHA-256 fingerprint of query text, window and profile identity."""
    payload = {
        "query": query,
        "window": {"start": window["start"], "end": window["end"]},
        "profile": {"id": profile_identity["id"], "version": profile_identity["version"]},
        "sort": SORT_ALGORITHM_VERSION,
    }
    return hashlib.sha256(_canonical_json(payload).encode("utf-8")).hexdigest()


def build_cursor_from_row(
    direction: CursorDirection | str,
    row: LogRow,
    profile: LogProfile,
    query_hash: str,
    window: Mapping[str, str],
) -> LogsCursor:
    """Cursor anchored on ``row``'s sort-relevant fields."""
    return LogsCursor(
        dir=CursorDirection(direction),
        queryHash=query_hash,
        window=CursorWindow(start=window["start"], end=window["end"]),
        anchor=CursorAnchor(
            time=row.time,
            streamId=extract_stream_id(row.raw, profile),
            tieBreaker=row.tie_breaker,
            sequence=extract_sequence_hint(row.raw, profile),
        ),
    )


def cursor_to_wire(cursor: LogsCursor) -> dict[str, Any]:
    """Structured wire form; an absent sequence is omitted rather than null."""
    data = cursor.model_dump(mode="json")
    if data["anchor"].get("sequence") is None:
        data["anchor"].pop("sequence", None)
    return data


def _validate(data: Any) -> LogsCursor:
    try:
        return LogsCursor.model_validate(data)
    except ValidationError as exc:
        raise CursorDecodeError(f"Cursor does not match the cursor schema: {exc}") from exc


def encode_cursor(cursor: LogsCursor) -> str:
    text = _canonical_json(cursor_to_wire(cursor))
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(encoded: str) -> LogsCursor:
    """Decode an opaque cursor; any malformed input raises CursorDecodeError."""
    if not encoded:
        raise CursorDecodeError("Cursor is empty")
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise CursorDecodeError(f"Cursor is not valid base64url JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CursorDecodeError("Cursor must decode to a JSON object")
    return _validate(data)


def parse_cursor_input(value: Any, mode: CursorTransportMode) -> LogsCursor:
    """Turn a client-supplied cursor into a LogsCursor for the given transport mode."""
    if mode is CursorTransportMode.JSON:
        if isinstance(value, LogsCursor):
            return _validate(cursor_to_wire(value))
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError as exc:
                raise CursorDecodeError(f"Cursor is not valid JSON: {exc}") from exc
        if not isinstance(value, Mapping):
            raise CursorDecodeError("Cursor must be a JSON object")
        return _validate(dict(value))

    if not isinstance(value, str):
        raise CursorDecodeError("Cursor must be an encoded string")
    return decode_cursor(value)


def serialize_cursor(cursor: LogsCursor, mode: CursorTransportMode) -> CursorTransport:
    """Cursor in the transport form clients receive."""
    if mode is CursorTransportMode.JSON:
        return _validate(cursor_to_wire(cursor))
    return encode_cursor(cursor)
