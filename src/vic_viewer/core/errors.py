"""Typed failures raised by the logs query pipeline.

Request-level failures are distinct types so the outer layer can tell a client
mistake (bad cursor) apart from a broken upstream.
"""

from __future__ import annotations

from typing import Any


class LogsQueryError(Exception):
    """Base class for request-level failures of a logs query."""

    code = "LOGS_QUERY_FAILED"
    status = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error body."""
        out: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "status": self.status,
        }
        if self.details:
            out["details"] = self.details
        return out


class InvalidCursorError(LogsQueryError):
    """Cursor failed to decode or does not belong to the current query context."""

    code = "INVALID_CURSOR"
    status = 400


class UpstreamRequestError(LogsQueryError):
    """The upstream log backend failed (timeout, non-2xx, connection error)."""

    code = "UPSTREAM_UNAVAILABLE"

    def __init__(self, message: str, *, status_code: int, source: str, body: str = "") -> None:
        super().__init__(message, details={"source": source, "upstreamStatus": status_code})
        self.status_code = status_code
        self.source = source
        self.body = body

    @property
    def status(self) -> int:  # type: ignore[override]
        return 504 if self.status_code == 504 else 502


class UpstreamPayloadError(LogsQueryError):
    """The upstream answered, but not with a record or an array of records."""

    code = "UPSTREAM_RESPONSE_INVALID"
    status = 502


class CursorDecodeError(ValueError):
    """A cursor string or structure could not be decoded into a LogsCursor."""


class ProfileLoadError(ValueError):
    """A log profile file is missing, malformed or has an unexpected id."""
