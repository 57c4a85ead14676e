"""Record source interface."""

from __future__ import annotations

from typing import Any, Protocol

from ..models import CursorDirection


class RecordSource(Protocol):
    """Upstream returning raw records for a query and closed time window.

    Returns a record or a list of records; failures raise UpstreamRequestError.
    """

    async def query_raw(
        self,
        query: str,
        start: str,
        end: str,
        limit: int,
        cursor_direction: CursorDirection | None = None,
    ) -> Any:
        """Fetch raw records between start and end (ISO-8601, inclusive)."""
        ...
