"""VictoriaLogs HTTP record source.

Calls ``/select/logsql/query`` and returns the parsed JSON or NDJSON body.
Transport failures become UpstreamRequestError; nothing here retries.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from ..errors import UpstreamPayloadError, UpstreamRequestError
from ..models import CursorDirection

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

SOURCE_NAME = "victoria-logs"
QUERY_PATH = "/select/logsql/query"


def parse_query_response(body: str) -> Any:
    """Parse a JSON document or NDJSON stream; a blank body means no records."""
    text = body.strip()
    if not text:
        return []

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    records: list[Any] = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise UpstreamPayloadError(
                "Unable to parse VictoriaLogs response",
                details={"line": line_no, "error": str(exc)},
            ) from exc
    return records


class VictoriaLogsSource:
    """Async VictoriaLogs client holding one pooled httpx.AsyncClient.

    Usable as an async context manager or via connect()/close().
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def query_url(self) -> str:
        return f"{self._base_url}{QUERY_PATH}"

    async def connect(self) -> httpx.AsyncClient:
        """Open the connection pool (idempotent) and return the client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_s),
                transport=self._transport,
            )
            logger.debug("VictoriaLogsSource connected to %s", self._base_url)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> VictoriaLogsSource:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def query_raw(
        self,
        query: str,
        start: str,
        end: str,
        limit: int,
        cursor_direction: CursorDirection | None = None,
    ) -> Any:
        """Run a LogsQL query. The backend has no direction support; the hint is ignored."""
        client = await self.connect()

        params = {"query": query, "start": start, "end": end, "limit": str(limit)}
        try:
            response = await client.get(self.query_url, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("VictoriaLogs request timed out after %ss: %s", self._timeout_s, exc)
            raise UpstreamRequestError(
                f"Upstream request timeout after {int(self._timeout_s * 1000)}ms",
                status_code=504,
                source=SOURCE_NAME,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("VictoriaLogs request failed: %s", exc)
            raise UpstreamRequestError(
                "Upstream request failed",
                status_code=502,
                source=SOURCE_NAME,
                body=str(exc),
            ) from exc

        if response.is_error:
            logger.warning("VictoriaLogs returned status %s", response.status_code)
            raise UpstreamRequestError(
                f"Upstream request failed with status {response.status_code}",
                status_code=response.status_code,
                source=SOURCE_NAME,
                body=response.text,
            )

        return parse_query_response(response.text)
