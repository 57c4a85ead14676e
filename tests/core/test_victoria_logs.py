from __future__ import annotations

import json

import httpx
import pytest

from vic_viewer.core.errors import UpstreamPayloadError, UpstreamRequestError
from vic_viewer.core.models import CursorDirection
from vic_viewer.core.sources.victoria_logs import VictoriaLogsSource, parse_query_response

START = "2026-02-14T19:00:00.000Z"
END = "2026-02-14T20:00:00.000Z"


def _source(handler) -> VictoriaLogsSource:
    return VictoriaLogsSource("http://vl.test:9428/", transport=httpx.MockTransport(handler))


def test_parse_query_response_json_array() -> None:
    assert parse_query_response('[{"_msg": "a"}, {"_msg": "b"}]') == [{"_msg": "a"}, {"_msg": "b"}]


def test_parse_query_response_ndjson() -> None:
    body = '{"_msg": "a"}\n\n{"_msg": "b"}\n'
    assert parse_query_response(body) == [{"_msg": "a"}, {"_msg": "b"}]


def test_parse_query_response_blank_is_empty() -> None:
    assert parse_query_response("  \n") == []


def test_parse_query_response_invalid() -> None:
    with pytest.raises(UpstreamPayloadError) as exc_info:
        parse_query_response('{"_msg": "a"}\nnot json\n')
    assert exc_info.value.details["line"] == 2


@pytest.mark.asyncio
async def test_query_raw_sends_logsql_params() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = "\n".join(json.dumps({"_time": START, "_msg": str(i)}) for i in range(2))
        return httpx.Response(200, text=body)

    async with _source(handler) as source:
        records = await source.query_raw("error", START, END, 5, CursorDirection.OLDER)

    assert [r["_msg"] for r in records] == ["0", "1"]
    request = seen[0]
    assert request.url.path == "/select/logsql/query"
    assert request.url.host == "vl.test"
    assert request.url.params["query"] == "error"
    assert request.url.params["start"] == START
    assert request.url.params["end"] == END
    assert request.url.params["limit"] == "5"


@pytest.mark.asyncio
async def test_connect_returns_one_client_until_closed() -> None:
    source = _source(lambda request: httpx.Response(200, text=""))

    client = await source.connect()
    assert await source.connect() is client
    assert await source.query_raw("*", START, END, 1) == []

    await source.close()
    reopened = await source.connect()
    assert reopened is not client
    await source.close()


@pytest.mark.asyncio
async def test_query_raw_single_object_passthrough() -> None:
    source = _source(lambda request: httpx.Response(200, json={"_time": START, "_msg": "only"}))
    try:
        assert await source.query_raw("*", START, END, 1) == {"_time": START, "_msg": "only"}
    finally:
        await source.close()


@pytest.mark.asyncio
async def test_query_raw_error_status() -> None:
    source = _source(lambda request: httpx.Response(503, text="overloaded"))
    try:
        with pytest.raises(UpstreamRequestError) as exc_info:
            await source.query_raw("*", START, END, 10)
    finally:
        await source.close()

    err = exc_info.value
    assert err.status_code == 503
    assert err.status == 502
    assert err.body == "overloaded"
    assert err.to_dict()["details"] == {"source": "victoria-logs", "upstreamStatus": 503}


@pytest.mark.asyncio
async def test_query_raw_timeout_maps_to_504() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    source = _source(handler)
    try:
        with pytest.raises(UpstreamRequestError) as exc_info:
            await source.query_raw("*", START, END, 10)
    finally:
        await source.close()

    assert exc_info.value.status_code == 504
    assert exc_info.value.status == 504
    assert exc_info.value.code == "UPSTREAM_UNAVAILABLE"


@pytest.mark.asyncio
async def test_query_raw_connection_error_maps_to_502() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    source = _source(handler)
    try:
        with pytest.raises(UpstreamRequestError) as exc_info:
            await source.query_raw("*", START, END, 10)
    finally:
        await source.close()

    assert exc_info.value.status_code == 502


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        VictoriaLogsSource("http://localhost:9428", timeout_s=0)
