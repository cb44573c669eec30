from __future__ import annotations

import asyncio
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from siliconflow_nodes.utils.errors import (
    NetworkError,
    NodeErrorCode,
    RemoteApiError,
    ValidationError,
)
from siliconflow_nodes.utils.http import extract_remote_error_message, get_json, post_json

HEADERS = {"Authorization": "Bearer test-key", "Content-Type": "application/json"}


async def _echo(request: web.Request) -> web.Response:
    body = await request.json()
    return web.json_response(
        {"received": body, "authorization": request.headers.get("Authorization")}
    )


async def _models(request: web.Request) -> web.Response:
    return web.json_response(
        {"data": [{"id": "m"}], "sub_type": request.query.get("sub_type")}
    )


async def _bad_request(_: web.Request) -> web.Response:
    return web.json_response(
        {"code": 20015, "message": "Model does not exist.", "data": None},
        status=400,
    )


async def _server_error(_: web.Request) -> web.Response:
    return web.Response(text="upstream exploded", status=503)


async def _invalid_json(_: web.Request) -> web.Response:
    return web.Response(text="not json", content_type="application/json")


async def _json_list(_: web.Request) -> web.Response:
    return web.json_response([1, 2, 3])


async def _slow(_: web.Request) -> web.Response:
    await asyncio.sleep(1)
    return web.json_response({})


async def _stream(_: web.Request) -> web.Response:
    chunks = [
        {"id": "c1", "model": "m", "choices": [{"index": 0, "delta": {"content": "Hel"}}]},
        {
            "id": "c1",
            "model": "m",
            "choices": [{"index": 0, "delta": {"content": "lo"}, "finish_reason": "stop"}],
            "usage": {"total_tokens": 5},
        },
    ]
    text = "".join(f"data: {json.dumps(chunk)}\n\n" for chunk in chunks) + "data: [DONE]\n\n"
    return web.Response(text=text, content_type="text/event-stream")


def _build_app() -> web.Application:
    app = web.Application()
    app.router.add_post("/echo", _echo)
    app.router.add_get("/models", _models)
    app.router.add_post("/bad", _bad_request)
    app.router.add_post("/error", _server_error)
    app.router.add_post("/invalid", _invalid_json)
    app.router.add_post("/list", _json_list)
    app.router.add_post("/slow", _slow)
    app.router.add_post("/stream", _stream)
    return app


@pytest.mark.asyncio
async def test_post_json_success() -> None:
    """验证：成功响应返回 data 与 elapsed_ms，并转发请求头。"""
    async with TestServer(_build_app()) as server:
        result = await post_json(
            url=str(server.make_url("/echo")),
            payload={"model": "m"},
            headers=HEADERS,
            timeout_sec=5,
        )

    assert result["data"] == {"received": {"model": "m"}, "authorization": "Bearer test-key"}
    assert result["elapsed_ms"] >= 0


@pytest.mark.asyncio
async def test_get_json_success() -> None:
    """验证：GET 请求携带查询参数并解析 JSON。"""
    async with TestServer(_build_app()) as server:
        result = await get_json(
            url=str(server.make_url("/models?sub_type=chat")),
            headers=HEADERS,
            timeout_sec=5,
        )

    assert result["data"]["sub_type"] == "chat"


@pytest.mark.asyncio
async def test_post_json_http_error_carries_remote_message() -> None:
    """验证：4xx 映射为不可重试的 RemoteApiError，并携带远端错误信息。"""
    async with TestServer(_build_app()) as server:
        with pytest.raises(RemoteApiError) as exc_info:
            await post_json(
                url=str(server.make_url("/bad")),
                payload={},
                headers=HEADERS,
                source="SiliconFlow",
            )

    error = exc_info.value
    assert error.message == "SiliconFlow HTTP 400: Model does not exist."
    assert error.status_code == 400
    assert error.remote_message == "Model does not exist."
    assert error.retryable is False
    assert error.detail["headers"]
    assert "test-key" not in json.dumps(error.detail)


@pytest.mark.asyncio
async def test_post_json_server_error_is_retryable() -> None:
    """验证：5xx 映射为可重试的 RemoteApiError。"""
    async with TestServer(_build_app()) as server:
        with pytest.raises(RemoteApiError) as exc_info:
            await post_json(url=str(server.make_url("/error")), payload={}, headers=HEADERS)

    assert exc_info.value.status_code == 503
    assert exc_info.value.retryable is True
    assert exc_info.value.remote_message == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "message"),
    [("/invalid", "returned invalid JSON"), ("/list", "must be a JSON object")],
)
async def test_post_json_malformed_body(path: str, message: str) -> None:
    """验证：非法 JSON 或非对象响应映射为 RemoteApiError。"""
    async with TestServer(_build_app()) as server:
        with pytest.raises(RemoteApiError, match=message):
            await post_json(url=str(server.make_url(path)), payload={}, headers=HEADERS)


@pytest.mark.asyncio
async def test_post_json_timeout() -> None:
    """验证：超时映射为 code=TIMEOUT 的 NetworkError。"""
    async with TestServer(_build_app()) as server:
        with pytest.raises(NetworkError) as exc_info:
            await post_json(
                url=str(server.make_url("/slow")),
                payload={},
                headers=HEADERS,
                timeout_sec=0.1,
            )

    assert exc_info.value.code == NodeErrorCode.TIMEOUT
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_post_json_connection_error() -> None:
    """验证：连接失败映射为 NetworkError。"""
    async with TestServer(_build_app()) as server:
        url = str(server.make_url("/echo"))

    with pytest.raises(NetworkError) as exc_info:
        await post_json(url=url, payload={}, headers=HEADERS, timeout_sec=5)

    assert exc_info.value.code == NodeErrorCode.NETWORK_ERROR


@pytest.mark.asyncio
async def test_post_json_aggregates_event_stream() -> None:
    """验证：text/event-stream 响应被聚合为一个 chat.completion 对象。"""
    async with TestServer(_build_app()) as server:
        result = await post_json(url=str(server.make_url("/stream")), payload={}, headers=HEADERS)

    data = result["data"]
    assert data["choices"][0]["message"]["content"] == "Hello"
    assert data["choices"][0]["finish_reason"] == "stop"
    assert data["usage"] == {"total_tokens": 5}


@pytest.mark.asyncio
async def test_post_json_rejects_non_positive_timeout() -> None:
    """验证：timeout_sec <= 0 时在请求前抛出 ValidationError。"""
    with pytest.raises(ValidationError):
        await post_json(url="http://127.0.0.1:1/x", payload={}, headers=HEADERS, timeout_sec=0)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('{"code": 20012, "message": "Model disabled."}', "Model disabled."),
        ('{"error": {"message": "Invalid token"}}', "Invalid token"),
        ('{"error": "Rate limited"}', "Rate limited"),
        ("<html>bad gateway</html>", ""),
        ("[1, 2]", ""),
    ],
)
def test_extract_remote_error_message(raw: str, expected: str) -> None:
    """验证：兼容三种远端错误结构，无法识别时返回空字符串。"""
    assert extract_remote_error_message(raw) == expected
