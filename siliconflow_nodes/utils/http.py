from __future__ import annotations

import asyncio
import json
import time
from typing import Any, TypedDict

import aiohttp

from .errors import NetworkError, NodeErrorCode, RemoteApiError, ValidationError
from .log import get_structured_logger
from .sse import aggregate_chat_completion_stream, is_event_stream

structured_log = get_structured_logger(__name__)


class JsonSuccessResponse(TypedDict):
    data: dict[str, Any]
    elapsed_ms: int


def _mask_headers(headers: dict[str, str]) -> dict[str, str]:
    secret_keys = {"authorization", "cookie", "set-cookie", "x-api-key"}
    masked: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in secret_keys:
            masked[key] = "<redacted>"
            continue
        masked[key] = value
    return masked


def extract_remote_error_message(raw_text: str) -> str:
    """
    从错误响应体中提取远端的结构化错误信息。

    兼容三种形态：
    - `{"message": "..."}`（SiliconFlow 常见形态，通常同时带 `code`）
    - `{"error": {"message": "..."}}`（OpenAI 兼容形态）
    - `{"error": "..."}`
    无法识别时返回空字符串。
    """
    try:
        data = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError):
        return ""
    if not isinstance(data, dict):
        return ""
    error = data.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"].strip()
    if isinstance(error, str):
        return error.strip()
    message = data.get("message")
    if isinstance(message, str):
        return message.strip()
    return ""


async def _request_json(
    method: str,
    *,
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any] | None = None,
    timeout_sec: float = 120,
    source: str = "Upstream",
) -> JsonSuccessResponse:
    if timeout_sec <= 0:
        raise ValidationError(
            "timeout_sec must be > 0.",
            detail={
                "source": source,
                "url": url,
                "timeout_sec": timeout_sec,
            },
        )

    masked_headers = _mask_headers(headers)
    started_at = time.perf_counter()
    request_error_detail = {
        "source": source,
        "method": method,
        "url": url,
        "timeout_sec": timeout_sec,
        "headers": masked_headers,
        "payload": payload,
    }
    structured_log.debug("http.request", request_error_detail)

    # 使用 total timeout，覆盖连接、读写和响应等待总耗时。
    timeout = aiohttp.ClientTimeout(total=timeout_sec)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(
                method, url, json=payload, headers=headers
            ) as response:
                raw_text = await response.text()
                content_type = response.headers.get("Content-Type", "")
                masked_response_headers = _mask_headers(dict(response.headers))
                elapsed_ms = int((time.perf_counter() - started_at) * 1000)
                structured_log.debug(
                    "http.response",
                    {
                        "elapsed_ms": elapsed_ms,
                        "status_code": response.status,
                        "headers": masked_response_headers,
                        "body": raw_text,
                    },
                )
                # HTTP 错误由状态码判断，保留响应片段与远端错误信息用于问题定位。
                if response.status >= 400:
                    remote_message = extract_remote_error_message(raw_text)
                    message = f"{source} HTTP {response.status}"
                    if remote_message:
                        message = f"{message}: {remote_message}"
                    raise RemoteApiError(
                        message,
                        status_code=response.status,
                        remote_message=remote_message,
                        retryable=(response.status >= 500 or response.status == 429),
                        detail={
                            **request_error_detail,
                            "elapsed_ms": elapsed_ms,
                            "status_code": response.status,
                            "headers": masked_response_headers,
                            "body": raw_text,
                        },
                    )

    except asyncio.TimeoutError as exc:
        elapsed_ms = int((time.perf_counter() - started_at) * 1000)
        raise NetworkError(
            f"{source} request timed out.",
            code=NodeErrorCode.TIMEOUT,
            detail={**request_error_detail, "elapsed_ms": elapsed_ms},
        ) from exc
    except aiohttp.ClientError as exc:
        elapsed_ms = int((time.perf_counter() - started_at) * 1000)
        raise NetworkError(
            f"{source} request failed: {exc}",
            detail={
                **request_error_detail,
                "elapsed_ms": elapsed_ms,
                "client_error": str(exc),
                "client_error_type": type(exc).__name__,
            },
        ) from exc

    # 网络链路成功后再解析 JSON，便于区分“传输错误”与“响应格式错误”。
    try:
        if is_event_stream(content_type):
            data = aggregate_chat_completion_stream(raw_text)
        else:
            data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise RemoteApiError(
            f"{source} returned invalid JSON.",
            status_code=response.status,
            retryable=True,
            detail={
                **request_error_detail,
                "elapsed_ms": int((time.perf_counter() - started_at) * 1000),
                "body": raw_text,
            },
        ) from exc

    if not isinstance(data, dict):
        raise RemoteApiError(
            f"{source} response must be a JSON object.",
            status_code=response.status,
            retryable=True,
            detail={
                **request_error_detail,
                "elapsed_ms": int((time.perf_counter() - started_at) * 1000),
                "response_type": type(data).__name__,
            },
        )

    elapsed_ms = int((time.perf_counter() - started_at) * 1000)
    result: JsonSuccessResponse = {
        "data": data,
        "elapsed_ms": elapsed_ms,
    }

    structured_log.debug(
        "http.response",
        result,
    )

    return result


async def post_json(
    *,
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str],
    timeout_sec: float = 120,
    source: str = "Upstream",
) -> JsonSuccessResponse:
    """发送 JSON POST 请求并返回结果对象。

    约定：
    - 传输层错误映射为 `NetworkError`（超时时 code=TIMEOUT）
    - 非 2xx HTTP 响应映射为 `RemoteApiError`，附带远端错误信息
    - `text/event-stream` 响应会被聚合为单个 chat.completion 对象
    - 成功响应必须是 JSON object（dict）
    - 成功返回结构：`{"data": <json_object>, "elapsed_ms": <int>}`
    """
    return await _request_json(
        "POST",
        url=url,
        headers=headers,
        payload=payload,
        timeout_sec=timeout_sec,
        source=source,
    )


async def get_json(
    *,
    url: str,
    headers: dict[str, str],
    timeout_sec: float = 120,
    source: str = "Upstream",
) -> JsonSuccessResponse:
    """发送 GET 请求并返回 JSON 结果对象，错误映射规则同 `post_json`。"""
    return await _request_json(
        "GET",
        url=url,
        headers=headers,
        timeout_sec=timeout_sec,
        source=source,
    )
