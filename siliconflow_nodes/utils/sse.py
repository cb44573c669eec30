"""
SSE (Server-Sent Events) 聚合

`stream=true` 时 chat/completions 以 SSE 分片返回；这里把分片合并为一个
非流式 chat.completion 对象，使下游整形逻辑无需区分两种响应。
"""

from __future__ import annotations

import json
from typing import Any

SSE_DONE_MARKER = "[DONE]"


def is_event_stream(content_type: str) -> bool:
    """判断响应 Content-Type 是否为 SSE。"""
    return content_type.split(";", 1)[0].strip().lower() == "text/event-stream"


def iter_sse_payloads(raw_text: str) -> list[dict[str, Any]]:
    """解析 SSE 文本中的全部 `data:` JSON 片段；遇到 `[DONE]` 停止。"""
    payloads: list[dict[str, Any]] = []
    for line in raw_text.splitlines():
        stripped = line.strip()
        if not stripped.startswith("data:"):
            continue
        data = stripped.removeprefix("data:").strip()
        if not data:
            continue
        if data == SSE_DONE_MARKER:
            break
        chunk = json.loads(data)
        if isinstance(chunk, dict):
            payloads.append(chunk)
    return payloads


def _merge_tool_call_delta(
    tool_calls: dict[int, dict[str, Any]],
    delta: dict[str, Any],
) -> None:
    index = delta.get("index", len(tool_calls))
    current = tool_calls.setdefault(
        index,
        {
            "id": "",
            "type": "function",
            "function": {"name": "", "arguments": ""},
        },
    )
    if delta.get("id"):
        current["id"] = delta["id"]
    if delta.get("type"):
        current["type"] = delta["type"]
    function = delta.get("function") or {}
    if function.get("name"):
        current["function"]["name"] += function["name"]
    if function.get("arguments"):
        current["function"]["arguments"] += function["arguments"]


def aggregate_chat_completion_stream(raw_text: str) -> dict[str, Any]:
    """
    将 chat/completions 的 SSE 文本合并为一个 chat.completion 对象。

    - content / reasoning_content 按分片顺序拼接
    - tool_calls 按 index 合并，arguments 逐片拼接
    - finish_reason / usage / model / id 取最后一次出现的非空值
    - JSON 片段非法时抛出 `json.JSONDecodeError`
    """
    result: dict[str, Any] = {"object": "chat.completion"}
    choices: dict[int, dict[str, Any]] = {}

    for chunk in iter_sse_payloads(raw_text):
        for key in ("id", "model", "created"):
            if chunk.get(key):
                result[key] = chunk[key]
        if chunk.get("usage"):
            result["usage"] = chunk["usage"]

        for choice in chunk.get("choices") or []:
            if not isinstance(choice, dict):
                continue
            index = choice.get("index", 0)
            state = choices.setdefault(
                index,
                {
                    "content": [],
                    "reasoning": [],
                    "tool_calls": {},
                    "finish_reason": None,
                },
            )
            delta = choice.get("delta") or {}
            if delta.get("content"):
                state["content"].append(delta["content"])
            if delta.get("reasoning_content"):
                state["reasoning"].append(delta["reasoning_content"])
            for tool_call in delta.get("tool_calls") or []:
                if isinstance(tool_call, dict):
                    _merge_tool_call_delta(state["tool_calls"], tool_call)
            if choice.get("finish_reason"):
                state["finish_reason"] = choice["finish_reason"]

    merged_choices: list[dict[str, Any]] = []
    for index in sorted(choices):
        state = choices[index]
        message: dict[str, Any] = {
            "role": "assistant",
            "content": "".join(state["content"]),
        }
        if state["reasoning"]:
            message["reasoning_content"] = "".join(state["reasoning"])
        if state["tool_calls"]:
            message["tool_calls"] = [
                state["tool_calls"][key] for key in sorted(state["tool_calls"])
            ]
        merged_choices.append(
            {
                "index": index,
                "message": message,
                "finish_reason": state["finish_reason"],
            }
        )

    result["choices"] = merged_choices
    return result
