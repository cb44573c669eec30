"""chat/complete：构造 chat/completions 请求并整形响应"""

from __future__ import annotations

from typing import Any

from ..providers.client import SiliconFlowClient
from ..providers.utils import extract_first_choice, extract_message_content
from ..utils.dicts import get_dict_value
from .keys import RAW_RESPONSE_KEY
from .schema import PASSTHROUGH_CHAT_PARAM_FIELDS, ChatConfig, ChatParams


def parse_stop(stop: str | None) -> list[str]:
    """逗号分隔，去空白并丢弃空片段。"""
    if not stop:
        return []
    return [segment.strip() for segment in stop.split(",") if segment.strip()]


def apply_chat_params(body: dict[str, Any], params: ChatParams) -> dict[str, Any]:
    """只写入用户显式设置的参数；chat 与 vision 共用。"""
    for name in PASSTHROUGH_CHAT_PARAM_FIELDS:
        value = getattr(params, name)
        if value is not None:
            body[name] = value
    stop = parse_stop(params.stop)
    if stop:
        body["stop"] = stop
    if params.response_format is not None:
        body["response_format"] = {"type": params.response_format}
    return body


def build_chat_request(config: ChatConfig) -> dict[str, Any]:
    if config.messages:
        messages = [message.to_dict() for message in config.messages]
    else:
        messages = [{"role": "user", "content": config.prompt}]
    body: dict[str, Any] = {"model": config.model, "messages": messages}
    return apply_chat_params(body, config.params)


def shape_chat_response(data: dict[str, Any], output_mode: str) -> Any:
    """
    simple 模式只返回消息文本；detailed 模式返回元数据与原始响应。

    reasoning / toolCalls 仅在响应中存在时出现。
    """
    choice = extract_first_choice(data)
    content = extract_message_content(choice)
    if output_mode == "simple":
        return content

    shaped: dict[str, Any] = {
        "message": content,
        "model": data.get("model"),
        "finishReason": choice.get("finish_reason"),
        "usage": data.get("usage"),
    }
    reasoning = get_dict_value(choice, "message", "reasoning_content")
    if reasoning:
        shaped["reasoning"] = reasoning
    tool_calls = get_dict_value(choice, "message", "tool_calls")
    if tool_calls:
        shaped["toolCalls"] = tool_calls
    shaped[RAW_RESPONSE_KEY] = data
    return shaped


async def process_chat(
    client: SiliconFlowClient,
    config: ChatConfig,
) -> tuple[Any, dict[str, Any]]:
    response = await client.chat_completions(build_chat_request(config))
    data = response["data"]
    return shape_chat_response(data, config.output_mode), data
