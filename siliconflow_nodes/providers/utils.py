from __future__ import annotations

from typing import Any

from ..utils.dicts import get_dict_value
from ..utils.errors import NoResponseError


def build_auth_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def extract_first_choice(data: dict[str, Any]) -> dict[str, Any]:
    """取 `choices[0]`；缺失时抛出 NoResponseError。"""
    choice = get_dict_value(data, "choices", 0)
    if isinstance(choice, dict):
        return choice
    raise NoResponseError(
        "No response received from the model",
        detail={"response_keys": sorted(data.keys())},
    )


def extract_message_content(choice: dict[str, Any]) -> str:
    """读取 `message.content`，缺失时返回空字符串。"""
    content = get_dict_value(choice, "message", "content")
    if isinstance(content, str):
        return content
    return ""
