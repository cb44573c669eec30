from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SILICONFLOW_DEFAULT_BASE_URL = "https://api.siliconflow.cn/v1"


@dataclass(slots=True)
class SiliconFlowCredentials:
    api_key: str
    """SiliconFlow API 密钥，以 Bearer token 原样转发"""
    base_url: str = SILICONFLOW_DEFAULT_BASE_URL
    """API 基础地址"""


@dataclass(slots=True)
class ChatModelOptions:
    """chat model 适配器选项，默认值与宿主表单默认值一致。"""

    temperature: float = 0.7
    top_p: float = 1
    frequency_penalty: float = 0
    presence_penalty: float = 0
    max_tokens: int = -1
    """<= 0 表示不限制，不写入请求"""
    top_k: int | None = None
    enable_thinking: bool = False
    thinking_budget: int = 4096
    timeout_ms: int = 60000
    max_retries: int = 2


@dataclass(slots=True, frozen=True)
class ModelCapabilities:
    supports_tools: bool = True
    supports_reasoning: bool = True
    supports_vision: bool = False


@dataclass(slots=True, frozen=True)
class ToolSpec:
    name: str
    description: str = ""
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


@dataclass(slots=True)
class ChatModelRequest:
    messages: list[dict[str, Any]]
    """OpenAI 兼容消息列表，可包含 assistant tool_calls 与 tool 消息"""
    stop: list[str] | None = None
    tool_choice: str | dict[str, Any] | None = None


@dataclass(slots=True)
class ChatReply:
    content: str
    model: str = ""
    finish_reason: str | None = None
    reasoning: str | None = None
    tool_calls: list[dict[str, Any]] = field(default_factory=list)
    usage: dict[str, Any] | None = None
    elapsed_ms: int | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)
