"""SiliconFlow chat model 适配器"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from ..utils.dicts import get_dict_value
from ..utils.errors import ValidationError
from .base import ChatModel
from .client import SiliconFlowClient
from .config import read_chat_model_options, read_credentials
from .schema import (
    ChatModelOptions,
    ChatModelRequest,
    ChatReply,
    ModelCapabilities,
    SiliconFlowCredentials,
    ToolSpec,
)
from .utils import extract_first_choice, extract_message_content

REASONING_MODEL_KEYWORDS = ("QwQ", "R1")
DEFAULT_CHAT_MODEL = "THUDM/glm-4-plus"

ToolLike = ToolSpec | Mapping[str, Any]


def is_reasoning_model(model: str) -> bool:
    return any(keyword in model for keyword in REASONING_MODEL_KEYWORDS)


def to_openai_tool(tool: ToolLike) -> dict[str, Any]:
    """
    将工具定义统一为 OpenAI function tool 结构。

    支持输入：
    - `ToolSpec`
    - 完整结构 `{"type": "function", "function": {...}}`
    - 裸 function 结构 `{"name": ..., "description": ..., "parameters": ...}`
    """
    if isinstance(tool, ToolSpec):
        name, description, parameters = tool.name, tool.description, tool.parameters
    elif isinstance(tool, Mapping):
        function = tool.get("function") if tool.get("type") == "function" else tool
        if not isinstance(function, Mapping):
            raise ValidationError("Tool definition must contain a function object.")
        name = function.get("name")
        description = function.get("description") or ""
        parameters = function.get("parameters") or {"type": "object", "properties": {}}
    else:
        raise ValidationError(f"Unsupported tool definition: {type(tool).__name__}")

    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Tool name must not be empty.")
    return {
        "type": "function",
        "function": {
            "name": name.strip(),
            "description": description,
            "parameters": dict(parameters),
        },
    }


@dataclass(slots=True)
class SiliconFlowChatModel(ChatModel):
    credentials: SiliconFlowCredentials
    model: str = DEFAULT_CHAT_MODEL
    options: ChatModelOptions = field(default_factory=ChatModelOptions)
    provider: str = "siliconflow"
    client: SiliconFlowClient = field(init=False, repr=False)

    capabilities: ClassVar[ModelCapabilities] = ModelCapabilities(
        supports_tools=True,
        supports_reasoning=True,
        supports_vision=False,
    )

    def __post_init__(self) -> None:
        if not self.model.strip():
            raise ValidationError("Chat model name must not be empty.")
        if self.options.timeout_ms <= 0:
            raise ValidationError("timeout must be > 0 ms.")
        self.client = SiliconFlowClient.from_credentials(
            self.credentials,
            timeout_sec=self.options.timeout_ms / 1000,
            max_retries=self.options.max_retries,
        )

    def build_payload(
        self,
        request: ChatModelRequest,
        *,
        tools: tuple[dict[str, Any], ...] = (),
    ) -> dict[str, Any]:
        """构造 chat/completions 请求体。"""
        if not request.messages:
            raise ValidationError("At least one message must be provided.")
        options = self.options
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": list(request.messages),
            "temperature": options.temperature,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
        }
        if options.max_tokens > 0:
            payload["max_tokens"] = options.max_tokens
        if options.top_k is not None:
            payload["top_k"] = options.top_k
        # 仅推理模型接受 thinking 参数，其余模型忽略开关。
        if options.enable_thinking and is_reasoning_model(self.model):
            payload["enable_thinking"] = True
            payload["thinking_budget"] = options.thinking_budget or 4096
        if request.stop:
            payload["stop"] = list(request.stop)
        if tools:
            payload["tools"] = list(tools)
            if request.tool_choice is not None:
                payload["tool_choice"] = request.tool_choice
        return payload

    async def complete(
        self,
        request: ChatModelRequest,
        *,
        tools: tuple[dict[str, Any], ...] = (),
    ) -> ChatReply:
        payload = self.build_payload(request, tools=tools)
        response = await self.client.chat_completions(payload)
        return parse_chat_reply(response["data"], elapsed_ms=response["elapsed_ms"])


@dataclass(slots=True, frozen=True)
class BoundChatModel(ChatModel):
    """chat model 与一组工具的不可变组合，由 `bind_tools` 生成。"""

    model_ref: SiliconFlowChatModel
    tools: tuple[dict[str, Any], ...] = ()

    capabilities: ClassVar[ModelCapabilities] = SiliconFlowChatModel.capabilities

    @property
    def provider(self) -> str:
        return self.model_ref.provider

    @property
    def model(self) -> str:
        return self.model_ref.model

    @property
    def tool_names(self) -> list[str]:
        return [tool["function"]["name"] for tool in self.tools]

    async def complete(self, request: ChatModelRequest) -> ChatReply:
        return await self.model_ref.complete(request, tools=self.tools)


def bind_tools(
    model: SiliconFlowChatModel | BoundChatModel,
    tools: Iterable[ToolLike],
) -> BoundChatModel:
    """返回绑定了工具的新对象；已绑定的模型会在原有工具后追加，不修改入参。"""
    if not model.capabilities.supports_tools:
        raise ValidationError(f"Model {model.model} does not support tools.")
    converted = tuple(to_openai_tool(tool) for tool in tools)
    if isinstance(model, BoundChatModel):
        return BoundChatModel(model_ref=model.model_ref, tools=model.tools + converted)
    return BoundChatModel(model_ref=model, tools=converted)


def parse_chat_reply(data: dict[str, Any], *, elapsed_ms: int | None = None) -> ChatReply:
    """将 chat/completions 响应整形为 ChatReply；没有 choice 时抛出 NoResponseError。"""
    choice = extract_first_choice(data)
    reasoning = get_dict_value(choice, "message", "reasoning_content")
    tool_calls = get_dict_value(choice, "message", "tool_calls")
    usage = data.get("usage")
    return ChatReply(
        content=extract_message_content(choice),
        model=str(data.get("model") or ""),
        finish_reason=choice.get("finish_reason"),
        reasoning=reasoning if isinstance(reasoning, str) and reasoning else None,
        tool_calls=list(tool_calls) if isinstance(tool_calls, list) else [],
        usage=usage if isinstance(usage, dict) else None,
        elapsed_ms=elapsed_ms,
        raw_response=data,
    )


def build_chat_model(
    raw_credentials: Any,
    model: str,
    raw_options: Any = None,
) -> SiliconFlowChatModel:
    """宿主 supply-data 入口：由凭据、模型名与 options 集合构建适配器。"""
    return SiliconFlowChatModel(
        credentials=read_credentials(raw_credentials),
        model=model,
        options=read_chat_model_options(raw_options),
    )
