from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .schema import SILICONFLOW_DEFAULT_BASE_URL, ChatModelOptions, SiliconFlowCredentials

CREDENTIAL_API_KEY_KEY = "apiKey"
CREDENTIAL_BASE_URL_KEY = "baseUrl"

# 宿主 options 集合中的 camelCase 键 => ChatModelOptions 字段
CHAT_MODEL_OPTION_KEYS: dict[str, str] = {
    "frequencyPenalty": "frequency_penalty",
    "maxTokens": "max_tokens",
    "presencePenalty": "presence_penalty",
    "temperature": "temperature",
    "timeout": "timeout_ms",
    "maxRetries": "max_retries",
    "topP": "top_p",
    "topK": "top_k",
    "enableThinking": "enable_thinking",
    "thinkingBudget": "thinking_budget",
}


def _require_mapping(raw_config: Any, name: str) -> Mapping[str, Any]:
    """确保原始配置是键值映射。"""
    if not isinstance(raw_config, Mapping):
        raise TypeError(f"{name} must be a mapping object.")
    return raw_config


def _require_keys(cfg: Mapping[str, Any], required: tuple[str, ...]) -> None:
    """仅校验必填字段是否存在。"""
    missing = [key for key in required if key not in cfg]
    if missing:
        raise KeyError(f"Missing required credential keys: {', '.join(missing)}")


def read_credentials(raw_config: Any) -> SiliconFlowCredentials:
    """读取宿主凭据 `{apiKey, baseUrl}`；baseUrl 缺省或为空时回退默认地址。"""
    cfg = _require_mapping(raw_config, "Credentials")
    _require_keys(cfg, (CREDENTIAL_API_KEY_KEY,))
    base_url = str(cfg.get(CREDENTIAL_BASE_URL_KEY) or "").strip()
    return SiliconFlowCredentials(
        api_key=str(cfg[CREDENTIAL_API_KEY_KEY]),
        base_url=base_url or SILICONFLOW_DEFAULT_BASE_URL,
    )


def read_chat_model_options(raw_options: Any) -> ChatModelOptions:
    """读取 chat model 的 options 集合；未出现的键保留默认值，未知键忽略。"""
    if raw_options is None:
        return ChatModelOptions()
    cfg = _require_mapping(raw_options, "Chat model options")
    payload = {
        field_name: cfg[key]
        for key, field_name in CHAT_MODEL_OPTION_KEYS.items()
        if cfg.get(key) is not None
    }
    return ChatModelOptions(**payload)
