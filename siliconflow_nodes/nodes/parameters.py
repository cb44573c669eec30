"""从宿主上下文读取单个 item 的配置并构建 RequestConfig。"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..resources import ImageSource
from ..utils.errors import ValidationError
from . import keys
from .host import ExecuteContext
from .rerank import parse_documents
from .schema import (
    CHAT_PARAM_FIELDS,
    RERANK_PARAM_FIELDS,
    ChatConfig,
    ChatMessage,
    ChatParams,
    EmbeddingsConfig,
    RerankConfig,
    RerankParams,
    VisionConfig,
)


def _as_mapping(value: Any, name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(
            f"Parameter '{name}' must be an object, got {type(value).__name__}"
        )
    return value


def _collection_values(value: Any, name: str, values_key: str) -> list[Mapping[str, Any]]:
    """读取 fixedCollection 形态的参数：`{values_key: [ {...}, ... ]}`。"""
    entries = _as_mapping(value, name).get(values_key) or []
    if not isinstance(entries, list):
        raise ValidationError(f"Parameter '{name}.{values_key}' must be a list")
    return [_as_mapping(entry, f"{name}.{values_key}") for entry in entries]


def read_response_format(value: Any) -> str | None:
    """接受 `{"formatValues": {"type": ...}}` 或直接的类型字符串。"""
    if value is None or isinstance(value, str):
        return value or None
    format_values = _as_mapping(value, "response_format").get(keys.PARAM_RESPONSE_FORMAT_VALUES)
    type_value = _as_mapping(format_values, "response_format.formatValues").get("type")
    return type_value or None


def read_chat_params(raw: Any) -> ChatParams:
    fields = dict(_as_mapping(raw, keys.PARAM_ADDITIONAL_FIELDS))
    fields["response_format"] = read_response_format(fields.get("response_format"))
    return ChatParams(**{name: fields.get(name) for name in CHAT_PARAM_FIELDS})


def read_rerank_params(raw: Any) -> RerankParams:
    fields = _as_mapping(raw, keys.PARAM_RERANK_ADDITIONAL_FIELDS)
    return RerankParams(**{name: fields.get(name) for name in RERANK_PARAM_FIELDS})


def read_chat_config(context: ExecuteContext, item_index: int) -> ChatConfig:
    raw_messages = _collection_values(
        context.get_node_parameter(keys.PARAM_MESSAGES, item_index, {}),
        keys.PARAM_MESSAGES,
        keys.PARAM_MESSAGE_VALUES,
    )
    messages = [
        ChatMessage(role=str(entry.get("role") or "user"), content=str(entry.get("content") or ""))
        for entry in raw_messages
    ]
    return ChatConfig(
        model=context.get_node_parameter(keys.PARAM_MODEL, item_index),
        messages=messages,
        prompt=context.get_node_parameter(keys.PARAM_PROMPT, item_index, "") or "",
        output_mode=context.get_node_parameter(keys.PARAM_OUTPUT_MODE, item_index, "simple"),
        params=read_chat_params(
            context.get_node_parameter(keys.PARAM_ADDITIONAL_FIELDS, item_index, {})
        ),
    )


def read_image_source(entry: Mapping[str, Any]) -> ImageSource:
    kind = entry.get(keys.IMAGE_SOURCE_TYPE_KEY) or "url"
    detail = entry.get(keys.IMAGE_DETAIL_KEY) or "auto"
    image_format = entry.get(keys.IMAGE_FORMAT_KEY) or ""
    if kind == "url":
        return ImageSource.from_url(entry.get(keys.IMAGE_URL_KEY) or "", detail=detail)
    if kind == "base64":
        return ImageSource.from_base64(
            entry.get(keys.IMAGE_BASE64_KEY) or "",
            format=image_format or "jpeg",
            detail=detail,
        )
    if kind == "binary":
        return ImageSource.from_binary(
            entry.get(keys.IMAGE_BINARY_PROPERTY_KEY) or "",
            format=image_format,
            detail=detail,
        )
    # 交给 ImageSource 统一报错
    return ImageSource(kind=kind, value="")


def read_vision_config(context: ExecuteContext, item_index: int) -> VisionConfig:
    entries = _collection_values(
        context.get_node_parameter(keys.PARAM_IMAGES, item_index, {}),
        keys.PARAM_IMAGES,
        keys.PARAM_IMAGE_VALUES,
    )
    return VisionConfig(
        model=context.get_node_parameter(keys.PARAM_VISION_MODEL, item_index),
        images=[read_image_source(entry) for entry in entries],
        prompt=context.get_node_parameter(keys.PARAM_VISION_PROMPT, item_index, "") or "",
        params=read_chat_params(
            context.get_node_parameter(keys.PARAM_VISION_ADDITIONAL_FIELDS, item_index, {})
        ),
    )


def read_embeddings_config(context: ExecuteContext, item_index: int) -> EmbeddingsConfig:
    fields = _as_mapping(
        context.get_node_parameter(keys.PARAM_EMBEDDING_ADDITIONAL_FIELDS, item_index, {}),
        keys.PARAM_EMBEDDING_ADDITIONAL_FIELDS,
    )
    return EmbeddingsConfig(
        model=context.get_node_parameter(keys.PARAM_EMBEDDING_MODEL, item_index),
        input=context.get_node_parameter(keys.PARAM_INPUT, item_index, ""),
        encoding_format=fields.get("encoding_format"),
    )


def read_rerank_config(context: ExecuteContext, item_index: int) -> RerankConfig:
    return RerankConfig(
        model=context.get_node_parameter(keys.PARAM_RERANK_MODEL, item_index),
        query=context.get_node_parameter(keys.PARAM_QUERY, item_index, "") or "",
        documents=parse_documents(
            context.get_node_parameter(keys.PARAM_DOCUMENTS, item_index, "")
        ),
        params=read_rerank_params(
            context.get_node_parameter(keys.PARAM_RERANK_ADDITIONAL_FIELDS, item_index, {})
        ),
    )
