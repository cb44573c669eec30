"""vision/analyze：多图 + 文本提示的 chat/completions 请求"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ..providers.client import SiliconFlowClient
from ..providers.utils import extract_first_choice, extract_message_content
from ..resources import BinaryAttachment, resolve_image_sources
from ..utils.dicts import get_dict_value
from ..utils.errors import NetworkError, RemoteApiError
from ..utils.log import logger
from .chat import apply_chat_params
from .keys import RAW_RESPONSE_KEY
from .schema import VisionConfig


def build_vision_request(
    config: VisionConfig,
    binary: Mapping[str, BinaryAttachment] | None = None,
) -> dict[str, Any]:
    """图片块按来源顺序排列，最后追加一个文本块。"""
    content: list[dict[str, Any]] = [
        image.to_content_block()
        for image in resolve_image_sources(config.images, binary)
    ]
    content.append({"type": "text", "text": config.prompt})
    body: dict[str, Any] = {
        "model": config.model,
        "messages": [{"role": "user", "content": content}],
    }
    return apply_chat_params(body, config.params)


def measure_body_bytes(body: dict[str, Any]) -> int:
    return len(json.dumps(body, ensure_ascii=False).encode("utf-8"))


def shape_vision_response(data: dict[str, Any], image_count: int) -> dict[str, Any]:
    choice = extract_first_choice(data)
    shaped: dict[str, Any] = {
        "analysis": extract_message_content(choice),
        "model": data.get("model"),
        "finishReason": choice.get("finish_reason"),
        "usage": data.get("usage"),
        "imageCount": image_count,
    }
    reasoning = get_dict_value(choice, "message", "reasoning_content")
    if reasoning:
        shaped["reasoning"] = reasoning
    shaped[RAW_RESPONSE_KEY] = data
    return shaped


async def process_vision(
    client: SiliconFlowClient,
    config: VisionConfig,
    binary: Mapping[str, BinaryAttachment] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    body = build_vision_request(config, binary)
    image_count = len(config.images)
    try:
        response = await client.chat_completions(body)
    except (RemoteApiError, NetworkError) as exc:
        body_bytes = measure_body_bytes(body)
        logger.warning(
            "vision.request_failed",
            {
                "model": config.model,
                "image_count": image_count,
                "body_bytes": body_bytes,
                "error": exc.message,
            },
        )
        raise exc.with_context(
            f"model={config.model}, images={image_count}, body_bytes={body_bytes}",
            model=config.model,
            image_count=image_count,
            body_bytes=body_bytes,
        ) from exc
    data = response["data"]
    return shape_vision_response(data, image_count), data
