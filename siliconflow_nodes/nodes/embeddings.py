from __future__ import annotations

from typing import Any

from ..providers.client import SiliconFlowClient
from .keys import RAW_RESPONSE_KEY
from .schema import EmbeddingsConfig


def build_embeddings_request(config: EmbeddingsConfig) -> dict[str, Any]:
    body: dict[str, Any] = {"model": config.model, "input": config.input}
    if config.encoding_format is not None:
        body["encoding_format"] = config.encoding_format
    return body


def shape_embeddings_response(data: dict[str, Any]) -> dict[str, Any]:
    """按 API 返回顺序抽取 `data[].embedding`。"""
    entries = data.get("data")
    embeddings = [
        entry.get("embedding")
        for entry in (entries if isinstance(entries, list) else [])
        if isinstance(entry, dict)
    ]
    return {
        "embeddings": embeddings,
        "model": data.get("model"),
        "usage": data.get("usage"),
        RAW_RESPONSE_KEY: data,
    }


async def process_embeddings(
    client: SiliconFlowClient,
    config: EmbeddingsConfig,
) -> tuple[dict[str, Any], dict[str, Any]]:
    response = await client.embeddings(build_embeddings_request(config))
    data = response["data"]
    return shape_embeddings_response(data), data
