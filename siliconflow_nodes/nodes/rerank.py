from __future__ import annotations

from typing import Any

from ..providers.client import SiliconFlowClient
from ..utils.errors import ValidationError
from .keys import RAW_RESPONSE_KEY
from .schema import RERANK_PARAM_FIELDS, RerankConfig


def parse_documents(documents: str | list[Any]) -> list[str]:
    """
    将文档输入拆分为列表。

    字符串包含换行时按行拆分，否则按逗号拆分；
    单行且包含逗号的文档会被拆成多个，这一行为保持不变。
    """
    if isinstance(documents, str):
        separator = "\n" if "\n" in documents else ","
        segments: list[Any] = documents.split(separator)
    elif isinstance(documents, list):
        segments = documents
    else:
        raise ValidationError(
            f"Documents must be a string or a list, got {type(documents).__name__}"
        )

    parsed = [str(segment).strip() for segment in segments if segment is not None]
    parsed = [segment for segment in parsed if segment]
    if not parsed:
        raise ValidationError("At least one document must be provided")
    return parsed


def build_rerank_request(config: RerankConfig) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": config.model,
        "query": config.query,
        "documents": list(config.documents),
    }
    for name in RERANK_PARAM_FIELDS:
        value = getattr(config.params, name)
        if value is not None:
            body[name] = value
    return body


def shape_rerank_response(data: dict[str, Any], config: RerankConfig) -> dict[str, Any]:
    results = data.get("results")
    return {
        "results": results if isinstance(results, list) else [],
        "query": config.query,
        "documentsCount": len(config.documents),
        "usage": data.get("tokens"),
        RAW_RESPONSE_KEY: data,
    }


async def process_rerank(
    client: SiliconFlowClient,
    config: RerankConfig,
) -> tuple[dict[str, Any], dict[str, Any]]:
    response = await client.rerank(build_rerank_request(config))
    data = response["data"]
    return shape_rerank_response(data, config), data
