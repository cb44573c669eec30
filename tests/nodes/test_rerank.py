from __future__ import annotations

from typing import Any

import pytest

from siliconflow_nodes.nodes.rerank import (
    build_rerank_request,
    parse_documents,
    process_rerank,
    shape_rerank_response,
)
from siliconflow_nodes.nodes.schema import RerankConfig, RerankParams
from siliconflow_nodes.providers.client import SiliconFlowClient
from siliconflow_nodes.utils.errors import ValidationError


def test_parse_documents_newline_mode() -> None:
    """验证：包含换行时按行拆分，并丢弃空行。"""
    assert parse_documents("doc1\ndoc2\n\ndoc3") == ["doc1", "doc2", "doc3"]


def test_parse_documents_comma_mode() -> None:
    """验证：没有换行时按逗号拆分。"""
    assert parse_documents("doc1, doc2, doc3") == ["doc1", "doc2", "doc3"]


def test_parse_documents_newline_mode_keeps_commas() -> None:
    """验证：换行模式下行内逗号不再拆分。"""
    assert parse_documents("a, b\nc") == ["a, b", "c"]


def test_parse_documents_list_input_is_trimmed() -> None:
    """验证：列表输入同样去空白并过滤空项。"""
    assert parse_documents([" a ", "", "b"]) == ["a", "b"]


@pytest.mark.parametrize("documents", ["", " , ,", "\n\n", []])
def test_parse_documents_empty_raises(documents: Any) -> None:
    """验证：拆分后没有文档时抛出 ValidationError。"""
    with pytest.raises(ValidationError, match="At least one document must be provided"):
        parse_documents(documents)


def test_rerank_config_rejects_empty_query() -> None:
    """验证：query 为空时抛出 ValidationError。"""
    with pytest.raises(ValidationError, match="Query must be provided"):
        RerankConfig(model="m", query=" ", documents=["a"])


def test_rerank_params_rejects_large_overlap() -> None:
    """验证：overlap_tokens 不能超过 80。"""
    with pytest.raises(ValidationError, match="overlap_tokens"):
        RerankParams(overlap_tokens=81)


def test_build_rerank_request_only_set_params() -> None:
    """验证：只写入显式设置的 rerank 参数。"""
    config = RerankConfig(
        model="BAAI/bge-reranker-v2-m3",
        query="apple",
        documents=["apple pie", "banana"],
        params=RerankParams(top_n=1, return_documents=False),
    )

    body = build_rerank_request(config)

    assert body == {
        "model": "BAAI/bge-reranker-v2-m3",
        "query": "apple",
        "documents": ["apple pie", "banana"],
        "top_n": 1,
        "return_documents": False,
    }


def test_shape_rerank_response() -> None:
    """验证：输出 results、query、documentsCount，usage 取自响应的 tokens。"""
    config = RerankConfig(model="m", query="apple", documents=["a", "b"])
    data = {
        "id": "r-1",
        "results": [{"index": 1, "relevance_score": 0.9}],
        "tokens": {"input_tokens": 5, "output_tokens": 0},
    }

    shaped = shape_rerank_response(data, config)

    assert shaped == {
        "results": [{"index": 1, "relevance_score": 0.9}],
        "query": "apple",
        "documentsCount": 2,
        "usage": {"input_tokens": 5, "output_tokens": 0},
        "_rawResponse": data,
    }


def test_shape_rerank_response_missing_results_is_empty() -> None:
    """验证：响应缺少 results 时输出空列表。"""
    config = RerankConfig(model="m", query="q", documents=["a"])

    assert shape_rerank_response({}, config)["results"] == []


@pytest.mark.asyncio
async def test_process_rerank_posts_to_rerank_route(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """验证：请求发送到 /rerank 路由。"""
    captured: dict[str, Any] = {}

    async def fake_post_json(*, url: str, payload: dict[str, Any], **_: Any) -> dict[str, Any]:
        captured["url"] = url
        captured["payload"] = payload
        return {"data": {"results": []}, "elapsed_ms": 1}

    monkeypatch.setattr("siliconflow_nodes.providers.client.post_json", fake_post_json)
    client = SiliconFlowClient(base_url="https://api.example.com/v1", api_key="k")

    shaped, _ = await process_rerank(
        client, RerankConfig(model="m", query="q", documents=["a"])
    )

    assert captured["url"] == "https://api.example.com/v1/rerank"
    assert captured["payload"]["documents"] == ["a"]
    assert shaped["documentsCount"] == 1
