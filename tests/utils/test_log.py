from __future__ import annotations

import json
import logging

import pytest

from siliconflow_nodes.utils.log import get_structured_logger, summarize_log_value


def test_summarize_log_value_redacts_and_truncates() -> None:
    """验证：凭据字段被隐藏，data URL、长文本与长列表被压缩。"""
    summarized = summarize_log_value(
        {
            "headers": {"Authorization": "Bearer secret", "Content-Type": "application/json"},
            "credentials": {"apiKey": "secret"},
            "image": "data:image/png;base64,AAAA",
            "text": "x" * 500,
            "embedding": list(range(8)),
        }
    )

    assert summarized["headers"] == {
        "Authorization": "<redacted>",
        "Content-Type": "application/json",
    }
    assert summarized["credentials"] == {"apiKey": "<redacted>"}
    assert summarized["image"] == "<data-url len=26>"
    assert summarized["text"].endswith("...(truncated)")
    assert summarized["embedding"] == [0, 1, 2, 3, 4, "<+3 items>"]


def test_bound_logger_emits_context(caplog: pytest.LogCaptureFixture) -> None:
    """验证：bind 附加的上下文出现在每条日志中，且不影响原 logger。"""
    base = get_structured_logger("siliconflow_nodes.tests")
    bound = base.bind(run_id="run-1")

    with caplog.at_level(logging.INFO, logger="siliconflow_nodes.tests"):
        bound.info("node.batch_started", {"items": 2})
        base.info("plain.event", {})

    first, second = (json.loads(record.getMessage()) for record in caplog.records)
    assert first == {
        "event": "node.batch_started",
        "context": {"run_id": "run-1"},
        "detail": {"items": 2},
    }
    assert second == {"event": "plain.event", "detail": {}}
