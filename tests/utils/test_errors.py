from __future__ import annotations

from siliconflow_nodes.utils.errors import (
    NetworkError,
    NodeErrorCode,
    NodeException,
    RemoteApiError,
    ValidationError,
    error_message,
)


def test_default_codes_and_retryable() -> None:
    """验证：各异常类型的默认错误码与可重试标记。"""
    assert ValidationError("x").code == NodeErrorCode.VALIDATION_ERROR
    assert ValidationError("x").retryable is False
    assert NetworkError("x").code == NodeErrorCode.NETWORK_ERROR
    assert NetworkError("x").retryable is True
    assert RemoteApiError("x").code == NodeErrorCode.UPSTREAM_ERROR


def test_with_context_returns_enriched_copy() -> None:
    """验证：with_context 返回同类型副本，原异常不变。"""
    error = RemoteApiError(
        "SiliconFlow HTTP 413",
        status_code=413,
        remote_message="Request too large",
        detail={"url": "https://api.example.com"},
    )

    enriched = error.with_context("model=m, images=2", image_count=2)

    assert type(enriched) is RemoteApiError
    assert enriched is not error
    assert enriched.message == "SiliconFlow HTTP 413 (model=m, images=2)"
    assert enriched.status_code == 413
    assert enriched.remote_message == "Request too large"
    assert enriched.detail == {"url": "https://api.example.com", "image_count": 2}
    assert error.message == "SiliconFlow HTTP 413"
    assert error.detail == {"url": "https://api.example.com"}


def test_str_includes_code_and_summarized_detail() -> None:
    """验证：__str__ 包含错误码、可重试标记，并压缩 data URL。"""
    error = NodeException("boom", detail={"url": "data:image/png;base64,AAAA"})

    text = str(error)

    assert text.startswith("[UPSTREAM_ERROR] boom (retryable=False)")
    assert "<data-url len=" in text


def test_to_dict() -> None:
    """验证：to_dict 输出可序列化的结构。"""
    assert NetworkError("down").to_dict() == {
        "code": "NETWORK_ERROR",
        "message": "down",
        "retryable": True,
        "detail": {},
    }


def test_error_message() -> None:
    """验证：错误记录文本取自异常消息，空消息有兜底文本。"""
    assert error_message(ValidationError("bad input")) == "bad input"
    assert error_message(RuntimeError("oops")) == "oops"
    assert error_message(RuntimeError()) == "Unknown error occurred"
