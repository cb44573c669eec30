from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

from .log import summarize_log_value


class NodeErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NO_RESPONSE = "NO_RESPONSE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"


class NodeException(Exception):
    """节点异常基类：携带错误码、是否可重试以及用于排查的 detail。"""

    default_code = NodeErrorCode.UPSTREAM_ERROR
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        code: NodeErrorCode | None = None,
        retryable: bool | None = None,
        detail: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.retryable = self.default_retryable if retryable is None else retryable
        self.detail = dict(detail) if detail else {}

    def with_context(self, note: str, **detail: Any) -> NodeException:
        """返回同类型的副本，消息追加 `note`，detail 合并新字段。"""
        enriched = copy.copy(self)
        enriched.message = f"{self.message} ({note})"
        enriched.args = (enriched.message,)
        enriched.detail = {**self.detail, **detail}
        return enriched

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "detail": self.detail,
        }

    def __str__(self) -> str:
        base = f"[{self.code.value}] {self.message} (retryable={self.retryable})"
        if not self.detail:
            return base
        detail_json = json.dumps(
            summarize_log_value(self.detail), ensure_ascii=False, default=str
        )
        return f"{base} detail={detail_json}"


class ValidationError(NodeException):
    """用户输入缺失或矛盾，在发起任何网络请求之前抛出。"""

    default_code = NodeErrorCode.VALIDATION_ERROR


class NoResponseError(NodeException):
    """远端调用成功，但没有可用的 choice。"""

    default_code = NodeErrorCode.NO_RESPONSE


class RemoteApiError(NodeException):
    """远端返回非 2xx，或响应体不是合法的 JSON object。"""

    default_code = NodeErrorCode.UPSTREAM_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        remote_message: str = "",
        code: NodeErrorCode | None = None,
        retryable: bool | None = None,
        detail: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, retryable=retryable, detail=detail)
        self.status_code = status_code
        self.remote_message = remote_message


class NetworkError(NodeException):
    """传输层失败，包括超时（code=TIMEOUT）。"""

    default_code = NodeErrorCode.NETWORK_ERROR
    default_retryable = True


class NodeExecutionError(Exception):
    """fail-fast 模式下中断批处理；保留已经产出的结果。"""

    def __init__(
        self,
        message: str,
        *,
        item_index: int,
        partial_results: list[Any],
    ) -> None:
        super().__init__(message)
        self.item_index = item_index
        self.partial_results = partial_results


def error_message(exc: BaseException) -> str:
    """提取写入错误记录的文本。"""
    if isinstance(exc, NodeException):
        return exc.message
    text = str(exc)
    return text or "Unknown error occurred"
