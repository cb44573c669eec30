from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

ROOT_LOGGER_NAME = "siliconflow_nodes"

SECRET_LOG_KEYS = frozenset({"authorization", "apikey", "api_key", "x-api-key", "cookie"})
MAX_LOG_LIST_ITEMS = 5
MAX_LOG_TEXT_LENGTH = 400


def summarize_log_value(value: Any) -> Any:
    """
    压缩日志字段：

    - 凭据类键（Authorization / apiKey 等）替换为 `<redacted>`
    - data URL 只保留长度，超长文本截断
    - 列表只保留前几项（embedding 向量、批量文档等）
    """
    if isinstance(value, dict):
        return {
            key: "<redacted>"
            if str(key).lower() in SECRET_LOG_KEYS
            else summarize_log_value(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        items = [summarize_log_value(item) for item in value[:MAX_LOG_LIST_ITEMS]]
        if len(value) > MAX_LOG_LIST_ITEMS:
            items.append(f"<+{len(value) - MAX_LOG_LIST_ITEMS} items>")
        return items
    if isinstance(value, str):
        if value.startswith("data:"):
            return f"<data-url len={len(value)}>"
        if len(value) > MAX_LOG_TEXT_LENGTH:
            return f"{value[:MAX_LOG_TEXT_LENGTH]}...(truncated)"
    return value


@dataclass(slots=True)
class StructuredLogEmitter:
    """输出 `{"event", "context", "detail"}` 形式的单行 JSON 日志。"""

    logger: logging.Logger
    compress: bool = True
    context: dict[str, Any] = field(default_factory=dict)
    """通过 bind 附加的固定字段，例如批次的 run_id"""

    def bind(self, **context: Any) -> StructuredLogEmitter:
        return StructuredLogEmitter(
            logger=self.logger,
            compress=self.compress,
            context={**self.context, **context},
        )

    def _emit(self, level: int, event: str, detail: dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        message: dict[str, Any] = {"event": event}
        if self.context:
            message["context"] = self.context
        message["detail"] = summarize_log_value(detail) if self.compress else detail
        self.logger.log(
            level,
            "%s",
            json.dumps(message, ensure_ascii=False, default=str),
            stacklevel=3,
        )

    def debug(self, event: str, detail: dict[str, Any]) -> None:
        self._emit(logging.DEBUG, event, detail)

    def info(self, event: str, detail: dict[str, Any]) -> None:
        self._emit(logging.INFO, event, detail)

    def warning(self, event: str, detail: dict[str, Any]) -> None:
        self._emit(logging.WARNING, event, detail)

    def error(self, event: str, detail: dict[str, Any]) -> None:
        self._emit(logging.ERROR, event, detail)


def get_structured_logger(name: str = ROOT_LOGGER_NAME) -> StructuredLogEmitter:
    return StructuredLogEmitter(logger=logging.getLogger(name))


logger = get_structured_logger()
