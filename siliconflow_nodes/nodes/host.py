from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..resources import BinaryAttachment
from ..utils.errors import ValidationError
from .keys import ERROR_KEY

_MISSING: Any = object()


@dataclass(slots=True)
class NodeItem:
    """宿主提供的一个工作单元。"""

    json: dict[str, Any] = field(default_factory=dict)
    binary: dict[str, BinaryAttachment] = field(default_factory=dict)


@dataclass(slots=True)
class OutputRecord:
    json: Any
    """整形后的结果；chat simple 模式下是纯字符串"""
    paired_item: int
    """对应输入 item 的下标"""
    raw_response: dict[str, Any] | None = None
    """原始响应，错误记录为 None"""

    @classmethod
    def from_error(cls, message: str, *, paired_item: int) -> OutputRecord:
        return cls(json={ERROR_KEY: message}, paired_item=paired_item)

    @property
    def is_error(self) -> bool:
        return (
            self.raw_response is None
            and isinstance(self.json, dict)
            and set(self.json) == {ERROR_KEY}
        )


class ExecuteContext(Protocol):
    """节点执行期间宿主需要提供的能力。"""

    def get_input_items(self) -> Sequence[NodeItem]: ...

    def get_node_parameter(
        self, name: str, item_index: int, default: Any = _MISSING
    ) -> Any: ...

    async def get_credentials(self) -> Mapping[str, Any]: ...

    def continue_on_fail(self) -> bool: ...


@dataclass(slots=True)
class StaticExecuteContext:
    """
    内存版 ExecuteContext，供脚本调用与测试使用。

    参数读取顺序：`item_parameters[item_index]` > `parameters` > `default`；
    都没有时抛出 ValidationError。
    """

    items: list[NodeItem]
    parameters: dict[str, Any] = field(default_factory=dict)
    item_parameters: list[dict[str, Any]] = field(default_factory=list)
    credentials: dict[str, Any] = field(default_factory=dict)
    fail_soft: bool = False
    credential_reads: int = 0

    def get_input_items(self) -> Sequence[NodeItem]:
        return self.items

    def get_node_parameter(
        self, name: str, item_index: int, default: Any = _MISSING
    ) -> Any:
        if item_index < len(self.item_parameters):
            overrides = self.item_parameters[item_index]
            if name in overrides:
                return overrides[name]
        if name in self.parameters:
            return self.parameters[name]
        if default is not _MISSING:
            return default
        raise ValidationError(
            f"Missing node parameter: {name}",
            detail={"item_index": item_index},
        )

    async def get_credentials(self) -> Mapping[str, Any]:
        self.credential_reads += 1
        return self.credentials

    def continue_on_fail(self) -> bool:
        return self.fail_soft
