from __future__ import annotations

from typing import Any


def get_dict_value(data: Any, *path: str | int) -> Any:
    """
    按路径读取嵌套的 JSON 值，字符串读取字典键、整数读取列表下标。

    路径中任一环节缺失或类型不符时返回 None，例如
    `get_dict_value(data, "choices", 0, "message", "content")`。
    """
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        elif isinstance(current, dict):
            current = current.get(step)
        else:
            return None
        if current is None:
            return None
    return current
