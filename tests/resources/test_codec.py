from __future__ import annotations

import pytest

from siliconflow_nodes.resources.codec import (
    build_data_url,
    decode_base64_payload,
    normalize_base64_payload,
    parse_data_url_header,
    strip_data_url_header,
)


def test_parse_data_url_header_base64() -> None:
    """验证：可正确解析带 base64 标记的 data URL 头信息。"""
    header = parse_data_url_header("data:image/png;charset=utf-8;base64,Zm9v")

    assert header.mime == "image/png"
    assert header.is_base64 is True
    assert header.payload == "Zm9v"


def test_strip_data_url_header_keeps_payload() -> None:
    """验证：粘贴的 data URL 只保留 base64 负载，普通负载原样返回。"""
    assert strip_data_url_header("data:image/png;base64,AAAA") == "AAAA"
    assert strip_data_url_header("AAAA") == "AAAA"


def test_strip_data_url_header_rejects_non_base64() -> None:
    """验证：非 base64 的 data URL 不能作为图片负载。"""
    with pytest.raises(ValueError, match="must contain ';base64'"):
        strip_data_url_header("data:text/plain,hello")


def test_normalize_base64_payload_removes_prefix_and_whitespace() -> None:
    """验证：去掉 base64:// 前缀与内部换行。"""
    assert normalize_base64_payload(" base64://AA\nAA ") == "AAAA"


def test_decode_base64_payload_raises_for_invalid_input() -> None:
    """验证：非法 base64 输入会抛出 ValueError。"""
    with pytest.raises(ValueError, match="base64 payload is invalid"):
        decode_base64_payload("%%%")


def test_build_data_url_requires_mime() -> None:
    """验证：组装 data URL 时 MIME 必填，并会规范化大小写。"""
    assert build_data_url("Image/PNG", "AAAA") == "data:image/png;base64,AAAA"
    with pytest.raises(ValueError, match="mime is required"):
        build_data_url(" ", "AAAA")
