from __future__ import annotations

import pytest

from siliconflow_nodes.resources import BinaryAttachment, ResourceBlob

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_resource_blob_sniff_and_encode() -> None:
    """验证：ResourceBlob 可嗅探 MIME/后缀并输出 data URL。"""
    blob = ResourceBlob(data=PNG_BYTES)

    assert blob.mime == "image/png"
    assert blob.extension == "png"
    assert blob.to_data_url().startswith("data:image/png;base64,")


def test_resource_blob_falls_back_to_default_mime() -> None:
    """验证：无法嗅探时使用默认 MIME。"""
    blob = ResourceBlob(data=b"hello", default_mime="image/jpeg")

    assert blob.mime == "image/jpeg"
    assert blob.extension == "bin"


def test_resource_blob_to_data_url_with_explicit_mime() -> None:
    """验证：显式 MIME 覆盖嗅探结果。"""
    blob = ResourceBlob(data=PNG_BYTES)

    assert blob.to_data_url("image/webp").startswith("data:image/webp;base64,")


def test_binary_attachment_from_bytes_round_trip() -> None:
    """验证：from_bytes 保存 base64 负载，to_blob 还原字节。"""
    attachment = BinaryAttachment.from_bytes(
        PNG_BYTES, mime_type=" Image/PNG ", file_name="a.png"
    )

    assert attachment.mime_type == "image/png"
    assert attachment.to_blob().data == PNG_BYTES


@pytest.mark.parametrize("data", ["", "%%%"])
def test_binary_attachment_to_blob_rejects_bad_payload(data: str) -> None:
    """验证：负载为空或不是合法 base64 时抛出 ValueError。"""
    with pytest.raises(ValueError):
        BinaryAttachment(data=data).to_blob()
