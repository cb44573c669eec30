from __future__ import annotations

from dataclasses import dataclass

from .codec import (
    build_data_url,
    decode_base64_payload,
    encode_base64_payload,
    normalize_mime,
)
from .mime import sniff_file_type


class ResourceBlob:
    data: bytes
    """文件字节数据"""
    mime: str
    """文件内容类型标识，嗅探结果兜底"""
    extension: str
    """文件扩展名（不带点），嗅探结果兜底"""

    def __init__(
        self,
        *,
        data: bytes,
        default_mime: str = "application/octet-stream",
        default_extension: str = "bin",
    ) -> None:
        self.data = data
        normalized_default_extension = (
            default_extension.strip().lower().removeprefix(".")
        )
        if not normalized_default_extension:
            normalized_default_extension = "bin"

        sniffed_mime, sniffed_extension = sniff_file_type(
            self.data, default_mime, normalized_default_extension
        )
        self.mime = sniffed_mime
        self.extension = sniffed_extension

    def to_base64(self) -> str:
        return encode_base64_payload(self.data)

    def to_data_url(self, mime: str = "") -> str:
        return build_data_url(mime or self.mime, self.to_base64())


@dataclass(slots=True)
class BinaryAttachment:
    """宿主 item 上的一个二进制附件（负载以 base64 保存）。"""

    data: str
    """base64 负载"""
    mime_type: str = ""
    """宿主声明的 MIME，可能为空"""
    file_name: str = ""

    def __post_init__(self) -> None:
        self.mime_type = normalize_mime(self.mime_type or "")

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        *,
        mime_type: str = "",
        file_name: str = "",
    ) -> BinaryAttachment:
        return cls(
            data=encode_base64_payload(content),
            mime_type=mime_type,
            file_name=file_name,
        )

    def to_blob(self, *, default_mime: str = "application/octet-stream") -> ResourceBlob:
        """解码附件负载；负载为空或不是合法 base64 时抛出 ValueError。"""
        content = decode_base64_payload(self.data or "")
        if not content:
            raise ValueError("binary payload is empty.")
        return ResourceBlob(data=content, default_mime=default_mime)
