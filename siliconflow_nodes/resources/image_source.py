from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, get_args

from ..utils.errors import ValidationError
from .blob import BinaryAttachment
from .codec import build_data_url, decode_base64_payload, normalize_base64_payload, strip_data_url_header
from .mime import (
    DEFAULT_IMAGE_FORMAT,
    DEFAULT_IMAGE_MIME,
    IMAGE_FORMATS,
    mime_from_image_format,
    normalize_image_format,
)

ImageSourceKind = Literal["url", "base64", "binary"]
ImageDetail = Literal["auto", "low", "high"]

IMAGE_SOURCE_KINDS: tuple[str, ...] = get_args(ImageSourceKind)
IMAGE_DETAILS: tuple[str, ...] = get_args(ImageDetail)
# 只有显式的 low/high 会写入请求，auto 与不传等价。
EMITTED_IMAGE_DETAILS = ("low", "high")


@dataclass(slots=True)
class ResolvedImage:
    url: str
    """http(s) URL 或 `data:<mime>;base64,<payload>`"""
    detail: str = "auto"

    def to_content_block(self) -> dict[str, Any]:
        image_url: dict[str, Any] = {"url": self.url}
        if self.detail in EMITTED_IMAGE_DETAILS:
            image_url["detail"] = self.detail
        return {"type": "image_url", "image_url": image_url}


@dataclass(slots=True)
class ImageSource:
    """
    视觉请求的单个图片来源。

    约定：
    - kind=url：`value` 为图片 URL，原样使用。
    - kind=base64：`value` 为 base64 负载，`format` 决定 MIME（默认 jpeg）。
    - kind=binary：`value` 为当前 item 上的二进制属性名，`format` 为可选的 MIME 覆盖。
    构造期完成规范化与不依赖 item 的校验，非法输入抛出 ValidationError。
    """

    kind: ImageSourceKind
    value: str
    format: str = ""
    detail: str = "auto"

    def __post_init__(self) -> None:
        if self.kind not in IMAGE_SOURCE_KINDS:
            raise ValidationError(
                f"Unsupported image source type: {self.kind}",
                detail={"supported": list(IMAGE_SOURCE_KINDS)},
            )
        normalized_detail = (self.detail or "auto").strip().lower()
        if normalized_detail not in IMAGE_DETAILS:
            raise ValidationError(
                f"Unsupported image detail: {self.detail}",
                detail={"supported": list(IMAGE_DETAILS)},
            )
        normalized_format = normalize_image_format(self.format)
        if normalized_format and normalized_format not in IMAGE_FORMATS:
            raise ValidationError(
                f"Unsupported image format: {self.format}",
                detail={"supported": list(IMAGE_FORMATS)},
            )

        normalized_value = (self.value or "").strip()
        if self.kind == "url":
            if not normalized_value:
                raise ValidationError("Image URL must not be empty.")
        elif self.kind == "base64":
            normalized_value = _normalize_base64_image_value(normalized_value)
        elif not normalized_value:
            raise ValidationError("Binary property name must not be empty.")

        self.value = normalized_value
        self.format = normalized_format
        self.detail = normalized_detail

    @classmethod
    def from_url(cls, url: str, *, detail: str = "auto") -> ImageSource:
        return cls(kind="url", value=url, detail=detail)

    @classmethod
    def from_base64(
        cls,
        data: str,
        *,
        format: str = DEFAULT_IMAGE_FORMAT,
        detail: str = "auto",
    ) -> ImageSource:
        return cls(kind="base64", value=data, format=format, detail=detail)

    @classmethod
    def from_binary(
        cls,
        property_name: str,
        *,
        format: str = "",
        detail: str = "auto",
    ) -> ImageSource:
        return cls(kind="binary", value=property_name, format=format, detail=detail)

    def resolve(
        self,
        binary: Mapping[str, BinaryAttachment] | None = None,
    ) -> ResolvedImage:
        """解析为请求可用的 URL；binary 来源需要当前 item 的附件映射。"""
        if self.kind == "url":
            return ResolvedImage(url=self.value, detail=self.detail)
        if self.kind == "base64":
            mime = mime_from_image_format(self.format or DEFAULT_IMAGE_FORMAT)
            return ResolvedImage(
                url=build_data_url(mime, self.value),
                detail=self.detail,
            )
        return ResolvedImage(
            url=_resolve_binary_data_url(self, binary or {}),
            detail=self.detail,
        )


def _normalize_base64_image_value(value: str) -> str:
    if not value:
        raise ValidationError("Base64 image data must not be empty.")
    try:
        payload = normalize_base64_payload(strip_data_url_header(value))
        decode_base64_payload(payload)
    except ValueError as exc:
        raise ValidationError(f"Base64 image data is invalid: {exc}") from exc
    return payload


def _resolve_binary_data_url(
    source: ImageSource,
    binary: Mapping[str, BinaryAttachment],
) -> str:
    attachment = binary.get(source.value)
    if attachment is None:
        available = ", ".join(sorted(binary)) or "(none)"
        raise ValidationError(
            f"Binary property '{source.value}' not found on item. "
            f"Available properties: {available}",
            detail={"property": source.value, "available": sorted(binary)},
        )

    try:
        blob = attachment.to_blob(default_mime=DEFAULT_IMAGE_MIME)
    except ValueError as exc:
        raise ValidationError(
            f"Binary property '{source.value}' has no decodable data.",
            detail={"property": source.value, "reason": str(exc)},
        ) from exc

    # 显式 format 优先，其次是宿主声明的 MIME，最后才使用字节嗅探结果。
    if source.format:
        mime = mime_from_image_format(source.format)
    else:
        mime = attachment.mime_type or blob.mime
    return blob.to_data_url(mime)


def resolve_image_sources(
    sources: list[ImageSource],
    binary: Mapping[str, BinaryAttachment] | None = None,
) -> list[ResolvedImage]:
    """按来源顺序逐个解析。"""
    return [source.resolve(binary) for source in sources]
