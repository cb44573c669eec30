from __future__ import annotations

from typing import Literal, get_args

import filetype

from .codec import normalize_mime

ImageFormat = Literal["jpeg", "png", "webp", "gif"]

IMAGE_FORMATS: tuple[str, ...] = get_args(ImageFormat)
DEFAULT_IMAGE_FORMAT: ImageFormat = "jpeg"
DEFAULT_IMAGE_MIME = "image/jpeg"

IMAGE_FORMAT_MIME: dict[str, str] = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
}


def normalize_image_format(value: str | None) -> str:
    """规范化图片格式；`jpg` 视为 `jpeg`，空值返回空字符串。"""
    if value is None:
        return ""
    normalized = value.strip().lower()
    if normalized == "jpg":
        return "jpeg"
    return normalized


def mime_from_image_format(image_format: str) -> str:
    """根据格式枚举得到 MIME，未知格式抛出 ValueError。"""
    normalized = normalize_image_format(image_format)
    try:
        return IMAGE_FORMAT_MIME[normalized]
    except KeyError as exc:
        raise ValueError(
            f"unsupported image format: {image_format!r}, "
            f"expected one of {', '.join(IMAGE_FORMATS)}."
        ) from exc


def sniff_file_type(
    data: bytes,
    default_mime: str = "application/octet-stream",
    default_extension: str = "bin",
) -> tuple[str, str]:
    normalized_default = normalize_mime(default_mime) or "application/octet-stream"
    guessed_type = filetype.guess(data)
    mime = getattr(guessed_type, "mime", "") or normalized_default
    extension = getattr(guessed_type, "extension", "") or default_extension
    return (mime, extension)
