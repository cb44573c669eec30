from __future__ import annotations

import base64
import binascii
from typing import NamedTuple


def normalize_mime(value: str) -> str:
    return value.strip().lower()


def normalize_base64_payload(value: str) -> str:
    """去掉首尾空白、`base64://` 前缀与内部换行；空负载抛出 ValueError。"""
    normalized = value.strip()
    if normalized.startswith("base64://"):
        normalized = normalized.removeprefix("base64://")
    normalized = "".join(normalized.split())
    if not normalized:
        raise ValueError("base64 payload is empty.")
    return normalized


def decode_base64_payload(value: str) -> bytes:
    """base64 => bytes 同时校验 value 是否有效"""
    normalized = normalize_base64_payload(value)
    try:
        return base64.b64decode(normalized, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise ValueError("base64 payload is invalid.") from exc


def encode_base64_payload(data: bytes) -> str:
    """bytes => base64"""
    return base64.b64encode(data).decode("ascii")


class DataUrlHeader(NamedTuple):
    mime: str
    is_base64: bool
    payload: str


def parse_data_url_header(data_url: str) -> DataUrlHeader:
    """解析 data url 头部"""
    normalized_data_url = data_url.strip()
    if not normalized_data_url.startswith("data:"):
        raise ValueError("data_url must start with 'data:'.")

    # data:[meta],[payload]，meta 形如 image/png;base64
    header_and_data = normalized_data_url.removeprefix("data:")
    try:
        meta, payload = header_and_data.split(",", 1)
    except ValueError as exc:
        raise ValueError("data_url is invalid.") from exc

    tokens = [segment.strip() for segment in meta.split(";") if segment.strip()]
    is_base64 = any(token.lower() == "base64" for token in tokens)

    mime = ""
    if tokens:
        first = tokens[0]
        if "/" in first and "=" not in first and first.lower() != "base64":
            mime = normalize_mime(first)

    return DataUrlHeader(mime=mime, is_base64=is_base64, payload=payload)


def strip_data_url_header(value: str) -> str:
    """若输入是 base64 data URL，则只保留负载部分；否则原样返回。"""
    if not value.strip().startswith("data:"):
        return value
    header = parse_data_url_header(value)
    if not header.is_base64:
        raise ValueError("data_url must contain ';base64'.")
    return header.payload


def build_data_url(mime: str, base64_payload: str) -> str:
    """根据 MIME 与 base64 负载组装 data URL。"""
    normalized_mime = normalize_mime(mime)
    if not normalized_mime:
        raise ValueError("mime is required to build data URL.")
    normalized_base64 = normalize_base64_payload(base64_payload)
    return f"data:{normalized_mime};base64,{normalized_base64}"
