from .blob import BinaryAttachment, ResourceBlob
from .image_source import ImageSource, ResolvedImage, resolve_image_sources

__all__ = [
    "BinaryAttachment",
    "ImageSource",
    "ResolvedImage",
    "ResourceBlob",
    "resolve_image_sources",
]
