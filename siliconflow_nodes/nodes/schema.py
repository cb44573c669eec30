from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Literal, get_args

from ..resources import ImageSource
from ..utils.errors import ValidationError

ChatRole = Literal["system", "user", "assistant"]
OutputMode = Literal["simple", "detailed"]
EncodingFormat = Literal["float", "base64"]
ResponseFormatType = Literal["text", "json_object"]

CHAT_ROLES: tuple[str, ...] = get_args(ChatRole)
OUTPUT_MODES: tuple[str, ...] = get_args(OutputMode)
ENCODING_FORMATS: tuple[str, ...] = get_args(EncodingFormat)
RESPONSE_FORMAT_TYPES: tuple[str, ...] = get_args(ResponseFormatType)

MAX_VISION_IMAGES = 9
MAX_OVERLAP_TOKENS = 80


def _require_text(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value


def _require_choice(value: str, choices: tuple[str, ...], name: str) -> str:
    if value not in choices:
        raise ValidationError(
            f"Unsupported {name}: {value}",
            detail={"supported": list(choices)},
        )
    return value


@dataclass(slots=True, frozen=True)
class ChatMessage:
    role: str
    content: str

    def __post_init__(self) -> None:
        _require_choice(self.role, CHAT_ROLES, "message role")

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(slots=True)
class ChatParams:
    """可选生成参数；None 表示用户未设置，构造请求时整体省略。"""

    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    min_p: float | None = None
    frequency_penalty: float | None = None
    n: int | None = None
    enable_thinking: bool | None = None
    thinking_budget: int | None = None
    stream: bool | None = None
    stop: str | None = None
    """逗号分隔的停止序列"""
    response_format: str | None = None
    """response_format.type"""

    def __post_init__(self) -> None:
        if self.response_format is not None:
            _require_choice(self.response_format, RESPONSE_FORMAT_TYPES, "response format")


CHAT_PARAM_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(ChatParams))
# 原样透传到请求体的字段（stop/response_format 需要额外转换）
PASSTHROUGH_CHAT_PARAM_FIELDS: tuple[str, ...] = tuple(
    name for name in CHAT_PARAM_FIELDS if name not in {"stop", "response_format"}
)


@dataclass(slots=True)
class ChatConfig:
    model: str
    messages: list[ChatMessage] = field(default_factory=list)
    prompt: str = ""
    output_mode: str = "simple"
    params: ChatParams = field(default_factory=ChatParams)

    def __post_init__(self) -> None:
        _require_text(self.model, "Model must be provided")
        _require_choice(self.output_mode, OUTPUT_MODES, "output mode")
        if not self.messages and not (self.prompt or "").strip():
            raise ValidationError("Either messages or prompt must be provided")


@dataclass(slots=True)
class VisionConfig:
    model: str
    images: list[ImageSource]
    prompt: str
    params: ChatParams = field(default_factory=ChatParams)

    def __post_init__(self) -> None:
        _require_text(self.model, "Model must be provided")
        if not self.images:
            raise ValidationError("At least one image must be provided")
        if len(self.images) > MAX_VISION_IMAGES:
            raise ValidationError(
                f"At most {MAX_VISION_IMAGES} images are supported, got {len(self.images)}"
            )
        _require_text(self.prompt, "Prompt must be provided")


@dataclass(slots=True)
class EmbeddingsConfig:
    model: str
    input: str | list[str]
    encoding_format: str | None = None

    def __post_init__(self) -> None:
        _require_text(self.model, "Model must be provided")
        if isinstance(self.input, list):
            if not self.input or not all(isinstance(text, str) for text in self.input):
                raise ValidationError("Input must be a non-empty list of strings")
        else:
            _require_text(self.input, "Input must be provided")
        if self.encoding_format is not None:
            _require_choice(self.encoding_format, ENCODING_FORMATS, "encoding format")


@dataclass(slots=True)
class RerankParams:
    top_n: int | None = None
    return_documents: bool | None = None
    max_chunks_per_doc: int | None = None
    overlap_tokens: int | None = None

    def __post_init__(self) -> None:
        if self.top_n is not None and self.top_n < 1:
            raise ValidationError("top_n must be >= 1")
        if self.overlap_tokens is not None and self.overlap_tokens > MAX_OVERLAP_TOKENS:
            raise ValidationError(f"overlap_tokens must be <= {MAX_OVERLAP_TOKENS}")


RERANK_PARAM_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(RerankParams))


@dataclass(slots=True)
class RerankConfig:
    model: str
    query: str
    documents: list[str]
    params: RerankParams = field(default_factory=RerankParams)

    def __post_init__(self) -> None:
        _require_text(self.model, "Model must be provided")
        _require_text(self.query, "Query must be provided")
        if not self.documents:
            raise ValidationError("At least one document must be provided")
