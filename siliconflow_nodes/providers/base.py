from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from .schema import ChatModelRequest, ChatReply, ModelCapabilities


class ChatModel(ABC):
    """agent 框架使用的统一 chat model 接口。"""

    provider: str
    model: str
    capabilities: ClassVar[ModelCapabilities]

    @abstractmethod
    async def complete(self, request: ChatModelRequest) -> ChatReply: ...
