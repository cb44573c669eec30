"""SiliconFlow HTTP 客户端"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from ..utils.errors import NodeException, ValidationError
from ..utils.http import JsonSuccessResponse, get_json, post_json
from ..utils.log import logger
from .schema import SILICONFLOW_DEFAULT_BASE_URL, SiliconFlowCredentials
from .utils import build_auth_headers

DEFAULT_TIMEOUT_SEC = 120

CHAT_COMPLETIONS_ROUTE = "/chat/completions"
EMBEDDINGS_ROUTE = "/embeddings"
RERANK_ROUTE = "/rerank"
MODELS_ROUTE = "/models"


@dataclass(slots=True)
class SiliconFlowClient:
    base_url: str
    api_key: str
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    max_retries: int = 0
    """仅对 retryable 错误生效；0 表示不重试"""
    retry_base_delay_sec: float = 1.0
    provider: str = "siliconflow"

    def __post_init__(self) -> None:
        normalized = self.base_url.strip().rstrip("/")
        self.base_url = normalized or SILICONFLOW_DEFAULT_BASE_URL
        if self.max_retries < 0:
            raise ValidationError("max_retries must be >= 0.")

    @classmethod
    def from_credentials(
        cls,
        credentials: SiliconFlowCredentials,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        max_retries: int = 0,
    ) -> SiliconFlowClient:
        return cls(
            base_url=credentials.base_url,
            api_key=credentials.api_key,
            timeout_sec=timeout_sec,
            max_retries=max_retries,
        )

    def _headers(self) -> dict[str, str]:
        if not self.api_key.strip():
            raise ValidationError(
                "SiliconFlow API key is not configured.",
                detail={
                    "provider": self.provider,
                    "base_url": self.base_url,
                },
            )
        return build_auth_headers(self.api_key)

    async def _with_retry(
        self,
        send: Callable[[], Awaitable[JsonSuccessResponse]],
        route: str,
    ) -> JsonSuccessResponse:
        attempt = 0
        while True:
            try:
                return await send()
            except NodeException as exc:
                if not exc.retryable or attempt >= self.max_retries:
                    raise
                delay = self.retry_base_delay_sec * (2**attempt)
                attempt += 1
                logger.warning(
                    "client.retry",
                    {
                        "route": route,
                        "attempt": attempt,
                        "max_retries": self.max_retries,
                        "delay_sec": delay,
                        "error": exc.message,
                    },
                )
                await asyncio.sleep(delay)

    async def post(self, route: str, payload: dict[str, Any]) -> JsonSuccessResponse:
        """统一请求 SiliconFlow 的 POST 路由并返回响应封装对象。"""
        headers = self._headers()
        url = f"{self.base_url}{route}"

        async def send() -> JsonSuccessResponse:
            return await post_json(
                url=url,
                payload=payload,
                headers=headers,
                timeout_sec=self.timeout_sec,
                source="SiliconFlow",
            )

        return await self._with_retry(send, route)

    async def chat_completions(self, payload: dict[str, Any]) -> JsonSuccessResponse:
        return await self.post(CHAT_COMPLETIONS_ROUTE, payload)

    async def embeddings(self, payload: dict[str, Any]) -> JsonSuccessResponse:
        return await self.post(EMBEDDINGS_ROUTE, payload)

    async def rerank(self, payload: dict[str, Any]) -> JsonSuccessResponse:
        return await self.post(RERANK_ROUTE, payload)

    async def list_models(self, sub_type: str | None = None) -> list[str]:
        """列出可用模型 id（按名称排序），`sub_type` 例如 chat / embedding / reranker。"""
        headers = self._headers()
        query = f"?{urlencode({'sub_type': sub_type})}" if sub_type else ""
        url = f"{self.base_url}{MODELS_ROUTE}{query}"

        async def send() -> JsonSuccessResponse:
            return await get_json(
                url=url,
                headers=headers,
                timeout_sec=self.timeout_sec,
                source="SiliconFlow",
            )

        response = await self._with_retry(send, MODELS_ROUTE)
        entries = response["data"].get("data")
        if not isinstance(entries, list):
            return []
        model_ids = {
            entry["id"]
            for entry in entries
            if isinstance(entry, dict) and isinstance(entry.get("id"), str)
        }
        return sorted(model_ids)
