"""SiliconFlow 节点的批处理入口：逐个 item 构造请求、调用 API 并整形输出。"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..providers.client import DEFAULT_TIMEOUT_SEC, SiliconFlowClient
from ..providers.config import read_credentials
from ..utils.errors import NodeExecutionError, ValidationError, error_message
from ..utils.id import generate_run_id
from ..utils.log import logger
from . import keys
from .chat import process_chat
from .embeddings import process_embeddings
from .host import ExecuteContext, NodeItem, OutputRecord
from .parameters import (
    read_chat_config,
    read_embeddings_config,
    read_rerank_config,
    read_vision_config,
)
from .rerank import process_rerank
from .vision import process_vision

ConfigReader = Callable[[ExecuteContext, int], Any]
ItemProcessor = Callable[[SiliconFlowClient, Any, NodeItem], Awaitable[tuple[Any, dict[str, Any]]]]


@dataclass(slots=True, frozen=True)
class ResourceOperation:
    resource: str
    operation: str
    read_config: ConfigReader
    process: ItemProcessor


async def _process_chat_item(client: SiliconFlowClient, config: Any, item: NodeItem):
    return await process_chat(client, config)


async def _process_vision_item(client: SiliconFlowClient, config: Any, item: NodeItem):
    return await process_vision(client, config, item.binary)


async def _process_embeddings_item(client: SiliconFlowClient, config: Any, item: NodeItem):
    return await process_embeddings(client, config)


async def _process_rerank_item(client: SiliconFlowClient, config: Any, item: NodeItem):
    return await process_rerank(client, config)


_OPERATIONS: dict[tuple[str, str], ResourceOperation] = {
    (op.resource, op.operation): op
    for op in (
        ResourceOperation(
            keys.RESOURCE_CHAT, keys.OPERATION_COMPLETE, read_chat_config, _process_chat_item
        ),
        ResourceOperation(
            keys.RESOURCE_VISION, keys.OPERATION_ANALYZE, read_vision_config, _process_vision_item
        ),
        ResourceOperation(
            keys.RESOURCE_EMBEDDINGS,
            keys.OPERATION_CREATE,
            read_embeddings_config,
            _process_embeddings_item,
        ),
        ResourceOperation(
            keys.RESOURCE_RERANK, keys.OPERATION_CREATE, read_rerank_config, _process_rerank_item
        ),
    )
}


def resolve_operation(resource: str, operation: str) -> ResourceOperation:
    found = _OPERATIONS.get((resource, operation))
    if found is None:
        raise ValidationError(
            f"Unsupported operation: {resource}/{operation}",
            detail={"supported": [f"{r}/{o}" for r, o in _OPERATIONS]},
        )
    return found


@dataclass(slots=True)
class SiliconFlowNode:
    """
    SiliconFlow 节点。

    - 每批只读取一次凭据，并为整批构建一个 client。
    - item 严格顺序处理，每个 item 产出一条 OutputRecord，`paired_item` 指向输入下标。
    - continue-on-fail 时失败 item 产出 `{"error": ...}` 记录；否则立即中断。
    """

    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    max_retries: int = 0

    async def _build_client(self, context: ExecuteContext) -> SiliconFlowClient:
        raw_credentials = await context.get_credentials()
        try:
            credentials = read_credentials(raw_credentials)
        except (KeyError, TypeError) as exc:
            raise ValidationError(
                f"Invalid SiliconFlow credentials: {exc.args[0] if exc.args else exc}"
            ) from exc
        return SiliconFlowClient.from_credentials(
            credentials,
            timeout_sec=self.timeout_sec,
            max_retries=self.max_retries,
        )

    async def run(self, context: ExecuteContext) -> AsyncIterator[OutputRecord]:
        """逐个产出结果；中断时已产出的记录仍归宿主所有。"""
        items = context.get_input_items()
        if not items:
            return

        resource = context.get_node_parameter(keys.PARAM_RESOURCE, 0)
        operation = context.get_node_parameter(keys.PARAM_OPERATION, 0)
        resource_operation = resolve_operation(resource, operation)
        client = await self._build_client(context)
        fail_soft = context.continue_on_fail()

        batch_log = logger.bind(
            run_id=generate_run_id(),
            resource=resource,
            operation=operation,
        )
        started_at = time.perf_counter()
        failed = 0
        batch_log.info(
            "node.batch_started",
            {"items": len(items), "continue_on_fail": fail_soft},
        )

        for index, item in enumerate(items):
            try:
                config = resource_operation.read_config(context, index)
                shaped, raw = await resource_operation.process(client, config, item)
            except Exception as exc:
                failed += 1
                batch_log.warning(
                    "node.item_failed",
                    {
                        "item_index": index,
                        "error_type": type(exc).__name__,
                        "error": error_message(exc),
                    },
                )
                if not fail_soft:
                    raise
                yield OutputRecord.from_error(error_message(exc), paired_item=index)
                continue
            yield OutputRecord(json=shaped, paired_item=index, raw_response=raw)

        batch_log.info(
            "node.batch_finished",
            {
                "items": len(items),
                "failed": failed,
                "elapsed_ms": int((time.perf_counter() - started_at) * 1000),
            },
        )

    async def execute(self, context: ExecuteContext) -> list[OutputRecord]:
        """收集全部结果；fail-fast 中断时抛出携带部分结果的 NodeExecutionError。"""
        records: list[OutputRecord] = []
        try:
            async for record in self.run(context):
                records.append(record)
        except Exception as exc:
            raise NodeExecutionError(
                error_message(exc),
                item_index=len(records),
                partial_results=records,
            ) from exc
        return records
