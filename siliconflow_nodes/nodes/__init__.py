from .executor import SiliconFlowNode, resolve_operation
from .host import ExecuteContext, NodeItem, OutputRecord, StaticExecuteContext
from .schema import (
    ChatConfig,
    ChatMessage,
    ChatParams,
    EmbeddingsConfig,
    RerankConfig,
    RerankParams,
    VisionConfig,
)

__all__ = [
    "ChatConfig",
    "ChatMessage",
    "ChatParams",
    "EmbeddingsConfig",
    "ExecuteContext",
    "NodeItem",
    "OutputRecord",
    "RerankConfig",
    "RerankParams",
    "SiliconFlowNode",
    "StaticExecuteContext",
    "VisionConfig",
    "resolve_operation",
]
