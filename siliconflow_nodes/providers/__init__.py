from .base import ChatModel
from .chat_model import BoundChatModel, SiliconFlowChatModel, bind_tools, build_chat_model
from .client import SiliconFlowClient
from .config import read_chat_model_options, read_credentials

__all__ = [
    "BoundChatModel",
    "ChatModel",
    "SiliconFlowChatModel",
    "SiliconFlowClient",
    "bind_tools",
    "build_chat_model",
    "read_chat_model_options",
    "read_credentials",
]
