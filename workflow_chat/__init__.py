"""
Streaming chat client for the visual workflow editor's backend.
"""

from workflow_chat.client import CancelToken, ChatStream, ChatStreamClient
from workflow_chat.models.response import ChatFailure, ChatResult, ChatSuccess, ProgressPayload

__all__ = [
    "CancelToken",
    "ChatFailure",
    "ChatResult",
    "ChatStream",
    "ChatStreamClient",
    "ChatSuccess",
    "ProgressPayload",
]
