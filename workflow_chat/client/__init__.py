from workflow_chat.client.aggregator import ResultAggregator, TextAccumulator
from workflow_chat.client.classifier import EventClassifier
from workflow_chat.client.dispatcher import CancelToken, ChatStream, ChatStreamClient

__all__ = [
    "CancelToken",
    "ChatStream",
    "ChatStreamClient",
    "EventClassifier",
    "ResultAggregator",
    "TextAccumulator",
]
