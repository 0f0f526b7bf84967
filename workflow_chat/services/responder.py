"""
Reference chat responder for the development backend.

Produces the record sequence the client expects on ``POST /api/chat``:
zero or more ``chunk`` records, then exactly one ``done`` or ``error`` record.
"""

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import AsyncIterator

from workflow_chat.config import settings
from workflow_chat.models.events import ChunkEvent, DoneEvent, ErrorEvent
from workflow_chat.models.request import ChatRequest
from workflow_chat.utils.sse import format_sse
from workflow_chat.utils.time import utc_timestamp

logger = logging.getLogger(__name__)

# Error code sent when a responder raises mid-stream
BACKEND_ERROR = "BACKEND_ERROR"


class ChatResponder(ABC):
    """Source of assistant text for the reference backend"""

    @abstractmethod
    def generate(self, message: str) -> AsyncIterator[str]:
        """Yield the reply in pieces"""
        pass


class EchoResponder(ChatResponder):
    """Echoes the message back word by word."""

    def __init__(self, delay_ms: int = 0):
        self.delay = delay_ms / 1000.0

    async def generate(self, message: str) -> AsyncIterator[str]:
        for piece in re.findall(r"\S+\s*", message):
            if self.delay:
                await asyncio.sleep(self.delay)
            yield piece


def default_responder() -> ChatResponder:
    return EchoResponder(delay_ms=settings.chunk_delay_ms)


async def stream_chat_records(responder: ChatResponder, request: ChatRequest) -> AsyncIterator[str]:
    """Run the responder and yield its output as ``data:`` records."""
    started = time.monotonic()
    full_response = ""
    try:
        async for piece in responder.generate(request.message):
            full_response += piece
            chunk = ChunkEvent(content=piece, timestamp=utc_timestamp())
            yield format_sse(chunk.model_dump())
    except Exception as e:
        logger.exception(f"Responder failed for request {request.request_id}")
        error = ErrorEvent(code=BACKEND_ERROR, message=str(e))
        yield format_sse(error.model_dump())
        return

    elapsed_ms = round((time.monotonic() - started) * 1000)
    done = DoneEvent(full_response=full_response, execution_time_ms=elapsed_ms)
    yield format_sse(done.model_dump())
