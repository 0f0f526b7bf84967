import logging
from enum import Enum
from typing import List, Optional

from workflow_chat.models.events import ChunkEvent, DoneEvent, ErrorEvent, StreamEvent
from workflow_chat.models.response import ChatFailure, ChatResult, ChatSuccess, ProgressPayload
from workflow_chat.utils.exceptions import INCOMPLETE
from workflow_chat.utils.time import utc_timestamp

logger = logging.getLogger(__name__)


class TextAccumulator:
    """
    Append-only buffer for the response text of one request.

    Pieces are only ever appended. ``text`` joins the pending pieces and keeps
    the result as the single stored piece, so reading after every chunk copies
    the whole text each time (quadratic in the number of chunks, like plain
    concatenation). Growth is unbounded, matching the response body. The buffer
    is owned by one request and dropped when that request resolves.
    """

    def __init__(self):
        self._parts: List[str] = []
        self._length = 0

    def append(self, piece: str) -> None:
        if piece:
            self._parts.append(piece)
            self._length += len(piece)

    @property
    def text(self) -> str:
        if len(self._parts) > 1:
            self._parts = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    def __len__(self) -> int:
        return self._length


class AggregatorState(str, Enum):
    STREAMING = "streaming"
    RESOLVED = "resolved"


class ResultAggregator:
    """
    Folds stream events into progress payloads and one terminal result.

    ``apply`` returns a ProgressPayload for chunk events and None for terminal
    events. After a terminal event the aggregator is resolved and the driver
    must stop reading.
    """

    def __init__(self):
        self.state = AggregatorState.STREAMING
        self.result: Optional[ChatResult] = None
        self.accumulated = TextAccumulator()
        self.chunk_count = 0

    @property
    def resolved(self) -> bool:
        return self.state is AggregatorState.RESOLVED

    def apply(self, event: StreamEvent) -> Optional[ProgressPayload]:
        if self.resolved:
            raise RuntimeError(f"Cannot apply {event.type!r} event: result already resolved")

        if isinstance(event, ChunkEvent):
            self.accumulated.append(event.content)
            self.chunk_count += 1
            text = self.accumulated.text
            return ProgressPayload(
                chunk=event.content,
                accumulated_text=text,
                explanatory_text=text,
                content_type="text",
                timestamp=event.timestamp or utc_timestamp(),
            )

        if isinstance(event, DoneEvent):
            # full_response is reported by the backend and is not checked
            # against the accumulated chunks
            self._resolve(
                ChatSuccess(
                    full_response=event.full_response,
                    execution_time_ms=event.execution_time_ms,
                )
            )
        elif isinstance(event, ErrorEvent):
            self._resolve(ChatFailure(code=event.code, message=event.message))
        return None

    def finish(self) -> ChatResult:
        """Resolve at end of stream; a stream without a terminal record is incomplete."""
        if not self.resolved:
            logger.warning(f"Stream ended after {self.chunk_count} chunk(s) without a done/error record")
            self._resolve(ChatFailure(code=INCOMPLETE, message="Stream ended unexpectedly"))
        return self.result

    def _resolve(self, result: ChatResult) -> None:
        self.result = result
        self.state = AggregatorState.RESOLVED
