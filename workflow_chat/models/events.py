"""
Stream records sent by the backend on ``POST /api/chat``.

Each ``data:`` line carries one JSON object whose ``type`` field selects the
variant. The set is closed: anything else is dropped by the classifier.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class ChunkEvent(BaseModel):
    """Incremental piece of the assistant response"""
    type: Literal["chunk"] = "chunk"
    content: str
    timestamp: str = ""


class DoneEvent(BaseModel):
    """Successful end of the response"""
    type: Literal["done"] = "done"
    full_response: str
    execution_time_ms: float = 0


class ErrorEvent(BaseModel):
    """Backend-reported failure, ends the response"""
    type: Literal["error"] = "error"
    code: str
    message: str


StreamEvent = Annotated[
    Union[ChunkEvent, DoneEvent, ErrorEvent],
    Field(discriminator="type"),
]

stream_event_adapter = TypeAdapter(StreamEvent)
