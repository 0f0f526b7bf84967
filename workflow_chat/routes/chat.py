"""
Chat route of the reference backend.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from workflow_chat.models.request import ChatRequest
from workflow_chat.services.responder import ChatResponder, default_responder, stream_chat_records

router = APIRouter()


@router.post("/chat")
async def chat(
    request: ChatRequest,
    responder: ChatResponder = Depends(default_responder),
):
    """
    POST /api/chat - stream the reply to one message

    Returns a chunked text body of ``data:`` records:
    - chunk: {content, timestamp}
    - done: {full_response, execution_time_ms}
    - error: {code, message}
    """
    return StreamingResponse(
        stream_chat_records(responder, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
