from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``"""
    message: str = Field(..., min_length=1)
    request_id: str
