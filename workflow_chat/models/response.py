from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ProgressPayload(BaseModel):
    """Live progress for one chunk, serialised in camelCase for the webview"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chunk: str
    accumulated_text: str
    explanatory_text: Optional[str] = None
    content_type: Optional[Literal["tool_use", "text"]] = None
    timestamp: str


class ChatSuccess(BaseModel):
    type: Literal["success"] = "success"
    full_response: str
    execution_time_ms: float

    @property
    def ok(self) -> bool:
        return True


class ChatFailure(BaseModel):
    type: Literal["error"] = "error"
    code: str
    message: str

    @property
    def ok(self) -> bool:
        return False


# Terminal outcome of a chat request; exactly one per request
ChatResult = Union[ChatSuccess, ChatFailure]


class HealthStatus(BaseModel):
    """Body of ``GET /api/health``"""
    status: str
