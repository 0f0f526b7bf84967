"""
Chat stream failure helpers to keep the dispatcher's error paths uniform.

Every failure kind raised here is caught at the dispatcher boundary and turned
into a ``ChatFailure`` result; none of them reach the caller as an exception.

Usage:
    from workflow_chat.utils.exceptions import raise_network_error

    raise_network_error(503)
"""

from typing import NoReturn

# Error codes carried by ChatFailure.code
NETWORK_ERROR = "NETWORK_ERROR"
STREAM_ERROR = "STREAM_ERROR"
INCOMPLETE = "INCOMPLETE"
REQUEST_FAILED = "REQUEST_FAILED"


class ChatStreamError(Exception):
    """A request-level failure with a wire-compatible error code."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"ChatStreamError(code={self.code!r}, message={self.message!r})"


def raise_network_error(status_code: int) -> NoReturn:
    """Raise for a non-success HTTP status on the initial request."""
    raise ChatStreamError(NETWORK_ERROR, f"HTTP {status_code}")


def raise_stream_error(detail: str = "No body") -> NoReturn:
    """Raise when the response body cannot be read."""
    raise ChatStreamError(STREAM_ERROR, detail)
