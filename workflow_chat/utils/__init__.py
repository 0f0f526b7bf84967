from workflow_chat.utils.sse import ByteDecoder, LineFramer, StreamState, format_sse

__all__ = ["ByteDecoder", "LineFramer", "StreamState", "format_sse"]
