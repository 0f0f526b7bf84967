import codecs
import logging
from dataclasses import dataclass, field
from typing import List

import orjson

logger = logging.getLogger(__name__)

# Constants
SSE_DATA_PREFIX = "data: "
FRAME_DELIMITER = "\n"


def format_sse(data: dict) -> str:
    """Format one stream record as a ``data:`` line followed by a blank separator."""
    return f"{SSE_DATA_PREFIX}{orjson.dumps(data).decode()}\n\n"


class ByteDecoder:
    """
    Incremental UTF-8 decoder for transport reads.

    A multi-byte character split across two reads is held back until the rest
    of its bytes arrive. Malformed bytes inside the stream decode to U+FFFD so
    the loss stays visible; a truncated sequence left at end of stream is dropped.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    def decode(self, data: bytes) -> str:
        return self._decoder.decode(data, final=False)

    def flush(self) -> str:
        """Decode whatever is still buffered at end of stream, dropping a truncated tail."""
        self._decoder.errors = "ignore"
        return self._decoder.decode(b"", final=True)


class LineFramer:
    """
    Splits decoded text into complete, newline-terminated frames.

    The text after the last delimiter is kept as the remainder until more
    input arrives, so ``remainder`` never contains a delimiter.
    """

    def __init__(self):
        self._buffer = ""

    @property
    def remainder(self) -> str:
        return self._buffer

    def feed(self, text: str) -> List[str]:
        """Append text and return the frames completed by it, in arrival order."""
        self._buffer += text
        if FRAME_DELIMITER not in text:
            return []

        lines = self._buffer.split(FRAME_DELIMITER)
        self._buffer = lines.pop()

        frames = []
        for line in lines:
            # Tolerate CRLF framing
            if line.endswith("\r"):
                line = line[:-1]
            if line:
                frames.append(line)
        return frames


@dataclass
class StreamState:
    """
    Per-request framing state carried between transport reads.

    Owned by exactly one request and dropped when that request resolves.
    """

    decoder: ByteDecoder = field(default_factory=ByteDecoder)
    framer: LineFramer = field(default_factory=LineFramer)
    bytes_received: int = 0

    def feed(self, data: bytes) -> List[str]:
        """Decode one transport read and return the frames it completes."""
        self.bytes_received += len(data)
        return self.framer.feed(self.decoder.decode(data))

    def finish(self) -> List[str]:
        """Flush the decoder at end of stream.

        Returns any frames completed by the flushed text. An unterminated
        trailing frame is never returned.
        """
        frames = self.framer.feed(self.decoder.flush())
        if self.framer.remainder:
            logger.debug(
                f"Discarding {len(self.framer.remainder)} chars of unterminated frame at end of stream"
            )
        return frames
