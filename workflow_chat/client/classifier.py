import logging
from typing import Callable, Optional

import orjson
from pydantic import ValidationError

from workflow_chat.models.events import StreamEvent, stream_event_adapter
from workflow_chat.utils.sse import SSE_DATA_PREFIX

logger = logging.getLogger(__name__)

# Discriminator values the classifier understands
KNOWN_EVENT_TYPES = frozenset({"chunk", "done", "error"})

# Called with (frame, reason) whenever a data frame is dropped
DropHook = Callable[[str, str], None]


class EventClassifier:
    """
    Turns ``data:`` frames into stream events.

    A malformed frame is noise, not a failure: it produces no event and the
    stream keeps going. Every drop is counted in ``dropped_frames``, logged at
    debug level and passed to ``on_drop`` when one is set.
    """

    def __init__(self, on_drop: Optional[DropHook] = None):
        self.on_drop = on_drop
        self.dropped_frames = 0

    def classify(self, frame: str) -> Optional[StreamEvent]:
        if not frame.startswith(SSE_DATA_PREFIX):
            return None

        try:
            data = orjson.loads(frame[len(SSE_DATA_PREFIX):])
        except orjson.JSONDecodeError as e:
            self._drop(frame, f"invalid json: {e}")
            return None

        if not isinstance(data, dict) or data.get("type") not in KNOWN_EVENT_TYPES:
            event_type = data.get("type") if isinstance(data, dict) else None
            self._drop(frame, f"unknown event type: {event_type!r}")
            return None

        try:
            return stream_event_adapter.validate_python(data)
        except ValidationError as e:
            self._drop(frame, f"invalid {data['type']} record: {e.error_count()} error(s)")
            return None

    def _drop(self, frame: str, reason: str) -> None:
        self.dropped_frames += 1
        logger.debug(f"Dropped stream frame ({reason}): {frame[:200]}")
        if self.on_drop:
            self.on_drop(frame, reason)
