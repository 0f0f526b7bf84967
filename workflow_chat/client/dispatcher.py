"""
HTTP client for the workflow backend's chat stream.

``ChatStreamClient.open_stream`` returns a ``ChatStream``: an async iterator of
ProgressPayload objects that drives one request through

    transport bytes -> ByteDecoder -> LineFramer -> EventClassifier -> ResultAggregator

and leaves exactly one terminal ChatResult in ``stream.result``. Reading only
happens when the consumer asks for the next payload, so a slow consumer holds
the producer back instead of buffering the stream.

Usage:
    async with ChatStreamClient() as client:
        async with client.open_stream("Add a retry node", request_id) as stream:
            async for progress in stream:
                render(progress.accumulated_text)
        result = stream.result

        # or, callback style
        result = await client.send_chat_message("Add a retry node", request_id, on_progress=render)
"""

import asyncio
import logging
import uuid
from typing import Any, AsyncIterator, Awaitable, Callable, Coroutine, Optional

import httpx

from workflow_chat.client.aggregator import ResultAggregator
from workflow_chat.client.classifier import DropHook, EventClassifier
from workflow_chat.config import settings
from workflow_chat.models.request import ChatRequest
from workflow_chat.models.response import ChatFailure, ChatResult, HealthStatus, ProgressPayload
from workflow_chat.utils.exceptions import (
    REQUEST_FAILED,
    ChatStreamError,
    raise_network_error,
    raise_stream_error,
)
from workflow_chat.utils.sse import StreamState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressPayload], None]

# Marker returned by a network step that lost the race against cancellation
_CANCELLED = object()


class CancelToken:
    """Cooperative cancellation signal shared between a caller and a stream."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


async def _next_read(reader: AsyncIterator[bytes]) -> Optional[bytes]:
    """Next transport read, or None at end of stream."""
    try:
        return await reader.__anext__()
    except StopAsyncIteration:
        return None


async def _until_cancelled(
    step: Coroutine[Any, Any, Any],
    token: CancelToken,
    discard: Optional[Callable[[Any], Awaitable[Any]]] = None,
) -> Any:
    """Await one network step unless the token fires first.

    A pending step is abandoned as soon as cancellation is requested, so the
    caller can release the connection without waiting on the network. A result
    that arrives together with the cancellation is handed to ``discard``.
    """
    if token.cancelled:
        step.close()
        return _CANCELLED

    task = asyncio.ensure_future(step)
    cancelled = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({task, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancelled.cancel()
        if not task.done():
            task.cancel()
            await asyncio.wait({task})

    if cancelled in done or token.cancelled:
        if not task.cancelled():
            if task.exception() is not None:
                logger.debug(f"Ignoring network error after cancellation: {task.exception()}")
            elif discard is not None:
                await discard(task.result())
        return _CANCELLED
    return task.result()


class ChatStream:
    """
    One chat request, consumed as an async sequence of progress payloads.

    Owns its framing state, classifier and accumulated text; nothing is shared
    with other streams, so any number may run concurrently on one client.
    A stream can be iterated once. After iteration ``result`` holds the
    terminal ChatResult, or None when the stream was cancelled.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        message: str,
        request_id: str,
        cancel_token: Optional[CancelToken] = None,
        on_drop: Optional[DropHook] = None,
    ):
        self._http = http
        self.message = message
        self.request_id = request_id
        self.cancel_token = cancel_token or CancelToken()
        self.result: Optional[ChatResult] = None
        self._classifier = EventClassifier(on_drop=on_drop)
        self._iterator: Optional[AsyncIterator[ProgressPayload]] = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_token.cancelled

    @property
    def dropped_frames(self) -> int:
        """Number of malformed or unknown data frames skipped so far."""
        return self._classifier.dropped_frames

    def cancel(self) -> None:
        """Stop the stream; no further payloads and no terminal result are produced."""
        self.cancel_token.cancel()

    def __aiter__(self) -> AsyncIterator[ProgressPayload]:
        if self._iterator is None:
            self._iterator = self._run()
        return self._iterator

    async def aclose(self) -> None:
        """Release the response if iteration was abandoned part way."""
        if self._iterator is not None:
            await self._iterator.aclose()

    async def __aenter__(self) -> "ChatStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _run(self) -> AsyncIterator[ProgressPayload]:
        if self.cancelled:
            logger.info(f"Chat request {self.request_id} cancelled before start")
            return

        state = StreamState()
        aggregator = ResultAggregator()
        logger.info(f"Chat request {self.request_id} started")

        try:
            # The backend owns validation of the body
            body = ChatRequest.model_construct(message=self.message, request_id=self.request_id)
            request = self._http.build_request("POST", "/chat", json=body.model_dump())
            # Waiting for response headers is cancellable like any body read
            response = await _until_cancelled(
                self._http.send(request, stream=True),
                self.cancel_token,
                discard=httpx.Response.aclose,
            )
            if response is _CANCELLED:
                logger.info(f"Chat request {self.request_id} cancelled before response")
                return

            try:
                if response.status_code != 200:
                    raise_network_error(response.status_code)

                reader = response.aiter_bytes()
                at_eof = False
                while not (aggregator.resolved or at_eof or self.cancelled):
                    try:
                        data = await _until_cancelled(_next_read(reader), self.cancel_token)
                    except httpx.StreamError as e:
                        raise_stream_error(str(e) or "No body")

                    if data is _CANCELLED:
                        break
                    if data is None:
                        at_eof = True
                        frames = state.finish()
                    else:
                        frames = state.feed(data)

                    for frame in frames:
                        event = self._classifier.classify(frame)
                        if event is None:
                            continue
                        payload = aggregator.apply(event)
                        if payload is not None:
                            yield payload
                            if self.cancelled:
                                break
                        if aggregator.resolved:
                            break
            finally:
                await response.aclose()

            if self.cancelled:
                logger.info(
                    f"Chat request {self.request_id} cancelled after {aggregator.chunk_count} chunk(s)"
                )
                return
            self._resolve(aggregator.finish())

        except ChatStreamError as e:
            self._resolve(ChatFailure(code=e.code, message=e.message))
        except Exception as e:
            logger.exception(f"Chat request {self.request_id} failed")
            self._resolve(ChatFailure(code=REQUEST_FAILED, message=str(e) or type(e).__name__))
        finally:
            if self.dropped_frames:
                logger.warning(
                    f"Chat request {self.request_id}: dropped {self.dropped_frames} malformed frame(s)"
                )

    def _resolve(self, result: ChatResult) -> None:
        # A cancelled request never reports an outcome
        if self.cancelled or self.result is not None:
            return
        self.result = result
        if result.ok:
            logger.info(
                f"Chat request {self.request_id} completed in {result.execution_time_ms}ms"
            )
        else:
            logger.warning(f"Chat request {self.request_id} failed: {result.code} {result.message}")


class ChatStreamClient:
    """Client for the backend's chat stream and liveness endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        connect_timeout: Optional[float] = None,
        health_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.health_timeout = health_timeout if health_timeout is not None else settings.health_timeout
        connect = connect_timeout if connect_timeout is not None else settings.connect_timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            # Chat bodies are unbounded; only connecting is time-limited
            timeout=httpx.Timeout(None, connect=connect),
            transport=transport,
        )

    async def __aenter__(self) -> "ChatStreamClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.cleanup()

    async def cleanup(self):
        """Cleanup HTTP client resources."""
        await self._client.aclose()

    def open_stream(
        self,
        message: str,
        request_id: Optional[str] = None,
        cancel_token: Optional[CancelToken] = None,
        on_drop: Optional[DropHook] = None,
    ) -> ChatStream:
        """Prepare a chat request; nothing is sent until the stream is iterated."""
        return ChatStream(
            self._client,
            message,
            request_id or str(uuid.uuid4()),
            cancel_token=cancel_token,
            on_drop=on_drop,
        )

    async def send_chat_message(
        self,
        message: str,
        request_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Optional[ChatResult]:
        """
        Send a chat message and wait for the terminal result.

        ``on_progress`` is called synchronously for every chunk, in arrival
        order, before the result is returned. A callback that raises is logged
        and the stream keeps going. Returns None if the request was cancelled
        through ``cancel_token``.
        """
        stream = self.open_stream(message, request_id, cancel_token=cancel_token)
        try:
            async for payload in stream:
                if not on_progress:
                    continue
                try:
                    on_progress(payload)
                except Exception:
                    logger.exception(f"Progress callback failed for chat request {stream.request_id}")
        finally:
            await stream.aclose()
        return stream.result

    async def check_backend_health(self) -> bool:
        """Liveness probe: True only if the backend answers ``{"status": "ok"}``."""
        try:
            response = await self._client.get("/health", timeout=self.health_timeout)
            health = HealthStatus.model_validate(response.json())
        except Exception as e:
            logger.debug(f"Backend health check failed: {e}")
            return False
        return health.status == "ok"
