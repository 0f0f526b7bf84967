"""End-to-end tests: the chat stream client against the reference backend."""

import asyncio

import httpx

from workflow_chat.client.dispatcher import ChatStreamClient
from workflow_chat.main import app
from workflow_chat.services.responder import ChatResponder, EchoResponder, default_responder


class ScriptedResponder(ChatResponder):
    def __init__(self, pieces, error=None):
        self.pieces = pieces
        self.error = error

    async def generate(self, message):
        for piece in self.pieces:
            yield piece
        if self.error is not None:
            raise self.error


def run_chat(message, responder=None):
    progress = []

    async def run():
        transport = httpx.ASGITransport(app=app)
        async with ChatStreamClient(base_url="http://testserver/api", transport=transport) as client:
            return await client.send_chat_message(message, "req-e2e", on_progress=progress.append)

    if responder is not None:
        app.dependency_overrides[default_responder] = lambda: responder
    try:
        return asyncio.run(run()), progress
    finally:
        app.dependency_overrides.clear()


def test_echo_round_trip():
    result, progress = run_chat("add a retry node after fetch")

    assert result.ok
    assert result.full_response == "add a retry node after fetch"
    assert result.execution_time_ms >= 0
    assert [p.chunk for p in progress] == ["add ", "a ", "retry ", "node ", "after ", "fetch"]
    assert progress[-1].accumulated_text == "add a retry node after fetch"
    assert all(p.timestamp for p in progress)


def test_multibyte_reply():
    result, progress = run_chat("ok", ScriptedResponder(["Olá ", "🌍"]))
    assert result.full_response == "Olá 🌍"
    assert progress[-1].accumulated_text == "Olá 🌍"


def test_responder_failure_becomes_error_record():
    result, progress = run_chat("hi", ScriptedResponder(["partial"], error=RuntimeError("model crashed")))

    assert not result.ok
    assert result.code == "BACKEND_ERROR"
    assert result.message == "model crashed"
    assert [p.chunk for p in progress] == ["partial"]


def test_empty_message_is_rejected():
    result, progress = run_chat("")
    assert result.code == "NETWORK_ERROR"
    assert result.message == "HTTP 422"
    assert progress == []


def test_health_probe():
    async def run():
        transport = httpx.ASGITransport(app=app)
        async with ChatStreamClient(base_url="http://testserver/api", transport=transport) as client:
            return await client.check_backend_health()

    assert asyncio.run(run()) is True


def test_echo_responder_pieces():
    async def collect():
        return [piece async for piece in EchoResponder().generate("  one two\nthree ")]

    assert asyncio.run(collect()) == ["one ", "two\n", "three "]
