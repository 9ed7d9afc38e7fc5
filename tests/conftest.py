"""Shared fixtures and stream builders for the Counsel tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from counsel.events.bus import EventBus
from counsel.stores.decision import SqliteDecisionStore
from counsel.stores.profile import MarkdownProfileStore
from counsel.types import GatewayEvent


# ---------------------------------------------------------------------------
# Stream builders
# ---------------------------------------------------------------------------

def sse_event(event_type: str, data: dict[str, Any]) -> str:
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"


def sse_text_block(index: int, *texts: str) -> str:
    parts = [sse_event("content_block_start", {
        "type": "content_block_start",
        "index": index,
        "content_block": {"type": "text", "text": ""},
    })]
    for text in texts:
        parts.append(sse_event("content_block_delta", {
            "type": "content_block_delta",
            "index": index,
            "delta": {"type": "text_delta", "text": text},
        }))
    parts.append(sse_event("content_block_stop", {"type": "content_block_stop", "index": index}))
    return "".join(parts)


def sse_tool_block(index: int, tool_id: str, name: str, *fragments: str) -> str:
    parts = [sse_event("content_block_start", {
        "type": "content_block_start",
        "index": index,
        "content_block": {"type": "tool_use", "id": tool_id, "name": name, "input": {}},
    })]
    for fragment in fragments:
        parts.append(sse_event("content_block_delta", {
            "type": "content_block_delta",
            "index": index,
            "delta": {"type": "input_json_delta", "partial_json": fragment},
        }))
    parts.append(sse_event("content_block_stop", {"type": "content_block_stop", "index": index}))
    return "".join(parts)


def sse_message(*blocks: str) -> bytes:
    """Wrap content blocks in message_start / message_stop."""
    head = sse_event("message_start", {"type": "message_start", "message": {"id": "msg_1"}})
    tail = sse_event("message_stop", {"type": "message_stop"})
    return (head + "".join(blocks) + tail).encode("utf-8")


def ndjson_line(content: str = "", tool_calls: list[dict[str, Any]] | None = None,
                done: bool = False) -> str:
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    return json.dumps({"model": "qwen3", "message": message, "done": done}) + "\n"


def ndjson_tool(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    return {"function": {"name": name, "arguments": arguments}}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeStreamClient:
    """Stands in for StreamingHTTPClient: one scripted response per request."""

    def __init__(self, responses: list[list[bytes] | bytes | Exception]) -> None:
        self._responses = list(responses)
        self.requests: list[Any] = []

    async def stream(self, request: Any):
        self.requests.append(request)
        if not self._responses:
            raise AssertionError("unexpected extra request")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        chunks = [response] if isinstance(response, bytes) else response
        for chunk in chunks:
            yield chunk

    async def close(self) -> None:
        pass


class RecordingSink:
    """Event sink that records everything emitted."""

    def __init__(self) -> None:
        self.events: list[GatewayEvent] = []

    async def emit(self, event: GatewayEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type) -> list[GatewayEvent]:
        return [e for e in self.events if e.type == event_type]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def profile_store(tmp_path) -> MarkdownProfileStore:
    return MarkdownProfileStore(tmp_path / "profile")


@pytest.fixture
def decision_store():
    store = SqliteDecisionStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()
