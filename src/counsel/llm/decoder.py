"""Incremental decoders for streamed chat responses.

Both decoders take raw response bytes in whatever chunks the transport
delivers and turn them into provider-neutral decode events.  State is kept
between ``feed()`` calls until a complete unit (SSE block / NDJSON line) is
available, so the emitted event sequence does not depend on where chunk
boundaries fall.  Malformed units are dropped and counted in ``dropped``.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, Iterable, Protocol

from counsel.types import (
    DecodeEvent,
    TextDelta,
    ToolCall,
    ToolUseInputDelta,
    ToolUseStart,
    ToolUseStop,
)

_logger = logging.getLogger(__name__)


class StreamDecoder(Protocol):
    dropped: int

    def feed(self, chunk: bytes) -> list[DecodeEvent]:
        ...

    def finish(self) -> list[DecodeEvent]:
        ...


class _TextBuffer:
    """UTF-8 aware byte buffer shared by both decoders."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.text = ""

    def push(self, chunk: bytes) -> None:
        self.text += self._decoder.decode(chunk)
        self.text = self.text.replace("\r\n", "\n")

    def flush(self) -> None:
        self.text += self._decoder.decode(b"", final=True)
        self.text = self.text.replace("\r\n", "\n")


# ---------------------------------------------------------------------------
# SSE (Anthropic Messages API)
# ---------------------------------------------------------------------------

class SSEDecoder:
    """Decode ``event:``/``data:`` blocks separated by blank lines.

    Tool-use blocks are tracked by their content-block ``index`` so that
    input fragments and the closing stop are attributed to the right id.
    """

    def __init__(self) -> None:
        self._buf = _TextBuffer()
        self._tool_blocks: dict[int, str] = {}  # index -> tool_use id
        self._last_index: int | None = None
        self.dropped = 0

    def feed(self, chunk: bytes) -> list[DecodeEvent]:
        self._buf.push(chunk)
        events: list[DecodeEvent] = []
        while True:
            pos = self._buf.text.find("\n\n")
            if pos < 0:
                break
            block = self._buf.text[:pos]
            self._buf.text = self._buf.text[pos + 2:]
            events.extend(self._process_block(block))
        return events

    def finish(self) -> list[DecodeEvent]:
        self._buf.flush()
        block, self._buf.text = self._buf.text, ""
        if not block.strip():
            return []
        return self._process_block(block)

    def _process_block(self, block: str) -> list[DecodeEvent]:
        event_type = ""
        data_lines: list[str] = []
        for line in block.split("\n"):
            if not line or line.startswith(":"):
                continue
            field_name, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]
            if field_name == "event":
                event_type = value
            elif field_name == "data":
                data_lines.append(value)

        if not data_lines:
            return []

        raw = "\n".join(data_lines)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            self.dropped += 1
            _logger.warning("Dropping malformed SSE data (%d so far): %.200s", self.dropped, raw)
            return []
        if not isinstance(data, dict):
            self.dropped += 1
            _logger.warning("Dropping non-object SSE data: %.200s", raw)
            return []

        # Some proxies omit the event line; the payload carries the type too
        event_type = event_type or str(data.get("type", ""))
        return self._dispatch(event_type, data)

    def _dispatch(self, event_type: str, data: dict[str, Any]) -> list[DecodeEvent]:
        if event_type == "content_block_start":
            block = data.get("content_block") or {}
            index = self._index(data)
            if block.get("type") == "tool_use":
                tool_id = str(block.get("id", ""))
                self._tool_blocks[index] = tool_id
                return [ToolUseStart(id=tool_id, name=str(block.get("name", "")))]
            return []

        if event_type == "content_block_delta":
            delta = data.get("delta") or {}
            delta_type = delta.get("type")
            if delta_type == "text_delta":
                text = delta.get("text")
                if isinstance(text, str) and text:
                    return [TextDelta(text)]
            elif delta_type == "input_json_delta":
                partial = delta.get("partial_json")
                tool_id = self._tool_blocks.get(self._index(data))
                if isinstance(partial, str) and tool_id is not None:
                    return [ToolUseInputDelta(id=tool_id, partial_json=partial)]
            return []

        if event_type == "content_block_stop":
            tool_id = self._tool_blocks.pop(self._index(data), None)
            if tool_id is not None:
                return [ToolUseStop(id=tool_id)]
            return []

        if event_type == "error":
            _logger.warning("Provider reported a stream error: %s", data.get("error"))
        return []

    def _index(self, data: dict[str, Any]) -> int:
        index = data.get("index")
        if isinstance(index, int):
            self._last_index = index
            return index
        return self._last_index if self._last_index is not None else 0


# ---------------------------------------------------------------------------
# NDJSON (Ollama /api/chat)
# ---------------------------------------------------------------------------

class NDJSONDecoder:
    """Decode newline-delimited JSON objects.

    Tool calls arrive structurally complete, so each one is expanded into a
    start / single input fragment / stop triple.  Ollama sends no call ids;
    ``call_<n>`` ids unique within the response are synthesized.
    """

    def __init__(self) -> None:
        self._buf = _TextBuffer()
        self._call_count = 0
        self._done = False
        self.dropped = 0

    def feed(self, chunk: bytes) -> list[DecodeEvent]:
        self._buf.push(chunk)
        events: list[DecodeEvent] = []
        while True:
            pos = self._buf.text.find("\n")
            if pos < 0:
                break
            line = self._buf.text[:pos]
            self._buf.text = self._buf.text[pos + 1:]
            events.extend(self._process_line(line))
        return events

    def finish(self) -> list[DecodeEvent]:
        self._buf.flush()
        line, self._buf.text = self._buf.text, ""
        events = self._process_line(line)
        if not self._done:
            _logger.warning("NDJSON stream ended without a done marker; response may be truncated")
        return events

    def _process_line(self, line: str) -> list[DecodeEvent]:
        line = line.strip()
        if not line:
            return []
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            self.dropped += 1
            _logger.warning("Dropping malformed NDJSON line (%d so far): %.200s", self.dropped, line)
            return []
        if not isinstance(data, dict):
            self.dropped += 1
            return []

        if data.get("done"):
            self._done = True
        if data.get("error"):
            _logger.warning("Provider reported a stream error: %s", data["error"])

        message = data.get("message")
        if not isinstance(message, dict):
            return []

        events: list[DecodeEvent] = []
        content = message.get("content")
        if isinstance(content, str) and content:
            events.append(TextDelta(content))

        tool_calls = message.get("tool_calls")
        if isinstance(tool_calls, list):
            for tc in tool_calls:
                func = tc.get("function") if isinstance(tc, dict) else None
                if not isinstance(func, dict) or not func.get("name"):
                    continue
                self._call_count += 1
                tool_id = str(tc.get("id") or f"call_{self._call_count}")
                arguments = func.get("arguments", {})
                raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
                events.append(ToolUseStart(id=tool_id, name=str(func["name"])))
                events.append(ToolUseInputDelta(id=tool_id, partial_json=raw))
                events.append(ToolUseStop(id=tool_id))
        return events


# ---------------------------------------------------------------------------
# Tool-call assembly
# ---------------------------------------------------------------------------

class ToolUseAccumulator:
    """Assemble complete tool calls from decode events.

    Input fragments are concatenated per tool-use id and parsed as one JSON
    document only at ``ToolUseStop``, so fragment boundaries may fall
    anywhere, even inside a string or number token.
    """

    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._inputs: dict[str, list[str]] = {}
        self._completed: list[ToolCall] = []

    def feed(self, event: DecodeEvent) -> ToolCall | None:
        """Consume one event; return the finished call on ``ToolUseStop``."""
        if isinstance(event, ToolUseStart):
            self._names[event.id] = event.name
            self._inputs[event.id] = []
        elif isinstance(event, ToolUseInputDelta):
            self._inputs.setdefault(event.id, []).append(event.partial_json)
        elif isinstance(event, ToolUseStop):
            if event.id not in self._names:
                return None
            call = ToolCall(
                id=event.id,
                name=self._names.pop(event.id),
                arguments=_parse_arguments(event.id, "".join(self._inputs.pop(event.id, []))),
            )
            self._completed.append(call)
            return call
        return None

    def feed_all(self, events: Iterable[DecodeEvent]) -> list[ToolCall]:
        calls: list[ToolCall] = []
        for event in events:
            call = self.feed(event)
            if call is not None:
                calls.append(call)
        return calls

    @property
    def tool_calls(self) -> list[ToolCall]:
        return list(self._completed)

    def has_calls(self) -> bool:
        return bool(self._completed)


def _parse_arguments(tool_id: str, raw: str) -> dict[str, Any]:
    if not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        _logger.warning("Tool call %s has unparsable input: %.200s", tool_id, raw)
        return {}
    if not isinstance(value, dict):
        _logger.warning("Tool call %s input is not an object: %.200s", tool_id, raw)
        return {}
    return value
