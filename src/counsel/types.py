"""Shared data types for Counsel."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any, Union


# ---------------------------------------------------------------------------
# Conversation types
# ---------------------------------------------------------------------------

class ConversationKind(str, enum.Enum):
    """Selects system prompt, tool catalog and summary persistence."""

    CHAT = "chat"
    DECISION = "decision"


class DecisionStatus(str, enum.Enum):
    """Lifecycle of a decision record."""

    EXPLORING = "exploring"
    ANALYZING = "analyzing"
    RECOMMENDED = "recommended"
    # Set by the user-facing layer, never by the model
    DECIDED = "decided"
    REVIEWED = "reviewed"


# Statuses the model may set through update_decision_summary
MODEL_STATUSES = [
    DecisionStatus.EXPLORING.value,
    DecisionStatus.ANALYZING.value,
    DecisionStatus.RECOMMENDED.value,
]


@dataclass
class ConversationTurn:
    """A single turn handed to the gateway."""

    role: str  # user, assistant, tool
    content: Any  # text or provider-specific content blocks

    def to_message(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


def turns_to_messages(
    turns: list[ConversationTurn | dict[str, Any]],
) -> list[dict[str, Any]]:
    """Normalize caller history into provider message dicts (copies)."""
    messages: list[dict[str, Any]] = []
    for turn in turns:
        if isinstance(turn, ConversationTurn):
            messages.append(turn.to_message())
        else:
            messages.append(dict(turn))
    return messages


# ---------------------------------------------------------------------------
# Tool types
# ---------------------------------------------------------------------------

@dataclass
class ToolParameter:
    """Definition of a tool parameter.

    ``items`` describes array elements; ``properties`` and
    ``required_properties`` describe a nested object.
    """

    name: str
    type: str  # string, integer, boolean, array, object
    description: str = ""
    required: bool = True
    enum: list[str] | None = None
    items: dict[str, Any] | None = None
    properties: dict[str, Any] | None = None
    required_properties: list[str] | None = None


@dataclass
class ToolCall:
    """A completed tool call decoded from a model response."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Result of a tool execution."""

    success: bool
    output: str
    error: str = ""
    tool_call_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> str:
        if self.success:
            return self.output
        if self.output:
            return f"[Tool Error] {self.error}\n{self.output}"
        return f"[Tool Error] {self.error}"


# ---------------------------------------------------------------------------
# Decode events (provider-neutral stream units)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ToolUseStart:
    id: str
    name: str


@dataclass(frozen=True)
class ToolUseInputDelta:
    id: str
    partial_json: str


@dataclass(frozen=True)
class ToolUseStop:
    id: str


DecodeEvent = Union[TextDelta, ToolUseStart, ToolUseInputDelta, ToolUseStop]


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

class EventType(enum.Enum):
    """Event types emitted by the gateway."""

    # Stream events (forwarded live to the presentation layer)
    TOKEN = "token"
    TOOL_USE = "tool_use"

    # Decision summary persistence
    DECISION_SUMMARY_UPDATED = "decision-summary-updated"

    # Gateway lifecycle
    GATEWAY_STARTED = "gateway.started"
    GATEWAY_ITERATION = "gateway.iteration"
    GATEWAY_DONE = "gateway.done"
    GATEWAY_ERROR = "gateway.error"
    GATEWAY_CANCELLED = "gateway.cancelled"

    # Tool events
    TOOL_EXECUTED = "tool.executed"
    TOOL_ERROR = "tool.error"


STREAM_EVENT_TYPES = (EventType.TOKEN, EventType.TOOL_USE)


@dataclass
class GatewayEvent:
    """Event delivered to an event sink."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    @property
    def is_stream_event(self) -> bool:
        return self.type in STREAM_EVENT_TYPES


def token_event(text: str) -> GatewayEvent:
    return GatewayEvent(type=EventType.TOKEN, data={"token": text})


def tool_use_event(name: str) -> GatewayEvent:
    return GatewayEvent(type=EventType.TOOL_USE, data={"tool": name})
