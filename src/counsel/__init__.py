"""Counsel: streaming agentic gateway for a personal decision assistant."""

from counsel.config import GatewayConfig, ProviderConfig, load_config
from counsel.core.loop import AgenticLoop, send_agentic_message
from counsel.errors import (
    GatewayCancelled,
    GatewayError,
    PersistenceError,
    ProtocolError,
    ToolLoopExceeded,
    TransportError,
)
from counsel.events.bus import EventBus
from counsel.summary import merge_summary
from counsel.types import ConversationKind, ConversationTurn, EventType, GatewayEvent

__version__ = "0.1.0"

__all__ = [
    "AgenticLoop",
    "ConversationKind",
    "ConversationTurn",
    "EventBus",
    "EventType",
    "GatewayCancelled",
    "GatewayConfig",
    "GatewayError",
    "GatewayEvent",
    "PersistenceError",
    "ProtocolError",
    "ProviderConfig",
    "ToolLoopExceeded",
    "TransportError",
    "load_config",
    "merge_summary",
    "send_agentic_message",
]
