"""Event sink for the gateway.

A gateway call produces two kinds of events:

* stream events (``token`` / ``tool_use``): high-volume, ordered, meant for
  the live chat view;
* everything else: lifecycle, tool and ``decision-summary-updated`` events,
  consumed by any number of listeners (summary panel, logging, metrics).

:class:`EventBus` keeps the two apart.  Stream events go to a single
presentation handler, awaited one at a time so tokens arrive in the order the
model produced them.  Other events fan out to subscribers concurrently.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Protocol

from counsel.types import EventType, GatewayEvent

_logger = logging.getLogger(__name__)

_WILDCARD = "*"

# Handlers are sync or async callables taking a GatewayEvent
Handler = Callable[[GatewayEvent], Any]


class EventSink(Protocol):
    """Anything the gateway can push events to."""

    async def emit(self, event: GatewayEvent) -> None:
        ...


class EventBus:
    """Routes stream events to the presentation handler, the rest to subscribers.

    Handler failures are logged and never reach the gateway: events are
    observational and must not abort a model call.
    """

    def __init__(self, stream_handler: Handler | None = None) -> None:
        self._stream_handler = stream_handler
        self._subscribers: dict[str, list[Handler]] = {}

    def on_stream(self, handler: Handler | None) -> None:
        """Set (or clear, with *None*) the handler for token/tool_use events."""
        self._stream_handler = handler

    def subscribe(self, event_type: EventType | str, handler: Handler) -> None:
        """Register *handler* for a non-stream event type, or ``"*"`` for all of them."""
        key = event_type.value if isinstance(event_type, EventType) else str(event_type)
        if key in (EventType.TOKEN.value, EventType.TOOL_USE.value):
            raise ValueError(f"{key!r} is a stream event; use on_stream()")
        self._subscribers.setdefault(key, []).append(handler)

    async def emit(self, event: GatewayEvent) -> None:
        if event.is_stream_event:
            if self._stream_handler is not None:
                await _call(self._stream_handler, event)
            return

        handlers = [
            *self._subscribers.get(event.type.value, []),
            *self._subscribers.get(_WILDCARD, []),
        ]
        if handlers:
            await asyncio.gather(*(_call(h, event) for h in handlers))


async def _call(handler: Handler, event: GatewayEvent) -> None:
    try:
        result = handler(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        _logger.exception(
            "Event handler %s raised for %s",
            getattr(handler, "__name__", handler), event.type.value,
        )
