"""Agentic loop controller.

    request → decode (stream tokens to the sink) → dispatch tools → repeat

One ``run()`` drives a strictly sequential loop: each request depends on the
previous iteration's tool results.  The loop ends when the model answers
without requesting tools, and is bounded by ``max_iterations``.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, Protocol

from counsel.config import DEFAULT_MAX_ITERATIONS, ProviderConfig
from counsel.errors import GatewayCancelled, GatewayError, ToolLoopExceeded
from counsel.events.bus import EventBus, EventSink
from counsel.llm.client import StreamingHTTPClient
from counsel.llm.decoder import ToolUseAccumulator
from counsel.llm.providers import ChatProvider, create_provider
from counsel.prompts import select_system_prompt
from counsel.stores.base import DecisionStore, ProfileStore
from counsel.tools.base import ToolContext
from counsel.tools.registry import ToolRegistry
from counsel.types import (
    ConversationKind,
    ConversationTurn,
    DecodeEvent,
    EventType,
    GatewayEvent,
    TextDelta,
    ToolCall,
    ToolResult,
    ToolUseStart,
    token_event,
    tool_use_event,
    turns_to_messages,
)

_logger = logging.getLogger(__name__)


class CancelSignal(Protocol):
    """``asyncio.Event`` and ``threading.Event`` both qualify."""

    def is_set(self) -> bool:
        ...


@dataclass
class LoopStats:
    iterations: int = 0
    tool_calls: int = 0
    dropped_units: int = 0


class AgenticLoop:
    """Runs one provider conversation until the model stops calling tools.

    Parameters
    ----------
    provider:
        Adapter for the vendor protocol in use.
    client:
        Streaming HTTP client (anything with an async ``stream(request)``).
    profile_store / decision_store:
        Stores the tools operate on.
    sink:
        Receives live TOKEN / TOOL_USE events, summary updates and
        lifecycle events.
    max_iterations:
        Provider requests allowed per ``run()`` before giving up.
    """

    def __init__(
        self,
        provider: ChatProvider,
        client: Any,  # StreamingHTTPClient
        profile_store: ProfileStore,
        decision_store: DecisionStore | None = None,
        sink: EventSink | None = None,
        registry: ToolRegistry | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        self._provider = provider
        self._client = client
        self._profile_store = profile_store
        self._decision_store = decision_store
        self._sink = sink or EventBus()
        self._registry = registry or ToolRegistry()
        self._max_iterations = max_iterations
        self._stats = LoopStats()

    @property
    def last_stats(self) -> LoopStats:
        """Counters from the most recent ``run()``."""
        return self._stats

    async def run(
        self,
        history: list[ConversationTurn | dict[str, Any]],
        kind: ConversationKind | str = ConversationKind.CHAT,
        decision_id: str | None = None,
        cancel_event: CancelSignal | None = None,
    ) -> str:
        """Run the loop and return the text of every iteration, concatenated.

        Raises
        ------
        TransportError, ProtocolError
            The provider could not be reached or rejected the request.
        ToolLoopExceeded
            ``max_iterations`` requests were made without a final answer.
        GatewayCancelled
            *cancel_event* was set; checked between iterations only.
        """
        kind = ConversationKind(kind)
        self._stats = LoopStats()
        turns = turns_to_messages(history)
        system_prompt = select_system_prompt(kind)
        tools = self._provider.tool_catalog(self._registry.tools_for(kind))
        context = ToolContext(
            profile_store=self._profile_store,
            decision_store=self._decision_store,
            sink=self._sink,
            decision_id=decision_id,
        )
        texts: list[str] = []

        await self._emit(EventType.GATEWAY_STARTED, {
            "provider": self._provider.name,
            "model": self._provider.model,
            "kind": kind.value,
            "decision_id": decision_id,
        })

        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    raise GatewayCancelled(self._stats.iterations)
                if self._stats.iterations >= self._max_iterations:
                    raise ToolLoopExceeded(self._max_iterations)

                self._stats.iterations += 1
                await self._emit(EventType.GATEWAY_ITERATION, {
                    "iteration": self._stats.iterations,
                })

                text, calls = await self._request(system_prompt, tools, turns)
                texts.append(text)

                if not calls:
                    final = "".join(texts)
                    await self._emit(EventType.GATEWAY_DONE, {
                        "iterations": self._stats.iterations,
                        "tool_calls": self._stats.tool_calls,
                        "dropped_units": self._stats.dropped_units,
                        "length": len(final),
                    })
                    return final

                results = await self._dispatch(calls, context)
                turns.extend(self._provider.format_follow_up_turns(text, calls, results))
        except GatewayCancelled:
            await self._emit(EventType.GATEWAY_CANCELLED, {
                "iterations": self._stats.iterations,
            })
            raise
        except GatewayError as e:
            _logger.warning("Gateway call failed: %s", e)
            await self._emit(EventType.GATEWAY_ERROR, {
                "error": e.user_message(),
                "iterations": self._stats.iterations,
            })
            raise

    async def _request(
        self,
        system_prompt: str,
        tools: list[dict[str, Any]],
        turns: list[dict[str, Any]],
    ) -> tuple[str, list[ToolCall]]:
        """One request/decode pass; returns the iteration's text and tool calls."""
        request = self._provider.build_request(system_prompt, tools, turns)
        decoder = self._provider.new_decoder()
        accumulator = ToolUseAccumulator()
        parts: list[str] = []

        async with aclosing(self._client.stream(request)) as chunks:
            async for chunk in chunks:
                await self._consume(decoder.feed(chunk), accumulator, parts)
        await self._consume(decoder.finish(), accumulator, parts)

        if decoder.dropped:
            self._stats.dropped_units += decoder.dropped
            _logger.warning(
                "Dropped %d malformed stream unit(s) in iteration %d",
                decoder.dropped, self._stats.iterations,
            )
        return "".join(parts), accumulator.tool_calls

    async def _consume(
        self,
        events: list[DecodeEvent],
        accumulator: ToolUseAccumulator,
        parts: list[str],
    ) -> None:
        for event in events:
            if isinstance(event, TextDelta):
                parts.append(event.text)
                await self._sink.emit(token_event(event.text))
                continue
            if isinstance(event, ToolUseStart):
                await self._sink.emit(tool_use_event(event.name))
            accumulator.feed(event)

    async def _dispatch(self, calls: list[ToolCall], context: ToolContext) -> list[ToolResult]:
        """Run every call of one iteration, in order, before the next request."""
        results: list[ToolResult] = []
        for call in calls:
            result = await self._registry.dispatch_call(call, context)
            self._stats.tool_calls += 1
            if result.success:
                await self._emit(EventType.TOOL_EXECUTED, {
                    "tool": call.name,
                    "output_length": len(result.output),
                })
            else:
                await self._emit(EventType.TOOL_ERROR, {
                    "tool": call.name,
                    "error": result.error,
                })
            results.append(result)
        return results

    async def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        await self._sink.emit(GatewayEvent(type=event_type, data=data))


async def send_agentic_message(
    history: list[ConversationTurn | dict[str, Any]],
    provider_config: ProviderConfig,
    kind: ConversationKind | str,
    decision_id: str | None,
    sink: EventSink | None,
    *,
    profile_store: ProfileStore,
    decision_store: DecisionStore | None = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    cancel_event: CancelSignal | None = None,
    client: Any = None,
) -> str:
    """Single-call entry point: build provider and client, run, clean up.

    Pass *client* to reuse an existing :class:`StreamingHTTPClient`; it is
    then left open.
    """
    if provider_config.provider == "anthropic" and not provider_config.api_key:
        raise GatewayError("API key not set. Add an Anthropic API key to the configuration.")

    provider = create_provider(provider_config)
    owns_client = client is None
    if client is None:
        client = StreamingHTTPClient(
            timeout=provider_config.timeout,
            max_retries=provider_config.max_retries,
        )
    try:
        loop = AgenticLoop(
            provider,
            client,
            profile_store=profile_store,
            decision_store=decision_store,
            sink=sink,
            max_iterations=max_iterations,
        )
        return await loop.run(history, kind, decision_id=decision_id, cancel_event=cancel_event)
    finally:
        if owns_client:
            await client.close()
