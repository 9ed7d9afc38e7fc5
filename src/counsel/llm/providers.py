"""Provider adapters for the two supported streaming chat protocols.

The agentic loop only talks to :class:`ChatProvider`; everything
vendor-specific (endpoint, auth headers, request envelope, tool schema
dialect, follow-up turn shape, stream decoder) lives in the adapters.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable

from counsel.config import ProviderConfig
from counsel.llm.decoder import NDJSONDecoder, SSEDecoder, StreamDecoder
from counsel.types import ToolCall, ToolResult

if TYPE_CHECKING:
    from counsel.tools.base import Tool

_logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


@dataclass
class ChatRequest:
    """A fully built provider request."""

    url: str
    headers: dict[str, str]
    body: dict[str, Any] = field(default_factory=dict)


class ChatProvider(ABC):
    """Capability interface implemented once per vendor protocol."""

    name: str

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @property
    def model(self) -> str:
        return self.config.model

    @abstractmethod
    def build_request(
        self,
        system_prompt: str,
        tools: list[dict[str, Any]],
        turns: list[dict[str, Any]],
    ) -> ChatRequest:
        """Build url, headers and JSON body for one streaming request."""

    @abstractmethod
    def tool_catalog(self, tools: Iterable[Tool]) -> list[dict[str, Any]]:
        """Describe *tools* in this provider's JSON-Schema dialect."""

    @abstractmethod
    def format_follow_up_turns(
        self,
        assistant_text: str,
        tool_calls: list[ToolCall],
        tool_results: list[ToolResult],
    ) -> list[dict[str, Any]]:
        """Turns to append after an iteration that requested tools."""

    @abstractmethod
    def new_decoder(self) -> StreamDecoder:
        """A fresh decoder for one response stream."""


def _results_by_id(tool_results: list[ToolResult]) -> dict[str, ToolResult]:
    return {r.tool_call_id: r for r in tool_results}


class AnthropicProvider(ChatProvider):
    """SSE-chat: Anthropic Messages API."""

    name = "anthropic"

    def build_request(
        self,
        system_prompt: str,
        tools: list[dict[str, Any]],
        turns: list[dict[str, Any]],
    ) -> ChatRequest:
        return ChatRequest(
            url=self.config.endpoint,
            headers={
                "x-api-key": self.config.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            body={
                "model": self.model,
                "max_tokens": self.config.max_tokens,
                "system": system_prompt,
                "tools": tools,
                "messages": list(turns),
                "stream": True,
            },
        )

    def tool_catalog(self, tools: Iterable[Tool]) -> list[dict[str, Any]]:
        return [t.to_anthropic_schema() for t in tools]

    def format_follow_up_turns(
        self,
        assistant_text: str,
        tool_calls: list[ToolCall],
        tool_results: list[ToolResult],
    ) -> list[dict[str, Any]]:
        assistant_content: list[dict[str, Any]] = []
        if assistant_text:
            assistant_content.append({"type": "text", "text": assistant_text})
        results = _results_by_id(tool_results)
        result_blocks: list[dict[str, Any]] = []
        for tc in tool_calls:
            assistant_content.append({
                "type": "tool_use",
                "id": tc.id,
                "name": tc.name,
                "input": tc.arguments,
            })
            result = results[tc.id]
            block: dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": tc.id,
                "content": result.to_message(),
            }
            if not result.success:
                block["is_error"] = True
            result_blocks.append(block)
        return [
            {"role": "assistant", "content": assistant_content},
            {"role": "user", "content": result_blocks},
        ]

    def new_decoder(self) -> StreamDecoder:
        return SSEDecoder()


class OllamaProvider(ChatProvider):
    """NDJSON-chat: Ollama native ``/api/chat``."""

    name = "ollama"

    @property
    def model(self) -> str:
        return self.config.ollama_model

    @property
    def url(self) -> str:
        # Accept both the bare server URL and an OpenAI-style ".../v1"
        base = self.config.ollama_url.rstrip("/").removesuffix("/v1")
        return f"{base}/api/chat"

    def build_request(
        self,
        system_prompt: str,
        tools: list[dict[str, Any]],
        turns: list[dict[str, Any]],
    ) -> ChatRequest:
        messages = [{"role": "system", "content": system_prompt}, *turns]
        return ChatRequest(
            url=self.url,
            headers={"content-type": "application/json"},
            body={
                "model": self.model,
                "messages": messages,
                "tools": tools,
                "stream": True,
            },
        )

    def tool_catalog(self, tools: Iterable[Tool]) -> list[dict[str, Any]]:
        return [t.to_openai_schema() for t in tools]

    def format_follow_up_turns(
        self,
        assistant_text: str,
        tool_calls: list[ToolCall],
        tool_results: list[ToolResult],
    ) -> list[dict[str, Any]]:
        turns: list[dict[str, Any]] = [{
            "role": "assistant",
            "content": assistant_text,
            "tool_calls": [
                {"function": {"name": tc.name, "arguments": tc.arguments}}
                for tc in tool_calls
            ],
        }]
        results = _results_by_id(tool_results)
        for tc in tool_calls:
            turns.append({
                "role": "tool",
                "tool_name": tc.name,
                "content": results[tc.id].to_message(),
            })
        return turns

    def new_decoder(self) -> StreamDecoder:
        return NDJSONDecoder()


_PROVIDERS: dict[str, type[ChatProvider]] = {
    "anthropic": AnthropicProvider,
    "ollama": OllamaProvider,
}


def create_provider(config: ProviderConfig) -> ChatProvider:
    """Instantiate the adapter named by ``config.provider``."""
    try:
        cls = _PROVIDERS[config.provider]
    except KeyError:
        raise ValueError(f"Unknown provider: {config.provider}") from None
    provider = cls(config)
    _logger.debug("Using %s provider with model %s", provider.name, provider.model)
    return provider
