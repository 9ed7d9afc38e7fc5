"""Provider adapters, stream decoding and HTTP transport."""

from counsel.llm.client import StreamingHTTPClient
from counsel.llm.decoder import NDJSONDecoder, SSEDecoder, ToolUseAccumulator
from counsel.llm.providers import (
    AnthropicProvider,
    ChatProvider,
    ChatRequest,
    OllamaProvider,
    create_provider,
)

__all__ = [
    "AnthropicProvider",
    "ChatProvider",
    "ChatRequest",
    "NDJSONDecoder",
    "OllamaProvider",
    "SSEDecoder",
    "StreamingHTTPClient",
    "ToolUseAccumulator",
    "create_provider",
]
