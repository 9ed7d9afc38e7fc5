"""Tool abstract base class and execution context."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from counsel.events.bus import EventSink
from counsel.stores.base import DecisionStore, ProfileStore
from counsel.types import ToolParameter, ToolResult


@dataclass
class ToolContext:
    """Capabilities handed to tools for one gateway call."""

    profile_store: ProfileStore
    decision_store: DecisionStore | None = None
    sink: EventSink | None = None
    decision_id: str | None = None


class Tool(ABC):
    """Base class for all tools.

    Subclasses set ``name``, ``description`` and ``parameters`` as class
    attributes and implement the async ``execute()`` method.  Both schema
    dialects are generated from ``parameters``, so they always describe the
    same tool.
    """

    name: str
    description: str
    parameters: list[ToolParameter] = []

    @abstractmethod
    async def execute(self, arguments: dict[str, Any], context: ToolContext) -> ToolResult:
        """Execute the tool asynchronously."""

    def parameters_schema(self) -> dict[str, Any]:
        """JSON Schema object describing the tool's arguments."""
        properties: dict[str, Any] = {}
        required: list[str] = []
        for p in self.parameters:
            prop: dict[str, Any] = {"type": p.type}
            if p.description:
                prop["description"] = p.description
            if p.enum:
                prop["enum"] = p.enum
            if p.items is not None:
                prop["items"] = p.items
            if p.properties is not None:
                prop["properties"] = p.properties
            if p.required_properties:
                prop["required"] = p.required_properties
            properties[p.name] = prop
            if p.required:
                required.append(p.name)
        return {"type": "object", "properties": properties, "required": required}

    def to_anthropic_schema(self) -> dict[str, Any]:
        """Anthropic tool format (``input_schema``)."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters_schema(),
        }

    def to_openai_schema(self) -> dict[str, Any]:
        """OpenAI/Ollama function calling format (``function.parameters``)."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }
