"""Closed tool catalog and dispatcher."""

from __future__ import annotations

import enum
import logging
from typing import Any

from counsel.tools.base import Tool, ToolContext
from counsel.tools.decision import UpdateDecisionSummaryTool
from counsel.tools.profile import DeleteProfileTool, ReadProfilesTool, WriteProfileTool
from counsel.types import ConversationKind, ToolCall, ToolResult

_logger = logging.getLogger(__name__)


class ToolName(str, enum.Enum):
    READ_PROFILES = "read_profile_files"
    WRITE_PROFILE = "write_profile_file"
    DELETE_PROFILE = "delete_profile_file"
    UPDATE_SUMMARY = "update_decision_summary"


_CHAT_TOOLS = (ToolName.READ_PROFILES, ToolName.WRITE_PROFILE, ToolName.DELETE_PROFILE)
_DECISION_TOOLS = (*_CHAT_TOOLS, ToolName.UPDATE_SUMMARY)


def unknown_tool_result(name: str) -> ToolResult:
    known = ", ".join(t.value for t in ToolName)
    return ToolResult(
        success=False,
        output="",
        error=f"Unknown tool: {name}. Available: {known}",
        metadata={"unknown_tool": True},
    )


def check_complete(tools: dict[ToolName, Tool]) -> None:
    """Raise if any ``ToolName`` lacks an implementation."""
    missing = sorted(n.value for n in set(ToolName) - set(tools))
    if missing:
        raise RuntimeError(f"tools without implementation: {', '.join(missing)}")


class ToolRegistry:
    """Maps every :class:`ToolName` to exactly one tool implementation."""

    def __init__(self) -> None:
        self._tools: dict[ToolName, Tool] = {
            ToolName.READ_PROFILES: ReadProfilesTool(),
            ToolName.WRITE_PROFILE: WriteProfileTool(),
            ToolName.DELETE_PROFILE: DeleteProfileTool(),
            ToolName.UPDATE_SUMMARY: UpdateDecisionSummaryTool(),
        }
        check_complete(self._tools)

    def get(self, name: ToolName) -> Tool:
        return self._tools[name]

    def tools_for(self, kind: ConversationKind | str) -> list[Tool]:
        """Tools exposed to the model for a conversation kind."""
        names = _DECISION_TOOLS if ConversationKind(kind) is ConversationKind.DECISION else _CHAT_TOOLS
        return [self._tools[n] for n in names]

    def tool_names(self) -> list[str]:
        return [n.value for n in self._tools]

    async def dispatch(
        self,
        name: str,
        arguments: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        """Execute a tool by name.

        Never raises: unknown names and tool failures come back as error
        results so the model can see them and react.
        """
        try:
            tool_name = ToolName(name)
        except ValueError:
            _logger.warning("Model requested unknown tool %r", name)
            return unknown_tool_result(name)

        tool = self._tools[tool_name]
        if not isinstance(arguments, dict):
            arguments = {}
        try:
            return await tool.execute(arguments, context)
        except Exception as e:
            _logger.exception("Tool %s raised", name)
            return ToolResult(
                success=False,
                output="",
                error=f"Tool '{name}' execution failed: {type(e).__name__}: {e}",
            )

    async def dispatch_call(self, call: ToolCall, context: ToolContext) -> ToolResult:
        """Dispatch *call* and stamp the result with its id."""
        result = await self.dispatch(call.name, call.arguments, context)
        result.tool_call_id = call.id
        return result
