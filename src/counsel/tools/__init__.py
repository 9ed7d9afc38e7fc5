"""Tool system for Counsel."""

from counsel.tools.base import Tool, ToolContext
from counsel.tools.registry import ToolName, ToolRegistry

__all__ = ["Tool", "ToolContext", "ToolName", "ToolRegistry"]
