"""Profile document tools."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from counsel.errors import PersistenceError
from counsel.tools.base import Tool, ToolContext
from counsel.types import ToolParameter, ToolResult


class ReadProfilesTool(Tool):
    name = "read_profile_files"
    description = (
        "Read the list of all profile files and their contents. Call this at the "
        "start of conversations to refresh your memory about the user."
    )
    parameters: list[ToolParameter] = []

    async def execute(self, arguments: dict[str, Any], context: ToolContext) -> ToolResult:
        try:
            files = await asyncio.to_thread(context.profile_store.list)
        except PersistenceError as e:
            return ToolResult(success=False, output="", error=f"Error reading profiles: {e}")
        return ToolResult(success=True, output=json.dumps(files, ensure_ascii=False))


class WriteProfileTool(Tool):
    name = "write_profile_file"
    description = (
        "Create or update a profile file with information learned about the user. "
        "Use descriptive filenames like 'career.md', 'values.md', 'family.md', etc."
    )
    parameters = [
        ToolParameter(
            name="filename",
            type="string",
            description="The filename (e.g., 'career.md')",
        ),
        ToolParameter(
            name="content",
            type="string",
            description="The full markdown content of the file",
        ),
    ]

    async def execute(self, arguments: dict[str, Any], context: ToolContext) -> ToolResult:
        filename = arguments.get("filename") or "unknown.md"
        content = arguments.get("content") or ""
        if not isinstance(filename, str) or not isinstance(content, str):
            return ToolResult(
                success=False, output="",
                error="Error writing profile: filename and content must be strings",
            )

        def _write() -> str:
            with context.profile_store.locked(filename):
                return context.profile_store.write(filename, content)

        try:
            message = await asyncio.to_thread(_write)
        except PersistenceError as e:
            return ToolResult(success=False, output="", error=f"Error writing profile: {e}")
        return ToolResult(success=True, output=message)


class DeleteProfileTool(Tool):
    name = "delete_profile_file"
    description = (
        "Delete a profile file that is no longer relevant or has been "
        "consolidated into another file."
    )
    parameters = [
        ToolParameter(
            name="filename",
            type="string",
            description="The filename to delete",
        ),
    ]

    async def execute(self, arguments: dict[str, Any], context: ToolContext) -> ToolResult:
        filename = arguments.get("filename") or ""
        if not isinstance(filename, str):
            return ToolResult(
                success=False, output="", error="Error deleting profile: filename must be a string",
            )

        def _delete() -> str:
            with context.profile_store.locked(filename):
                return context.profile_store.delete(filename)

        try:
            message = await asyncio.to_thread(_delete)
        except PersistenceError as e:
            return ToolResult(success=False, output="", error=f"Error deleting profile: {e}")
        return ToolResult(success=True, output=message)
