"""Decision summary tool."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from counsel.errors import PersistenceError
from counsel.summary import ARRAY_KEYS, extract_status, merge_summary
from counsel.tools.base import Tool, ToolContext
from counsel.types import MODEL_STATUSES, EventType, GatewayEvent, ToolParameter, ToolResult

_logger = logging.getLogger(__name__)

_LEVELS = ["high", "medium", "low"]
_STRING_LIST = {"type": "array", "items": {"type": "string"}}


class UpdateDecisionSummaryTool(Tool):
    name = "update_decision_summary"
    description = (
        "Update the structured decision summary panel. Call this after each "
        "significant exchange to keep the summary current. You can update any "
        "combination of fields. Arrays are merged by key: new items are appended, "
        "existing items (matched by label/option) are replaced."
    )
    parameters = [
        ToolParameter(
            name="options",
            type="array",
            description="The options being considered",
            required=False,
            items={
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "description": {"type": "string"},
                },
                "required": ["label"],
            },
        ),
        ToolParameter(
            name="variables",
            type="array",
            description="Key variables/factors at play",
            required=False,
            items={
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "value": {"type": "string"},
                    "impact": {"type": "string", "enum": _LEVELS},
                },
                "required": ["label", "value"],
            },
        ),
        ToolParameter(
            name="pros_cons",
            type="array",
            description="Pros and cons per option, weighted by the user's values",
            required=False,
            items={
                "type": "object",
                "properties": {
                    "option": {"type": "string"},
                    "pros": _STRING_LIST,
                    "cons": _STRING_LIST,
                    "alignment_score": {"type": "integer", "minimum": 1, "maximum": 10},
                    "alignment_reasoning": {"type": "string"},
                },
                "required": ["option"],
            },
        ),
        ToolParameter(
            name="recommendation",
            type="object",
            description="The final recommendation",
            required=False,
            properties={
                "choice": {"type": "string"},
                "confidence": {"type": "string", "enum": _LEVELS},
                "reasoning": {"type": "string"},
                "tradeoffs": {"type": "string"},
                "next_steps": _STRING_LIST,
            },
            required_properties=["choice", "confidence", "reasoning"],
        ),
        ToolParameter(
            name="status",
            type="string",
            description="Update the decision status",
            required=False,
            enum=MODEL_STATUSES,
        ),
    ]

    async def execute(self, arguments: dict[str, Any], context: ToolContext) -> ToolResult:
        decision_id = context.decision_id
        store = context.decision_store
        if not decision_id or store is None:
            return ToolResult(
                success=False, output="",
                error="Error: no decision context for update_decision_summary",
            )

        status = extract_status(arguments)
        rejected_status = status is not None and status not in MODEL_STATUSES
        if rejected_status:
            status = None

        def _merge_and_save() -> dict[str, Any]:
            with store.locked(decision_id):
                merged = merge_summary(store.get_summary(decision_id), arguments)
                try:
                    store.save_summary(decision_id, json.dumps(merged, ensure_ascii=False))
                except PersistenceError as e:
                    raise PersistenceError(f"Error saving summary: {e}") from e
                if status is not None:
                    try:
                        store.set_status(decision_id, status)
                    except PersistenceError as e:
                        raise PersistenceError(f"Error updating status: {e}") from e
                return merged

        try:
            merged = await asyncio.to_thread(_merge_and_save)
        except PersistenceError as e:
            return ToolResult(success=False, output="", error=str(e))

        if rejected_status:
            # the summary is kept; only the status change is refused
            return ToolResult(
                success=False, output="",
                error=f"Error updating status: must be one of {', '.join(MODEL_STATUSES)}",
            )

        touched = [f for f in (*ARRAY_KEYS, "recommendation") if f in arguments]
        _logger.info(
            "Decision %s summary updated (fields: %s, status: %s)",
            decision_id, ", ".join(touched) or "none", status,
        )

        if context.sink is not None:
            await context.sink.emit(GatewayEvent(
                type=EventType.DECISION_SUMMARY_UPDATED,
                data={"decision_id": decision_id, "summary": merged, "status": status},
            ))

        return ToolResult(success=True, output="Decision summary updated successfully.")
