"""Tests for the tool catalog, dispatcher and built-in tools."""

from __future__ import annotations

import json

import pytest

from counsel.tools.base import ToolContext
from counsel.tools.registry import ToolName, ToolRegistry, check_complete
from counsel.types import ConversationKind, EventType, ToolCall


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def context(profile_store, decision_store, sink) -> ToolContext:
    decision = decision_store.create_decision("conv-1", "Job offer")
    return ToolContext(
        profile_store=profile_store,
        decision_store=decision_store,
        sink=sink,
        decision_id=decision["id"],
    )


class TestRegistry:
    def test_every_name_has_a_tool(self, registry: ToolRegistry):
        assert sorted(registry.tool_names()) == sorted(n.value for n in ToolName)
        for name in ToolName:
            assert registry.get(name).name == name.value

    def test_chat_catalog(self, registry: ToolRegistry):
        names = [t.name for t in registry.tools_for(ConversationKind.CHAT)]
        assert names == ["read_profile_files", "write_profile_file", "delete_profile_file"]

    def test_decision_catalog_adds_summary_tool(self, registry: ToolRegistry):
        names = [t.name for t in registry.tools_for("decision")]
        assert len(names) == 4
        assert names[-1] == "update_decision_summary"

    def test_incomplete_mapping_rejected(self, registry: ToolRegistry):
        partial = {ToolName.READ_PROFILES: registry.get(ToolName.READ_PROFILES)}
        with pytest.raises(RuntimeError, match="update_decision_summary"):
            check_complete(partial)

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry: ToolRegistry, context: ToolContext):
        result = await registry.dispatch("rm_rf", {}, context)
        assert not result.success
        assert result.error.startswith("Unknown tool: rm_rf")
        assert result.metadata["unknown_tool"]

    @pytest.mark.asyncio
    async def test_dispatch_call_sets_id(self, registry: ToolRegistry, context: ToolContext):
        call = ToolCall(id="toolu_9", name="read_profile_files", arguments={})
        result = await registry.dispatch_call(call, context)
        assert result.success
        assert result.tool_call_id == "toolu_9"

    @pytest.mark.asyncio
    async def test_tool_exception_becomes_error_result(self, registry, context, monkeypatch):
        def boom():
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(context.profile_store, "list", boom)
        result = await registry.dispatch("read_profile_files", {}, context)
        assert not result.success
        assert "disk on fire" in result.error


class TestSchemas:
    def test_dialects_describe_the_same_parameters(self, registry: ToolRegistry):
        for tool in registry.tools_for(ConversationKind.DECISION):
            anthropic = tool.to_anthropic_schema()
            openai = tool.to_openai_schema()
            assert anthropic["name"] == openai["function"]["name"]
            assert anthropic["description"] == openai["function"]["description"]
            assert anthropic["input_schema"] == openai["function"]["parameters"]

    def test_write_profile_required_fields(self, registry: ToolRegistry):
        schema = registry.get(ToolName.WRITE_PROFILE).parameters_schema()
        assert schema["required"] == ["filename", "content"]

    def test_summary_schema(self, registry: ToolRegistry):
        schema = registry.get(ToolName.UPDATE_SUMMARY).parameters_schema()
        props = schema["properties"]
        assert schema["required"] == []
        assert props["status"]["enum"] == ["exploring", "analyzing", "recommended"]
        score = props["pros_cons"]["items"]["properties"]["alignment_score"]
        assert (score["minimum"], score["maximum"]) == (1, 10)
        assert props["recommendation"]["required"] == ["choice", "confidence", "reasoning"]


class TestProfileTools:
    @pytest.mark.asyncio
    async def test_write_then_read(self, registry, context):
        result = await registry.dispatch(
            "write_profile_file", {"filename": "career.md", "content": "# Career"}, context,
        )
        assert result.success
        assert result.output == "Successfully wrote career.md"

        result = await registry.dispatch("read_profile_files", {}, context)
        assert json.loads(result.output) == {"career.md": "# Career"}

    @pytest.mark.asyncio
    async def test_write_default_filename(self, registry, context):
        result = await registry.dispatch("write_profile_file", {"content": "x"}, context)
        assert result.output == "Successfully wrote unknown.md"

    @pytest.mark.asyncio
    async def test_write_rejects_traversal(self, registry, context):
        result = await registry.dispatch(
            "write_profile_file", {"filename": "../x.md", "content": "x"}, context,
        )
        assert not result.success
        assert result.error.startswith("Error writing profile:")

    @pytest.mark.asyncio
    async def test_delete(self, registry, context):
        await registry.dispatch("write_profile_file", {"filename": "a.md", "content": "x"}, context)
        result = await registry.dispatch("delete_profile_file", {"filename": "a.md"}, context)
        assert result.output == "Successfully deleted a.md"
        result = await registry.dispatch("delete_profile_file", {"filename": "a.md"}, context)
        assert result.success
        assert result.output == "File a.md does not exist"

    @pytest.mark.asyncio
    async def test_delete_without_filename(self, registry, context):
        result = await registry.dispatch("delete_profile_file", {}, context)
        assert not result.success
        assert result.error.startswith("Error deleting profile:")


class TestUpdateDecisionSummary:
    @pytest.mark.asyncio
    async def test_persists_merged_summary_and_status(self, registry, context, decision_store):
        args = {
            "options": [{"label": "Stay"}, {"label": "Move", "description": "Berlin"}],
            "status": "analyzing",
        }
        result = await registry.dispatch("update_decision_summary", args, context)
        assert result.success
        assert result.output == "Decision summary updated successfully."

        stored = json.loads(decision_store.get_summary(context.decision_id))
        assert stored == {"options": [{"label": "Stay"}, {"label": "Move", "description": "Berlin"}]}
        assert decision_store.get_decision(context.decision_id)["status"] == "analyzing"

    @pytest.mark.asyncio
    async def test_successive_updates_merge(self, registry, context, decision_store):
        await registry.dispatch(
            "update_decision_summary", {"options": [{"label": "Stay", "description": "old"}]}, context,
        )
        await registry.dispatch(
            "update_decision_summary",
            {"options": [{"label": "Stay", "description": "new"}, {"label": "Move"}]},
            context,
        )
        stored = json.loads(decision_store.get_summary(context.decision_id))
        assert stored["options"] == [{"label": "Stay", "description": "new"}, {"label": "Move"}]
        assert decision_store.get_decision(context.decision_id)["status"] == "exploring"

    @pytest.mark.asyncio
    async def test_emits_summary_event(self, registry, context, sink):
        await registry.dispatch(
            "update_decision_summary",
            {"variables": [{"label": "Salary", "value": "+20%"}], "status": "recommended"},
            context,
        )
        events = sink.of_type(EventType.DECISION_SUMMARY_UPDATED)
        assert len(events) == 1
        assert events[0].data["decision_id"] == context.decision_id
        assert events[0].data["summary"] == {"variables": [{"label": "Salary", "value": "+20%"}]}
        assert events[0].data["status"] == "recommended"

    @pytest.mark.asyncio
    async def test_without_decision_context(self, registry, profile_store, sink):
        context = ToolContext(profile_store=profile_store, sink=sink)
        result = await registry.dispatch("update_decision_summary", {"options": []}, context)
        assert not result.success
        assert "no decision context" in result.error
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_model_cannot_set_user_statuses(self, registry, context, decision_store):
        result = await registry.dispatch("update_decision_summary", {"status": "decided"}, context)
        assert not result.success
        assert result.error.startswith("Error updating status:")
        assert decision_store.get_decision(context.decision_id)["status"] == "exploring"

    @pytest.mark.asyncio
    async def test_rejected_status_keeps_summary_changes(self, registry, context, decision_store):
        args = {"options": [{"label": "Stay"}], "variables": [{"label": "Rent", "value": "high"}],
                "status": "decided"}
        result = await registry.dispatch("update_decision_summary", args, context)

        assert not result.success
        assert result.error.startswith("Error updating status:")
        stored = json.loads(decision_store.get_summary(context.decision_id))
        assert stored == {"options": [{"label": "Stay"}], "variables": [{"label": "Rent", "value": "high"}]}
        assert decision_store.get_decision(context.decision_id)["status"] == "exploring"

    @pytest.mark.asyncio
    async def test_unknown_decision_id(self, registry, context, sink):
        context.decision_id = "missing"
        result = await registry.dispatch("update_decision_summary", {"options": []}, context)
        assert not result.success
        assert result.error.startswith("Error saving summary:")
        assert sink.of_type(EventType.DECISION_SUMMARY_UPDATED) == []
