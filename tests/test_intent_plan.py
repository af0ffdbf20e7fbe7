"""
Tests for tool-call plan normalization and alias mapping.

Run with: python -m pytest tests/test_intent_plan.py -v
"""

import pytest

from morrow.core.intent_plan import (
    TOOL_ALIAS_MAP,
    ToolCallRequest,
    normalize_plan,
    normalize_tool_aliases,
)
from morrow.tools.registry import build_default_registry


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(scope="module")
def registry():
    return build_default_registry()


# ============================================================================
# PLAN SHAPES
# ============================================================================

class TestNormalizePlan:
    """Every accepted model output shape becomes an ordered list of calls."""

    def test_openai_tool_calls(self):
        plan = normalize_plan({
            "reply": "",
            "tool_calls": [
                {"id": "call_1", "type": "function",
                 "function": {"name": "leads_list", "arguments": "{}"}},
                {"id": "call_2", "type": "function",
                 "function": {"name": "audit_start", "arguments": '{"businessName": "Downtown Pizza"}'}},
            ],
        })
        assert [c.action_name for c in plan.calls] == ["leads_list", "audit_start"]
        assert plan.calls[1].arguments == {"businessName": "Downtown Pizza"}
        assert plan.calls[1].call_id == "call_2"

    def test_unparseable_arguments_become_empty(self):
        plan = normalize_plan({"tool_calls": [{"id": "c", "function": {"name": "audit_start", "arguments": "{oops"}}]})
        assert plan.calls[0].arguments == {}

    def test_non_object_json_arguments_become_empty(self):
        plan = normalize_plan({"tool_calls": [{"function": {"name": "audit_start", "arguments": "[1, 2]"}}]})
        assert plan.calls[0].arguments == {}

    def test_intents_list(self):
        plan = normalize_plan({
            "reply": "Working on it",
            "intents": [
                {"tool": "leads_list", "args": {}},
                {"actionName": "seo_analysis", "arguments": {"businessName": "Acme"}, "callId": "x1"},
            ],
        })
        assert plan.reply == "Working on it"
        assert [c.action_name for c in plan.calls] == ["leads_list", "seo_analysis"]
        assert plan.calls[1].call_id == "x1"

    def test_single_intent_object(self):
        plan = normalize_plan({"intent": {"tool": "leads_list", "args": {}}})
        assert [c.action_name for c in plan.calls] == ["leads_list"]

    def test_legacy_tool_args(self):
        plan = normalize_plan({"tool": "search_knowledge", "args": {"query": "citations"}})
        assert plan.calls == [ToolCallRequest("search_knowledge", {"query": "citations"})]

    def test_wire_shape(self):
        plan = normalize_plan({"actionName": "leads_list", "arguments": {}})
        assert plan.calls[0].action_name == "leads_list"

    def test_bare_list(self):
        plan = normalize_plan([{"tool": "leads_list"}, {"tool": "chat", "args": {"message": "hi"}}])
        assert [c.action_name for c in plan.calls] == ["leads_list", "chat"]

    def test_nameless_entries_dropped(self):
        plan = normalize_plan({"intents": [{"args": {}}, "leads_list", {"tool": ""}, {"tool": "leads_list"}]})
        assert [c.action_name for c in plan.calls] == ["leads_list"]

    def test_reply_only(self):
        plan = normalize_plan({"reply": "Hello!"})
        assert plan.reply == "Hello!"
        assert plan.calls == []

    def test_garbage(self):
        for output in (None, "text", 42):
            plan = normalize_plan(output)
            assert plan.reply == ""
            assert plan.calls == []


# ============================================================================
# ALIASES
# ============================================================================

class TestToolAliases:

    def test_dashboard_names_are_mapped(self, registry):
        calls = [ToolCallRequest("startAudit", {"businessName": "Acme"}, "c1"), ToolCallRequest("performSEOAnalysis")]
        normalized, logs = normalize_tool_aliases(calls, registry)

        assert [c.action_name for c in normalized] == ["audit_start", "seo_analysis"]
        assert normalized[0].arguments == {"businessName": "Acme"}
        assert normalized[0].call_id == "c1"
        assert len(logs) == 2

    def test_registered_names_untouched(self, registry):
        normalized, logs = normalize_tool_aliases([ToolCallRequest("leads_list")], registry)
        assert normalized[0].action_name == "leads_list"
        assert logs == []

    def test_unknown_names_untouched(self, registry):
        normalized, _ = normalize_tool_aliases([ToolCallRequest("delete_everything")], registry)
        assert normalized[0].action_name == "delete_everything"

    def test_every_alias_targets_a_builtin(self, registry):
        for alias, canonical in TOOL_ALIAS_MAP.items():
            assert registry.has_tool(canonical), alias
