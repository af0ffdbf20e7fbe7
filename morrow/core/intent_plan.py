"""
Tool-call plan normalization for the reasoning model's output.

The model proposes calls in several shapes (OpenAI tool_calls, an "intents"
array, a legacy single {"tool", "args"} object, or the {actionName, arguments}
wire shape). Everything is normalized to an ordered list of ToolCallRequest
before it reaches the dispatcher.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from morrow.core.logger import get_logger


# ============================================================================
# TOOL ALIAS NORMALIZATION
# ============================================================================
# Static mapping of common model-invented tool names to canonical names.
# Aliases are only applied if the target tool EXISTS in the registry.

TOOL_ALIAS_MAP: Dict[str, str] = {
    # Audit aliases (the dashboard's camelCase action names included)
    "startAudit": "audit_start",
    "start_audit": "audit_start",
    "run_audit": "audit_start",
    "business_audit": "audit_start",
    "generateReport": "report_generate",
    "generate_report": "report_generate",
    "audit_report": "report_generate",

    # Marketing aliases
    "performSEOAnalysis": "seo_analysis",
    "seo_check": "seo_analysis",
    "analyze_seo": "seo_analysis",
    "generateSocialContent": "social_content",
    "social_post": "social_content",
    "create_post": "social_content",
    "analyzeCompetitors": "competitor_analysis",
    "competitors": "competitor_analysis",
    "createContentCalendar": "content_calendar",
    "content_plan": "content_calendar",

    # Lookup aliases
    "search_kb": "search_knowledge",
    "knowledge_search": "search_knowledge",
    "fetch_website": "website_intel",
    "analyze_website": "website_intel",
    "list_leads": "leads_list",
    "get_leads": "leads_list",

    # Conversation aliases
    "explainCapabilities": "explain_capabilities",
    "capabilities": "explain_capabilities",
}


@dataclass
class ToolCallRequest:
    """One proposed action call"""
    action_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    call_id: Optional[str] = None


@dataclass
class IntentPlan:
    """Normalized plan from model output"""
    reply: str
    calls: List[ToolCallRequest]


def normalize_tool_aliases(
    calls: List[ToolCallRequest], tool_registry
) -> Tuple[List[ToolCallRequest], List[str]]:
    """
    Normalize tool aliases BEFORE dispatch.

    Args:
        calls: Proposed calls
        tool_registry: ToolRegistry used to check the canonical tool exists

    Returns:
        Tuple of (normalized_calls, list of alias normalization log messages)
    """
    logger = get_logger()
    normalized = []
    log_messages = []

    for call in calls:
        canonical = TOOL_ALIAS_MAP.get(call.action_name)
        if canonical and not tool_registry.has_tool(call.action_name) and tool_registry.has_tool(canonical):
            log_msg = f"[ALIAS_NORM] '{call.action_name}' -> '{canonical}'"
            logger.debug(log_msg)
            log_messages.append(log_msg)
            normalized.append(ToolCallRequest(action_name=canonical, arguments=call.arguments, call_id=call.call_id))
        else:
            normalized.append(call)

    return normalized, log_messages


def _parse_arguments(raw: Any) -> Dict[str, Any]:
    # Unparseable arguments become {} and fail schema validation downstream
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            get_logger().warning(f"[LLM] Unparseable tool arguments: {raw[:100]}")
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def _call_from_dict(raw: Dict[str, Any]) -> Optional[ToolCallRequest]:
    # OpenAI tool_call: {"id", "type": "function", "function": {"name", "arguments"}}
    function = raw.get("function")
    if isinstance(function, dict):
        name = function.get("name")
        if isinstance(name, str) and name:
            return ToolCallRequest(
                action_name=name,
                arguments=_parse_arguments(function.get("arguments")),
                call_id=raw.get("id"),
            )
        return None

    name = raw.get("actionName") or raw.get("tool")
    if not isinstance(name, str) or not name:
        return None
    args = raw.get("arguments", raw.get("args"))
    return ToolCallRequest(
        action_name=name,
        arguments=_parse_arguments(args),
        call_id=raw.get("callId") or raw.get("id"),
    )


def normalize_plan(model_output: Any) -> IntentPlan:
    """
    Normalize model output to an IntentPlan.

    Accepted shapes:
    - {"tool_calls": [...]}                 -> OpenAI tool calls
    - {"intents": [...]}                    -> Multi-call list
    - {"intent": {...}}                     -> Single call
    - {"tool": "...", "args": {...}}        -> Single call
    - {"actionName": "...", "arguments": {...}}
    - a bare list of any of the above call objects

    Entries without a usable name are dropped.
    """
    if isinstance(model_output, list):
        model_output = {"intents": model_output}
    if not isinstance(model_output, dict):
        return IntentPlan(reply="", calls=[])

    reply = model_output.get("reply") or model_output.get("content") or ""
    raw_calls: List[Any] = []

    if model_output.get("tool_calls"):
        raw_calls = list(model_output["tool_calls"])
    elif model_output.get("intents"):
        raw_calls = list(model_output["intents"]) if isinstance(model_output["intents"], list) else []
    elif isinstance(model_output.get("intent"), dict):
        raw_calls = [model_output["intent"]]
    elif model_output.get("tool") or model_output.get("actionName"):
        raw_calls = [model_output]

    calls = []
    for raw in raw_calls:
        if not isinstance(raw, dict):
            continue
        call = _call_from_dict(raw)
        if call is not None:
            calls.append(call)

    return IntentPlan(reply=reply if isinstance(reply, str) else "", calls=calls)
