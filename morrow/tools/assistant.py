"""
Conversational actions: capabilities overview and small-talk chat.
"""
from typing import Any, Dict

from morrow.tools.tool_base import ExecutionContext, ToolBase

CAPABILITY_BLURBS: Dict[str, str] = {
    "seo_analysis": "check your local SEO",
    "social_content": "write social media posts",
    "audit_start": "run a business audit",
    "competitor_analysis": "size up your competitors",
    "content_calendar": "plan a content calendar",
    "report_generate": "turn an audit into a report",
    "website_intel": "read a public website",
    "leads_list": "pull up your leads",
    "search_knowledge": "search the knowledge base",
}


class ExplainCapabilitiesTool(ToolBase):
    """Describe what the assistant can do, from the live registry."""

    def __init__(self, registry):
        super().__init__()
        self._registry = registry
        self._name = "explain_capabilities"
        self._description = "Explain what Morrow.AI can help with"

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        available = [name for name in CAPABILITY_BLURBS if self._registry.has_tool(name)]
        blurbs = [CAPABILITY_BLURBS[name] for name in available]
        if len(blurbs) > 1:
            listed = ", ".join(blurbs[:-1]) + f", or {blurbs[-1]}"
        else:
            listed = "".join(blurbs) or "chat"
        return {
            "text": f"I'm Morrow.AI, your assistant for local business growth. I can {listed}.",
            "capabilities": available,
        }


class ChatTool(ToolBase):
    """Small-talk reply, noting any knowledge entries that match."""

    def __init__(self, knowledge_base=None):
        super().__init__()
        self._kb = knowledge_base
        self._name = "chat"
        self._description = "Reply conversationally to small talk"
        self._args_schema = {
            "type": "object",
            "properties": {
                "message": {"type": "string", "description": "What the user said"},
            },
            "required": [],
            "additionalProperties": False,
        }

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        message = (kwargs.get("message") or "").strip()
        reply = "Happy to help with your local marketing."
        if self._kb is not None and message:
            titles = [hit["title"] for hit in self._kb.search(message, limit=3, max_chars=200)]
            if titles:
                reply += " Related notes: " + ", ".join(titles) + "."
        return {"response": reply}
