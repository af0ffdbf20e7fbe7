"""
Tool registry for the Morrow brain.

The registry is built once at startup and frozen; nothing registers
tools mid-request.
"""
from typing import Any, Dict, Iterable, List, Optional

from morrow.tools.tool_base import ToolBase


class RegistryFrozenError(RuntimeError):
    """Raised when registering into a frozen registry."""


class ToolRegistry:
    """Name -> tool lookup, in registration order"""

    def __init__(self, tools: Optional[Iterable[ToolBase]] = None):
        self._tools: Dict[str, ToolBase] = {}
        self._frozen = False
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolBase) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register '{tool.name}': registry is frozen")
        if not tool.name:
            raise ValueError("Tool name must be a non-empty string")
        if tool.name in self._tools:
            raise ValueError(f"Duplicate tool name: {tool.name}")
        self._tools[tool.name] = tool

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[ToolBase]:
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return isinstance(name, str) and name in self._tools

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def list_tools(self) -> List[ToolBase]:
        return list(self._tools.values())

    def to_tool_definitions(self, allowed: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """Function definitions for the reasoning model, filtered by an allowlist."""
        if allowed is None:
            return [tool.to_definition() for tool in self._tools.values()]
        allowed_set = set(allowed)
        return [tool.to_definition() for name, tool in self._tools.items() if name in allowed_set]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def build_default_registry(knowledge_base=None) -> ToolRegistry:
    """Build the frozen registry of built-in Morrow actions."""
    from morrow.tools.knowledge import KnowledgeBase, SearchKnowledgeTool
    from morrow.tools.website_intel import WebsiteIntelTool
    from morrow.tools.leads import LeadsListTool
    from morrow.tools.audits import AuditStartTool, ReportGenerateTool
    from morrow.tools.marketing import (
        SeoAnalysisTool,
        SocialContentTool,
        CompetitorAnalysisTool,
        ContentCalendarTool,
    )
    from morrow.tools.assistant import ExplainCapabilitiesTool, ChatTool

    kb = knowledge_base if knowledge_base is not None else KnowledgeBase()

    registry = ToolRegistry()
    registry.register(SearchKnowledgeTool(kb))
    registry.register(WebsiteIntelTool())
    registry.register(LeadsListTool())
    registry.register(AuditStartTool())
    registry.register(ReportGenerateTool())
    registry.register(SeoAnalysisTool())
    registry.register(SocialContentTool())
    registry.register(CompetitorAnalysisTool())
    registry.register(ContentCalendarTool())
    registry.register(ExplainCapabilitiesTool(registry))
    registry.register(ChatTool(kb))
    return registry.freeze()
