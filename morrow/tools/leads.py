"""
Leads list tool - demo prospects shown on the dashboard.
"""
from typing import Any, Dict, List

from morrow.tools.tool_base import ExecutionContext, ToolBase

DEMO_LEADS: List[Dict[str, str]] = [
    {
        "id": "lead1",
        "name": "Downtown Pizza",
        "location": "Riverside, CA",
        "website": "https://downtownpizza.example",
    },
    {
        "id": "lead2",
        "name": "Sunset Plumbing",
        "location": "San Diego, CA",
        "website": "https://sunsetplumbing.example",
    },
]


class LeadsListTool(ToolBase):
    """Get the current leads/prospects."""

    def __init__(self):
        super().__init__()
        self._name = "leads_list"
        self._description = "Get a list of current leads/prospects from the system"
        self._args_schema = {
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        }

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        leads = [dict(lead) for lead in DEMO_LEADS]
        names = ", ".join(f"{lead['name']} ({lead['location']})" for lead in leads)
        return {
            "leads": leads,
            "count": len(leads),
            "text": f"You have {len(leads)} leads: {names}.",
        }
