"""
Audit tools: start a business audit and generate its report.

Both are template placeholders; no live SEO data is fetched.
"""
import hashlib
from typing import Any, Dict

from morrow.tools.tool_base import ExecutionContext, ToolBase


def _audit_id_for(business_name: str, website: str) -> str:
    digest = hashlib.sha1(f"{business_name}|{website}".lower().encode("utf-8")).hexdigest()
    return f"audit_{digest[:10]}"


class AuditStartTool(ToolBase):
    """Start a local-SEO audit for a business."""

    def __init__(self):
        super().__init__()
        self._name = "audit_start"
        self._description = "Start a business audit for a given business name and optional website"
        self._args_schema = {
            "type": "object",
            "properties": {
                "businessName": {
                    "type": "string",
                    "description": "Name of the business to audit",
                },
                "website": {
                    "type": "string",
                    "description": "Website URL of the business (optional)",
                },
                "scope": {
                    "type": "array",
                    "items": {"type": "string"},
                    "default": [],
                    "description": 'Audit scope areas (e.g., ["seo", "gbp", "citations"])',
                },
            },
            "required": ["businessName"],
            "additionalProperties": False,
        }

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        business = kwargs["businessName"].strip()
        website = (kwargs.get("website") or "").strip()
        scope = kwargs.get("scope") or []

        site_note = f" ({website})" if website else ""
        scope_note = ", ".join(scope) if scope else "standard local SEO"
        return {
            "audit_id": _audit_id_for(business, website),
            "report": f"Started audit for {business}{site_note}. Scope: {scope_note}.",
            "scope": list(scope),
        }


class ReportGenerateTool(ToolBase):
    """Generate a report for a completed audit."""

    def __init__(self):
        super().__init__()
        self._name = "report_generate"
        self._description = "Generate a report for a completed audit"
        self._args_schema = {
            "type": "object",
            "properties": {
                "auditId": {
                    "type": "string",
                    "description": "ID of the audit to generate report for",
                },
                "format": {
                    "type": "string",
                    "enum": ["markdown", "html", "pdf"],
                    "default": "markdown",
                    "description": "Report format (markdown, html, pdf)",
                },
            },
            "required": ["auditId"],
            "additionalProperties": False,
        }

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        audit_id = kwargs["auditId"].strip() or "N/A"
        fmt = kwargs.get("format") or "markdown"
        return {
            "report": f"# Audit Report\n\nID: {audit_id}\n\nGenerated by Morrow.AI.",
            "format": fmt,
            "audit_id": audit_id,
        }
