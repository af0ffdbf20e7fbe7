"""
Marketing actions: SEO analysis, social content, competitor analysis,
content calendar.

These are template placeholders that produce a consistent checklist for the
consultant; none of them call out to live ranking or competitor data.
"""
import re
from typing import Any, Dict, List

from morrow.tools.tool_base import ExecutionContext, ToolBase


def _hashtag(name: str) -> str:
    return "#" + re.sub(r"[^a-z0-9]", "", (name or "local").lower())


def _schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


_BUSINESS_NAME = {"type": "string", "description": "Business name"}
_WEBSITE = {"type": "string", "description": "Website URL (optional)"}
_LOCATION = {"type": "string", "description": "City or full address"}
_INDUSTRY = {"type": "string", "description": "Industry or category (optional)"}


class SeoAnalysisTool(ToolBase):
    """Local SEO checklist for a business."""

    def __init__(self):
        super().__init__()
        self._name = "seo_analysis"
        self._description = "Run a local SEO analysis checklist for a business"
        self._args_schema = _schema(
            {
                "businessName": _BUSINESS_NAME,
                "website": _WEBSITE,
                "location": _LOCATION,
                "industry": _INDUSTRY,
            },
            ["businessName"],
        )

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        header = f"SEO Analysis for {kwargs['businessName']}"
        if kwargs.get("website"):
            header += f" ({kwargs['website']})"
        if kwargs.get("location"):
            header += f" in {kwargs['location']}"
        if kwargs.get("industry"):
            header += f" [{kwargs['industry']}]"
        checklist = [
            "- GBP: Ensure categories, photos, reviews",
            "- On-Page: Titles, H1, NAP, internal links",
            "- Citations: Yelp, BBB, Apple Maps",
            "- Reviews: Implement request cadence",
            "- Competitors: Identify 2-3 and gaps",
            "- Actions: Top 5 quick wins",
        ]
        return {"analysis": header + "\n\n" + "\n".join(checklist)}


class SocialContentTool(ToolBase):
    """Draft a social media post."""

    def __init__(self):
        super().__init__()
        self._name = "social_content"
        self._description = "Create a social media post for a business on a given topic"
        self._args_schema = _schema(
            {
                "businessName": _BUSINESS_NAME,
                "topic": {"type": "string", "description": "What the post is about"},
                "platform": {"type": "string", "description": "Target platform (facebook, instagram, ...)"},
                "tone": {"type": "string", "description": "Voice of the post (friendly, professional, ...)"},
                "includeImage": {"type": "boolean", "description": "Attach a placeholder image"},
            },
            ["businessName", "topic"],
        )

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        business = kwargs["businessName"]
        topic = kwargs["topic"]
        platform = kwargs.get("platform") or "social"
        tone = kwargs.get("tone") or "friendly"
        text = f"Post for {business} on {platform} (tone: {tone}): {topic}. {_hashtag(business)}"
        images = []
        if kwargs.get("includeImage"):
            images.append("https://placehold.co/800x600?text=" + re.sub(r"\s+", "+", topic.strip()))
        return {"content": text, "images": images}


class CompetitorAnalysisTool(ToolBase):
    """Competitor overview for a business in a location."""

    def __init__(self):
        super().__init__()
        self._name = "competitor_analysis"
        self._description = "Outline likely competitors, strengths and gaps for a business in a location"
        self._args_schema = _schema(
            {
                "businessName": _BUSINESS_NAME,
                "location": _LOCATION,
                "industry": _INDUSTRY,
            },
            ["businessName", "location"],
        )

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        industry = kwargs.get("industry") or "category"
        text = (
            f"Competitor analysis for {kwargs['businessName']} in {kwargs['location']}.\n"
            f"- Likely competitors: 2-3 peers in {industry}\n"
            "- Strengths/Weaknesses\n"
            "- Opportunities & differentiators"
        )
        return {"analysis": text}


class ContentCalendarTool(ToolBase):
    """Content calendar outline."""

    def __init__(self):
        super().__init__()
        self._name = "content_calendar"
        self._description = "Build a content calendar for a business over a number of days"
        self._args_schema = _schema(
            {
                "businessName": _BUSINESS_NAME,
                "industry": _INDUSTRY,
                "timeframe": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 365,
                    "default": 30,
                    "description": "Length of the calendar in days",
                },
                "platforms": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Platforms to plan for",
                },
            },
            ["businessName"],
        )

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        days = kwargs.get("timeframe") or 30
        platforms = kwargs.get("platforms") or []
        text = (
            f"Content calendar for {kwargs['businessName']} ({kwargs.get('industry') or 'general'}) "
            f"over {days} days on {', '.join(platforms) or 'default platforms'}."
        )
        return {"content": text, "days": days, "platforms": list(platforms)}
