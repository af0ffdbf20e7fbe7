"""
Website intel tool.

Fetches a public web page and pulls out the basics (title, meta description,
headings, a sample of body text). Only public http(s) hosts are allowed:
localhost, private, loopback and link-local addresses are refused before
any request is made.
"""

from __future__ import annotations

import ipaddress
import urllib.error
import urllib.request
from typing import Any, Dict, List
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from morrow.core.config import Config
from morrow.core.logger import get_logger
from morrow.tools.tool_base import ActionError, ExecutionContext, ToolBase

_USER_AGENT = "MorrowAI/1.0 (+https://smartlocal.ai)"


def check_public_url(url: str) -> str:
    """Return the lowercase host of a public http(s) URL, or raise ActionError."""
    parsed = urlparse((url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ActionError("Valid URL required (http/https)", error_type="invalid_url")

    host = parsed.hostname.lower()
    if host in ("localhost", "localhost.localdomain") or host.endswith(".local"):
        raise ActionError(f"Blocked host: {host} (only public websites allowed)", error_type="blocked_host")

    try:
        addr = ipaddress.ip_address(host)
    except ValueError:
        return host

    if (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_reserved
        or addr.is_multicast
        or addr.is_unspecified
    ):
        raise ActionError(f"Blocked host: {host} (only public websites allowed)", error_type="blocked_host")
    return host


def _fetch_html(url: str, timeout_sec: float) -> str:
    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": _USER_AGENT,
            "Accept": "text/html,application/xhtml+xml",
        },
        method="GET",
    )
    with urllib.request.urlopen(req, timeout=timeout_sec) as resp:
        content_type = resp.headers.get("Content-Type", "") or ""
        if content_type and "text/html" not in content_type:
            raise ActionError(f"Unsupported content-type: {content_type}", error_type="unsupported_content")
        data = resp.read(Config.WEBSITE_MAX_BYTES)
    return data.decode("utf-8", errors="replace")


def extract_page_intel(html: str) -> Dict[str, Any]:
    """Pull title/description/headings/text sample out of an HTML document."""
    soup = BeautifulSoup(html or "", "html.parser")

    def _meta(attr: str, value: str) -> str:
        tag = soup.find("meta", attrs={attr: value})
        return (tag.get("content") or "").strip() if tag else ""

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    og_title = _meta("property", "og:title")
    description = _meta("name", "description") or _meta("property", "og:description")

    h1 = [h.get_text(" ", strip=True) for h in soup.find_all("h1")][:5]
    h2 = [h.get_text(" ", strip=True) for h in soup.find_all("h2")][:8]

    blocks: List[str] = []
    for el in soup.find_all(["p", "li"]):
        text = " ".join(el.get_text(" ", strip=True).split())
        if 40 < len(text) < 500:
            blocks.append(text)

    return {
        "title": og_title or title,
        "description": description,
        "h1": h1,
        "h2": h2,
        "content_sample": blocks[:30],
    }


class WebsiteIntelTool(ToolBase):
    """Fetch and summarize a public website."""

    def __init__(self):
        super().__init__()
        self._name = "website_intel"
        self._description = (
            "Fetch and analyze website content (title, description, headings, text). "
            "Only works with public websites."
        )
        self._args_schema = {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "Full URL of the website to analyze (must start with http:// or https://)",
                },
            },
            "required": ["url"],
            "additionalProperties": False,
        }

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        url = (kwargs.get("url") or "").strip()
        check_public_url(url)

        try:
            html = _fetch_html(url, Config.WEBSITE_FETCH_TIMEOUT_SEC)
        except urllib.error.HTTPError as e:
            raise ActionError(f"Failed to fetch website: HTTP {e.code}", error_type="http_error") from e
        except urllib.error.URLError as e:
            raise ActionError(f"Failed to fetch website: {e.reason}", error_type="network_error") from e

        intel = extract_page_intel(html)
        get_logger().debug(f"[TOOLS] website_intel {url} title={intel['title']!r}")

        summary = intel["title"] or url
        if intel["description"]:
            summary = f"{summary}: {intel['description']}"
        return {"url": url, **intel, "text": summary}
