"""
Knowledge base tool.

Loads plain-text knowledge files (.md/.txt/.json) from a directory into RAM
and answers keyword lookups against them. Scoring is deliberately simple:
+2 if the body contains the query, +1 if the file name does.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from morrow.core.config import Config
from morrow.core.logger import get_logger
from morrow.tools.tool_base import ExecutionContext, ToolBase

_KNOWLEDGE_EXTENSIONS = (".md", ".txt", ".json")


class KnowledgeBase:
    """In-memory knowledge snippets loaded from disk."""

    def __init__(self, directory: Optional[str] = None, max_chars_per_file: Optional[int] = None):
        self.directory = Path(directory or Config.KNOWLEDGE_DIR)
        self.max_chars_per_file = max_chars_per_file or Config.KNOWLEDGE_MAX_CHARS_PER_FILE
        self._entries: List[Dict[str, str]] = []
        self.reload()

    def reload(self) -> int:
        """(Re)load every knowledge file. Returns the entry count."""
        logger = get_logger()
        entries: List[Dict[str, str]] = []
        if not self.directory.is_dir():
            logger.debug(f"[KB] No knowledge directory at {self.directory}")
            self._entries = entries
            return 0

        for path in sorted(self.directory.iterdir()):
            if not path.is_file() or path.suffix.lower() not in _KNOWLEDGE_EXTENSIONS:
                continue
            try:
                body = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning(f"[KB] Failed to read {path.name}: {e}")
                continue
            if path.suffix.lower() == ".json":
                try:
                    body = json.dumps(json.loads(body), indent=2)
                except ValueError:
                    pass
            entries.append({"title": path.name, "content": body[: self.max_chars_per_file]})

        self._entries = entries
        logger.debug(f"[KB] Loaded {len(entries)} knowledge files from {self.directory}")
        return len(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def search(self, query: str, limit: int = 3, max_chars: int = 800) -> List[Dict[str, str]]:
        q = (query or "").strip().lower()
        if not q or not self._entries:
            return []

        scored = []
        for idx, entry in enumerate(self._entries):
            score = 0
            if q in entry["content"].lower():
                score += 2
            if q in entry["title"].lower():
                score += 1
            if score > 0:
                scored.append((score, idx, entry))

        # Highest score first; load order breaks ties
        scored.sort(key=lambda item: (-item[0], item[1]))
        return [
            {"title": entry["title"], "snippet": entry["content"][:max_chars]}
            for _, _, entry in scored[: max(0, limit)]
        ]


class SearchKnowledgeTool(ToolBase):
    """Search the internal knowledge base."""

    def __init__(self, knowledge_base: KnowledgeBase):
        super().__init__()
        self._kb = knowledge_base
        self._name = "search_knowledge"
        self._description = "Search the internal knowledge base for relevant information using keywords or topics"
        self._args_schema = {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query or topic to find in knowledge base",
                },
                "limit": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 10,
                    "default": 3,
                    "description": "Maximum number of results to return (default 3)",
                },
            },
            "required": ["query"],
            "additionalProperties": False,
        }

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        query = kwargs.get("query", "")
        limit = kwargs.get("limit") or 3
        results = self._kb.search(query, limit=limit, max_chars=800)
        if results:
            titles = ", ".join(r["title"] for r in results)
            text = f"Found {len(results)} knowledge entries for '{query}': {titles}."
        else:
            text = f"Nothing in the knowledge base matches '{query}' yet."
        return {
            "results": results,
            "count": len(results),
            "query": query,
            "text": text,
        }
