"""
Configuration module for the Morrow brain.
Centralizes all settings with environment variable overrides.
"""
import os
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


class Config:
    """Central configuration for Morrow"""

    # Dispatch budget (per request)
    MAX_STEPS: int = int(os.environ.get("MORROW_MAX_STEPS", "4"))
    MAX_DURATION_MS: int = int(os.environ.get("MORROW_MAX_DURATION_MS", "20000"))

    # Intent resolution
    # A resolved intent only names an action when its confidence clears this threshold.
    DISPATCH_CONFIDENCE_THRESHOLD: float = float(os.environ.get("MORROW_DISPATCH_CONFIDENCE", "0.5"))
    # Best intent scoring below this falls back to the default "chat" intent.
    INTENT_MIN_SCORE: float = float(os.environ.get("MORROW_INTENT_MIN_SCORE", "0.3"))

    # Conversation memory (RAM only, context hint for the resolver)
    CONVERSATION_MAX_TURNS: int = int(os.environ.get("MORROW_CONVERSATION_MAX_TURNS", "12"))
    CONVERSATION_CONTEXT_TURNS: int = int(os.environ.get("MORROW_CONVERSATION_CONTEXT_TURNS", "3"))
    CONVERSATION_MAX_AGE_SEC: float = float(os.environ.get("MORROW_CONVERSATION_MAX_AGE_SEC", "3600"))
    CONVERSATION_SWEEP_INTERVAL_SEC: float = float(os.environ.get("MORROW_CONVERSATION_SWEEP_INTERVAL_SEC", "60"))

    # Response formatting
    MAX_SENTENCE_WORDS: int = int(os.environ.get("MORROW_MAX_SENTENCE_WORDS", "20"))
    MAX_NEXT_STEPS: int = int(os.environ.get("MORROW_MAX_NEXT_STEPS", "3"))
    USE_EMOJIS: bool = _env_bool("MORROW_USE_EMOJIS", "true")

    # Logging
    LOG_LEVEL: str = os.environ.get("MORROW_LOG_LEVEL", "INFO")
    QUIET_MODE: bool = _env_bool("MORROW_QUIET_MODE", "false")
    LOG_RICH: bool = _env_bool("MORROW_LOG_RICH", "true")

    # External reasoning model (OpenAI-compatible chat completions)
    LLM_BASE_URL: str = os.environ.get("MORROW_LLM_BASE_URL", "https://api.openai.com/v1")
    LLM_API_KEY: Optional[str] = os.environ.get("MORROW_LLM_API_KEY") or os.environ.get("OPENAI_API_KEY") or None
    LLM_MODEL: str = os.environ.get("MORROW_LLM_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT: int = int(os.environ.get("MORROW_LLM_TIMEOUT", "30"))
    LLM_TEMPERATURE: float = float(os.environ.get("MORROW_LLM_TEMPERATURE", "0.4"))

    # Tools
    KNOWLEDGE_DIR: str = os.environ.get(
        "MORROW_KNOWLEDGE_DIR",
        str(Path(__file__).resolve().parent.parent / "knowledge"),
    )
    KNOWLEDGE_MAX_CHARS_PER_FILE: int = int(os.environ.get("MORROW_KNOWLEDGE_MAX_CHARS", "10000"))
    WEBSITE_FETCH_TIMEOUT_SEC: float = float(os.environ.get("MORROW_WEBSITE_FETCH_TIMEOUT_SEC", "8.0"))
    WEBSITE_MAX_BYTES: int = int(os.environ.get("MORROW_WEBSITE_MAX_BYTES", "2000000"))

    @classmethod
    def get_max_duration_sec(cls) -> float:
        """Get the dispatch time budget in seconds"""
        return cls.MAX_DURATION_MS / 1000.0

    @classmethod
    def llm_is_configured(cls) -> bool:
        """True when an API key for the reasoning model is present"""
        return bool(cls.LLM_API_KEY)
