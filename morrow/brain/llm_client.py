"""
HTTP client for an OpenAI-compatible chat completions API.
Used by the brain loop to let an external reasoning model propose tool calls.
"""
import json
import socket
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from morrow.core.config import Config
from morrow.core.logger import get_logger


class LLMNotConfiguredError(RuntimeError):
    """Raised when the brain loop runs without an API key."""


@dataclass
class LLMReply:
    """One assistant turn"""
    content: str
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)
    finish_reason: str = ""


class LLMClient:
    """Client for /chat/completions with connection reuse."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API base URL (e.g., https://api.openai.com/v1)
            api_key: Bearer token; without one is_configured() is False
            model: Default model name
            timeout: Request timeout in seconds
            temperature: Default sampling temperature
        """
        self.logger = get_logger()
        self.base_url = (base_url or Config.LLM_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else Config.LLM_API_KEY
        self.model = model or Config.LLM_MODEL
        self.timeout = timeout or Config.LLM_TIMEOUT
        self.temperature = Config.LLM_TEMPERATURE if temperature is None else temperature

        self.opener = urllib.request.build_opener(
            urllib.request.HTTPHandler(debuglevel=0),
            urllib.request.HTTPSHandler(debuglevel=0)
        )

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def name(self) -> str:
        return "openai"

    def chat(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> LLMReply:
        """
        Send one chat completion request.

        Args:
            messages: Chat messages (system/user/assistant/tool)
            tools: OpenAI function definitions; omitted from the payload when empty
            model: Override the default model
            temperature: Override the default temperature

        Returns:
            LLMReply with content and any proposed tool_calls

        Raises:
            LLMNotConfiguredError: If no API key is set
            ConnectionError: If the API cannot be reached or is rate limiting
            ValueError: If the response is invalid, the key is rejected, or the model is unknown
        """
        if not self.is_configured():
            raise LLMNotConfiguredError("LLM not configured: set MORROW_LLM_API_KEY or OPENAI_API_KEY")

        model = model or self.model
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        req = urllib.request.Request(
            f"{self.base_url}/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
                "Connection": "keep-alive",
            },
            method="POST"
        )

        start_time = time.time()
        self.logger.debug(f"[LLM] -> {model} messages={len(messages)} tools={len(tools or [])}")

        try:
            with self.opener.open(req, timeout=self.timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            error_body = ""
            try:
                error_body = e.read().decode("utf-8")
            except (OSError, UnicodeDecodeError):
                error_body = ""

            self.logger.error(f"[LLM] HTTP {e.code} after {elapsed_ms}ms: {error_body[:200]}")

            if e.code in (401, 403):
                raise ValueError("LLM API key was rejected") from e
            if e.code == 404:
                raise ValueError(f"Model '{model}' not found at {self.base_url}") from e
            if e.code == 429:
                raise ConnectionError("LLM rate limit reached") from e
            raise ConnectionError(f"LLM HTTP error: {e.code}") from e
        except urllib.error.URLError as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            self.logger.error(f"[LLM] Connection error after {elapsed_ms}ms: {e}")
            raise ConnectionError(f"Network error: {e.reason}") from e
        except (socket.timeout, TimeoutError) as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            self.logger.error(f"[LLM] Timed out after {elapsed_ms}ms")
            raise ConnectionError(f"LLM request timed out after {self.timeout}s") from e

        try:
            data = json.loads(body)
            choice = data["choices"][0]
            message = choice.get("message") or {}
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Invalid chat completion response: {body[:200]}") from e

        elapsed_ms = int((time.time() - start_time) * 1000)
        usage = data.get("usage") or {}
        tool_calls = message.get("tool_calls") or []
        self.logger.debug(
            f"[LLM] <- {elapsed_ms}ms tool_calls={len(tool_calls)} "
            f"(prompt_tokens={usage.get('prompt_tokens', 0)}, completion_tokens={usage.get('completion_tokens', 0)})"
        )
        return LLMReply(
            content=(message.get("content") or "").strip(),
            tool_calls=list(tool_calls),
            raw=data,
            finish_reason=choice.get("finish_reason") or "",
        )
