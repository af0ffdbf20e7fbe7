"""
Brain module for Morrow.
OpenAI-compatible reasoning model client and prompt construction for the
tool-calling loop.
"""
from morrow.brain.llm_client import LLMClient, LLMReply, LLMNotConfiguredError
from morrow.brain.messages import (
    Message,
    msg_system,
    msg_user,
    msg_assistant,
    msg_tool,
    MessageBuilder
)

__all__ = [
    "LLMClient",
    "LLMReply",
    "LLMNotConfiguredError",
    "Message",
    "msg_system",
    "msg_user",
    "msg_assistant",
    "msg_tool",
    "MessageBuilder"
]
