"""
Message representation for the reasoning model.

Messages are OpenAI-style chat dicts. Tool-calling rounds add assistant
messages that carry tool_calls and tool messages that carry results.

Usage:
    from morrow.brain.messages import msg_system, msg_user, MessageBuilder

    messages = (
        MessageBuilder()
        .system("You are Morrow.AI...")
        .user("List my leads")
        .build()
    )
"""
from typing import Any, Dict, List, Literal, Optional, TypedDict


# -----------------------------------------------------------------------------
# Message Type Definition
# -----------------------------------------------------------------------------

Role = Literal["system", "user", "assistant", "tool"]


class Message(TypedDict, total=False):
    """
    A single chat message.

    Attributes:
        role: One of "system", "user", "assistant", or "tool"
        content: The text content of the message
        tool_calls: Calls proposed by the assistant (assistant messages only)
        tool_call_id: The call this result answers (tool messages only)
        name: Tool name (tool messages only)
    """
    role: Role
    content: str
    tool_calls: List[Dict[str, Any]]
    tool_call_id: str
    name: str


# -----------------------------------------------------------------------------
# Message Constructors
# -----------------------------------------------------------------------------

def msg_system(content: str) -> Message:
    """Create a system message (persona, rules)."""
    return {"role": "system", "content": content}


def msg_user(content: str) -> Message:
    """Create a user message."""
    return {"role": "user", "content": content}


def msg_assistant(content: str, tool_calls: Optional[List[Dict[str, Any]]] = None) -> Message:
    """
    Create an assistant message.

    Args:
        content: The assistant's text (may be empty when it only proposes calls)
        tool_calls: Raw tool_calls exactly as the model returned them

    Returns:
        A Message dict with role="assistant"
    """
    message: Message = {"role": "assistant", "content": content or ""}
    if tool_calls:
        message["tool_calls"] = list(tool_calls)
    return message


def msg_tool(call_id: Optional[str], name: str, content: str) -> Message:
    """
    Create a tool result message.

    Args:
        call_id: id of the tool call being answered
        name: Tool name
        content: Serialized result (JSON text)

    Returns:
        A Message dict with role="tool"
    """
    return {"role": "tool", "tool_call_id": call_id or "", "name": name, "content": content}


# -----------------------------------------------------------------------------
# Message Builder - Convenience class for building message lists
# -----------------------------------------------------------------------------

class MessageBuilder:
    """
    Convenience class for building message lists incrementally.

    Example:
        builder = MessageBuilder()
        builder.system("You are Morrow.AI...")
        builder.user("Who are my leads?")
        messages = builder.build()
    """

    def __init__(self):
        self._messages: List[Message] = []

    def system(self, content: str) -> "MessageBuilder":
        """Add a system message. Returns self for chaining."""
        if content and content.strip():
            self._messages.append(msg_system(content))
        return self

    def user(self, content: str) -> "MessageBuilder":
        """Add a user message. Returns self for chaining."""
        if content and content.strip():
            self._messages.append(msg_user(content))
        return self

    def assistant(self, content: str) -> "MessageBuilder":
        """Add an assistant message. Returns self for chaining."""
        if content and content.strip():
            self._messages.append(msg_assistant(content))
        return self

    def build(self) -> List[Message]:
        """Return the constructed message list."""
        return self._messages.copy()
