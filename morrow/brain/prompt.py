"""
Prompt for the tool-calling brain loop.
"""
from typing import Any, List, Optional, Sequence

from morrow.brain.messages import Message, MessageBuilder

BRAIN_SYSTEM_PROMPT = """You are Morrow.AI, an assistant for consultants who help local businesses grow.

What you do:
- Help with local SEO, business audits, competitor checks, social content and content calendars
- Look things up with the tools you are given; never invent tool names
- Call tools in the order their results are needed (e.g. list leads, then audit the first one)
- When a required detail is missing (like the business name), ask for it in one short question

Response style:
- Plain English, short sentences, no jargon
- Lead with the answer, then at most a few bullet points
- Friendly and direct; do not apologize or self-disclaim
"""


def build_brain_messages(
    prompt: str,
    history: Optional[Sequence[Any]] = None,
    system_prompt: str = BRAIN_SYSTEM_PROMPT,
) -> List[Message]:
    """
    System prompt, then recent turns as user/assistant pairs, then the new prompt.

    Args:
        prompt: The user's request
        history: ConversationTurns, oldest first
        system_prompt: Override the persona
    """
    builder = MessageBuilder().system(system_prompt)
    for turn in history or []:
        builder.user(turn.utterance)
        builder.assistant(turn.reply)
    builder.user(prompt)
    return builder.build()
