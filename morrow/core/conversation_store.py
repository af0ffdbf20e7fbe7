"""
Conversation store - bounded, RAM-only log of recent turns.

Turns are keyed by an opaque conversation id and only serve as a context
hint for the intent resolver. Each conversation keeps at most max_turns
entries (oldest evicted first) and turns older than max_age_sec are dropped.
Appends also sweep every conversation at most once per sweep interval, so
ids that are never used again still age out.

There is no locking: two requests appending to the same conversation id at
the same time may interleave, and the last write wins.
"""
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from morrow.core.config import Config
from morrow.core.logger import get_logger


def new_conversation_id() -> str:
    return f"conv_{uuid.uuid4().hex[:12]}"


@dataclass
class ConversationTurn:
    """One handled utterance"""
    utterance: str
    intent_label: str
    action_name: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    missing_required: Tuple[str, ...] = ()
    confidence: float = 0.0
    dispatched: bool = False
    reply: str = ""
    ts: Optional[float] = None  # stamped by the store on append

    @property
    def needs_clarification(self) -> bool:
        """Missing fields were reported back and no action ran"""
        return bool(self.missing_required) and not self.dispatched


class ConversationStore:
    """In-memory turn log, one bounded deque per conversation"""

    def __init__(
        self,
        max_turns: Optional[int] = None,
        max_age_sec: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        sweep_interval_sec: Optional[float] = None,
    ):
        self.max_turns = max_turns if max_turns is not None else Config.CONVERSATION_MAX_TURNS
        self.max_age_sec = max_age_sec if max_age_sec is not None else Config.CONVERSATION_MAX_AGE_SEC
        interval = sweep_interval_sec if sweep_interval_sec is not None else Config.CONVERSATION_SWEEP_INTERVAL_SEC
        self.sweep_interval_sec = min(interval, self.max_age_sec)
        self._clock = clock
        self._last_sweep = clock()
        self._turns: Dict[str, Deque[ConversationTurn]] = {}

    def _expire(self, conversation_id: str) -> None:
        turns = self._turns.get(conversation_id)
        if turns is None:
            return
        cutoff = self._clock() - self.max_age_sec
        while turns and turns[0].ts < cutoff:
            turns.popleft()
        if not turns:
            del self._turns[conversation_id]

    def append(self, conversation_id: str, turn: ConversationTurn) -> None:
        if not conversation_id:
            return
        now = self._clock()
        if now - self._last_sweep >= self.sweep_interval_sec:
            self.sweep()
        else:
            self._expire(conversation_id)
        if turn.ts is None:
            turn.ts = now
        turns = self._turns.setdefault(conversation_id, deque(maxlen=self.max_turns))
        turns.append(turn)
        get_logger().debug(f"[CONVO] {conversation_id} +turn intent={turn.intent_label} size={len(turns)}")

    def recent(self, conversation_id: Optional[str], n: Optional[int] = None) -> List[ConversationTurn]:
        """Last n turns, oldest first"""
        if not conversation_id:
            return []
        self._expire(conversation_id)
        turns = list(self._turns.get(conversation_id, ()))
        if n is not None:
            turns = turns[-n:] if n > 0 else []
        return turns

    def clear(self, conversation_id: Optional[str] = None) -> None:
        if conversation_id is None:
            self._turns.clear()
        else:
            self._turns.pop(conversation_id, None)

    def sweep(self) -> int:
        """Drop expired turns across all conversations; returns how many ids were removed"""
        before = len(self._turns)
        for conversation_id in list(self._turns):
            self._expire(conversation_id)
        self._last_sweep = self._clock()
        removed = before - len(self._turns)
        if removed:
            get_logger().debug(f"[CONVO] sweep removed {removed} expired conversations")
        return removed

    def conversation_ids(self) -> List[str]:
        self.sweep()
        return list(self._turns)
