"""
Guarded dispatcher - the bounded action loop.

Runs registered actions sequentially inside a DispatchSession that enforces:
- a step budget (trace length never exceeds max_steps)
- a wall-clock budget (no call starts once elapsed >= max_duration_ms)
- an optional allowlist of action names
- per-call argument validation against the action's args_schema

Every attempted call leaves exactly one ExecutionTraceEntry. Handler
exceptions are caught per call and never escape the session.
"""
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional

from morrow.core.config import Config
from morrow.core.intent_plan import ToolCallRequest
from morrow.core.logger import get_logger
from morrow.tools.tool_base import ActionError, ExecutionContext
from morrow.tools.validation import coerce_args, validate_args


class TerminalState:
    """Session terminal states"""
    COMPLETED = "completed"
    STEP_LIMIT_REACHED = "step-limit-reached"
    TIME_LIMIT_REACHED = "time-limit-reached"
    FAILED = "failed"


class ReasonCode:
    """Why a trace entry failed"""
    SCHEMA_VALIDATION_FAILED = "schema_validation_failed"
    NOT_PERMITTED = "not_permitted"
    UNKNOWN_ACTION = "unknown_action"
    HANDLER_FAILURE = "handler_failure"


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@dataclass
class DispatchLimits:
    """Per-request budget and allowlist"""
    max_steps: int = field(default_factory=lambda: Config.MAX_STEPS)
    max_duration_ms: int = field(default_factory=lambda: Config.MAX_DURATION_MS)
    allowed_action_names: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        if self.allowed_action_names is not None:
            self.allowed_action_names = frozenset(self.allowed_action_names)

    def allows(self, action_name: str) -> bool:
        return self.allowed_action_names is None or action_name in self.allowed_action_names

    @classmethod
    def from_request(
        cls,
        limits: Optional[Mapping[str, Any]] = None,
        tools_allow: Optional[Iterable[str]] = None,
    ) -> "DispatchLimits":
        """Build limits from the {maxSteps, maxTimeMs} wire shape; bad values fall back to defaults"""
        limits = limits if isinstance(limits, Mapping) else {}
        max_steps = _positive_int(limits.get("maxSteps")) or Config.MAX_STEPS
        max_duration_ms = _positive_int(limits.get("maxTimeMs")) or Config.MAX_DURATION_MS
        allowed = None
        if tools_allow is not None and not isinstance(tools_allow, str):
            allowed = frozenset(name for name in tools_allow if isinstance(name, str))
        return cls(max_steps=max_steps, max_duration_ms=max_duration_ms, allowed_action_names=allowed)


@dataclass
class ExecutionTraceEntry:
    """One attempted call"""
    step: int
    action_name: str
    input_arguments: Dict[str, Any]
    output: Dict[str, Any]
    succeeded: bool
    started_at: float
    duration_ms: int
    reason: Optional[str] = None
    call_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "step": self.step,
            "actionName": self.action_name,
            "inputArguments": self.input_arguments,
            "outputOrError": self.output,
            "succeeded": self.succeeded,
            "startedAt": self.started_at,
            "durationMs": self.duration_ms,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        if self.call_id is not None:
            data["callId"] = self.call_id
        return data


@dataclass
class DispatchSession:
    """Bounds one end-to-end request"""
    session_id: str
    started_at: float
    started_clock: float
    limits: DispatchLimits
    trace: List[ExecutionTraceEntry] = field(default_factory=list)
    terminal_state: Optional[str] = None
    conversation_id: Optional[str] = None

    def elapsed_ms(self, clock: Callable[[], float]) -> float:
        return (clock() - self.started_clock) * 1000.0

    @property
    def is_terminal(self) -> bool:
        return self.terminal_state is not None

    @property
    def succeeded(self) -> bool:
        """The primary (first) call completed"""
        return bool(self.trace) and self.trace[0].succeeded

    def results(self) -> List[Dict[str, Any]]:
        return [entry.output for entry in self.trace if entry.succeeded]


@dataclass
class DispatchOutcome:
    """Single-intent dispatch result"""
    session: DispatchSession
    primary_result: Optional[Dict[str, Any]] = None
    skipped_reason: Optional[str] = None

    @property
    def terminal_state(self) -> Optional[str]:
        return self.session.terminal_state

    @property
    def trace(self) -> List[ExecutionTraceEntry]:
        return self.session.trace

    @property
    def failure_reason(self) -> Optional[str]:
        if self.session.trace and not self.session.trace[-1].succeeded:
            return self.session.trace[-1].reason
        return None


class Dispatcher:
    """Executes validated, allowlisted calls within a session budget"""

    def __init__(
        self,
        registry,
        clock: Callable[[], float] = time.perf_counter,
        wall_clock: Callable[[], float] = time.time,
        confidence_threshold: Optional[float] = None,
    ):
        self.registry = registry
        self.clock = clock
        self.wall_clock = wall_clock
        self.confidence_threshold = (
            Config.DISPATCH_CONFIDENCE_THRESHOLD if confidence_threshold is None else confidence_threshold
        )
        self.logger = get_logger()

    def new_session(
        self,
        limits: Optional[DispatchLimits] = None,
        conversation_id: Optional[str] = None,
    ) -> DispatchSession:
        return DispatchSession(
            session_id=f"sess_{uuid.uuid4().hex[:12]}",
            started_at=self.wall_clock(),
            started_clock=self.clock(),
            limits=limits or DispatchLimits(),
            conversation_id=conversation_id,
        )

    def _budget_state(self, session: DispatchSession) -> Optional[str]:
        if len(session.trace) >= session.limits.max_steps:
            return TerminalState.STEP_LIMIT_REACHED
        if session.elapsed_ms(self.clock) >= session.limits.max_duration_ms:
            return TerminalState.TIME_LIMIT_REACHED
        return None

    def _context(self, session: DispatchSession, extras: Optional[Mapping[str, Any]]) -> ExecutionContext:
        # perf_counter and the session's clock share a timebase
        deadline = session.started_clock + session.limits.max_duration_ms / 1000.0
        return ExecutionContext(
            session_id=session.session_id,
            conversation_id=session.conversation_id,
            deadline=deadline,
            extras=dict(extras or {}),
            results=session.results(),
        )

    def _record(
        self,
        session: DispatchSession,
        request: ToolCallRequest,
        arguments: Dict[str, Any],
        output: Dict[str, Any],
        succeeded: bool,
        started_at: float,
        started_clock: float,
        reason: Optional[str] = None,
    ) -> ExecutionTraceEntry:
        entry = ExecutionTraceEntry(
            step=len(session.trace) + 1,
            action_name=request.action_name,
            input_arguments=arguments,
            output=output,
            succeeded=succeeded,
            started_at=started_at,
            duration_ms=int(round((self.clock() - started_clock) * 1000)),
            reason=reason,
            call_id=request.call_id,
        )
        session.trace.append(entry)
        status = "ok" if succeeded else f"failed ({reason})"
        self.logger.info(f"[DISPATCH] step {entry.step} {entry.action_name} {status} in {entry.duration_ms}ms")
        return entry

    def execute_call(
        self,
        session: DispatchSession,
        request: ToolCallRequest,
        extras: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionTraceEntry:
        """Run one call: allowlist, registry lookup, coerce + validate, then the handler"""
        started_at = self.wall_clock()
        started_clock = self.clock()
        name = request.action_name
        raw_args = request.arguments

        if not session.limits.allows(name):
            error = {"error": {"type": ReasonCode.NOT_PERMITTED, "message": f"Action '{name}' is not permitted"}}
            return self._record(session, request, raw_args, error, False, started_at, started_clock,
                                ReasonCode.NOT_PERMITTED)

        tool = self.registry.get(name)
        if tool is None:
            error = {"error": {"type": ReasonCode.UNKNOWN_ACTION, "message": f"Action '{name}' does not exist"}}
            return self._record(session, request, raw_args, error, False, started_at, started_clock,
                                ReasonCode.UNKNOWN_ACTION)

        args = coerce_args(tool.args_schema, raw_args)
        is_valid, validation_error = validate_args(tool.args_schema, args)
        if not is_valid:
            return self._record(session, request, raw_args, {"error": validation_error}, False,
                                started_at, started_clock, ReasonCode.SCHEMA_VALIDATION_FAILED)

        self.logger.info(f"[TOOLS] Executing {name} args={args}")
        try:
            result = tool.run(self._context(session, extras), **args)
        except ActionError as e:
            self.logger.warning(f"[TOOLS] {name} failed: {e}")
            return self._record(session, request, args, {"error": e.to_error()}, False,
                                started_at, started_clock, ReasonCode.HANDLER_FAILURE)
        except Exception as e:
            self.logger.error(f"[TOOLS] {name} raised {type(e).__name__}: {e}")
            error = {"error": {"type": "execution_error", "message": str(e)}}
            return self._record(session, request, args, error, False, started_at, started_clock,
                                ReasonCode.HANDLER_FAILURE)

        if isinstance(result, str):
            result = {"text": result}
        elif not isinstance(result, dict):
            result = {"result": result}

        if result.get("error"):
            return self._record(session, request, args, result, False, started_at, started_clock,
                                ReasonCode.HANDLER_FAILURE)
        return self._record(session, request, args, result, True, started_at, started_clock)

    def dispatch_intent(
        self,
        parsed,
        session: DispatchSession,
        extras: Optional[Mapping[str, Any]] = None,
    ) -> DispatchOutcome:
        """
        Single-intent mode: at most one call, for a confident and complete ParsedIntent.

        Missing fields or low confidence skip the handler entirely.
        """
        if parsed.missing_required:
            session.terminal_state = TerminalState.COMPLETED
            self.logger.info(f"[DISPATCH] skipped: clarification needed for {parsed.missing_required[0]}")
            return DispatchOutcome(session=session, skipped_reason="clarification")

        if not parsed.action_name or parsed.confidence < self.confidence_threshold:
            session.terminal_state = TerminalState.COMPLETED
            self.logger.info(f"[DISPATCH] skipped: low confidence ({parsed.confidence:.2f})")
            return DispatchOutcome(session=session, skipped_reason="low_confidence")

        budget = self._budget_state(session)
        if budget is not None:
            session.terminal_state = budget
            self.logger.warning(f"[DISPATCH] {budget} before {parsed.action_name}")
            return DispatchOutcome(session=session)

        request = ToolCallRequest(action_name=parsed.action_name, arguments=dict(parsed.parameters))
        entry = self.execute_call(session, request, extras)
        if entry.succeeded:
            session.terminal_state = TerminalState.COMPLETED
            return DispatchOutcome(session=session, primary_result=entry.output)
        # Only a call that ran (or was validated) and broke fails the session
        if entry.reason in (ReasonCode.SCHEMA_VALIDATION_FAILED, ReasonCode.HANDLER_FAILURE):
            session.terminal_state = TerminalState.FAILED
        else:
            session.terminal_state = TerminalState.COMPLETED
        return DispatchOutcome(session=session)

    def run_calls(
        self,
        session: DispatchSession,
        calls: Iterable[ToolCallRequest],
        extras: Optional[Mapping[str, Any]] = None,
    ) -> Optional[str]:
        """
        Multi-call mode: execute proposed calls in order until they run out or the budget does.

        Calls are pulled lazily; once a budget state is set no further call is attempted.
        Failed calls do not stop the loop. The session is left open for a later round
        unless a budget state was reached.

        Returns:
            The budget terminal state if one was reached, else None
        """
        if session.is_terminal:
            return session.terminal_state

        total = len(calls) if isinstance(calls, (list, tuple)) else None
        for idx, request in enumerate(calls, 1):
            budget = self._budget_state(session)
            if budget is not None:
                session.terminal_state = budget
                self.logger.warning(
                    f"[DISPATCH] {budget} after {len(session.trace)} step(s); "
                    f"'{request.action_name}' not attempted"
                )
                return budget
            self.logger.debug(f"[INTENT {idx}/{total if total is not None else '?'}] {request.action_name}")
            self.execute_call(session, request, extras)
        return None

    def complete(self, session: DispatchSession) -> DispatchSession:
        if session.terminal_state is None:
            session.terminal_state = TerminalState.COMPLETED
        return session

    def dispatch_calls(
        self,
        calls: Iterable[ToolCallRequest],
        session: DispatchSession,
        extras: Optional[Mapping[str, Any]] = None,
    ) -> DispatchSession:
        self.run_calls(session, calls, extras)
        return self.complete(session)
