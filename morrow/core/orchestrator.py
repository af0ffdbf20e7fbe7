"""
Orchestrator - entry point for one request.

Two modes:
- handle_request(): single-turn. Deterministic resolver -> one guarded call -> normalizer.
- run_brain(): multi-turn tool calling. An external reasoning model proposes calls,
  the dispatcher runs them inside one shared budget, and the model writes the reply.
"""
import json
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional

from morrow.brain.llm_client import LLMClient, LLMNotConfiguredError
from morrow.brain.messages import msg_assistant, msg_tool
from morrow.brain.prompt import build_brain_messages
from morrow.core.config import Config
from morrow.core.conversation_store import ConversationStore, ConversationTurn, new_conversation_id
from morrow.core.dispatcher import DispatchLimits, Dispatcher, ReasonCode, TerminalState
from morrow.core.intent_plan import normalize_plan, normalize_tool_aliases
from morrow.core.intent_resolver import (
    IntentResolver,
    clarification_question,
    question_for_field,
)
from morrow.core.logger import get_logger
from morrow.core.response_normalizer import ResponseNormalizer, TextResult, detect_tone

LOW_CONFIDENCE_BODY = "Hmm, not quite sure what you need. Want to try: audit, SEO check, or social posts?"
UNAVAILABLE_BODY = "That action isn't available here. Want to try: audit, SEO check, or social posts?"


class Orchestrator:
    """Wires resolver, dispatcher, normalizer and conversation store together"""

    def __init__(
        self,
        registry=None,
        store: Optional[ConversationStore] = None,
        resolver: Optional[IntentResolver] = None,
        dispatcher: Optional[Dispatcher] = None,
        normalizer: Optional[ResponseNormalizer] = None,
        llm_client: Optional[LLMClient] = None,
    ):
        if registry is None:
            from morrow.tools.registry import build_default_registry
            registry = build_default_registry()
        self.registry = registry
        self.store = store if store is not None else ConversationStore()
        self.resolver = resolver or IntentResolver(registry, store=self.store)
        self.dispatcher = dispatcher or Dispatcher(registry)
        self.normalizer = normalizer or ResponseNormalizer()
        self.llm_client = llm_client
        self.logger = get_logger()

    # ------------------------------------------------------------------
    # Single-turn mode
    # ------------------------------------------------------------------

    def handle_request(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Handle one {utterance, context?, conversationId?, toolsAllow?, limits?} request.

        Returns:
            {renderedText, intentLabel, actionName?, confidence, trace, terminalState,
             conversationId, needsClarification?}

        Raises:
            ValueError: If request is not a mapping
        """
        if not isinstance(request, Mapping):
            raise ValueError(f"Request must be an object, got {type(request).__name__}")

        start_time = time.time()
        utterance = request.get("utterance")
        utterance = utterance if isinstance(utterance, str) else ""
        context = request.get("context") if isinstance(request.get("context"), Mapping) else {}
        conversation_id = request.get("conversationId") or new_conversation_id()
        limits = DispatchLimits.from_request(request.get("limits"), request.get("toolsAllow"))

        tone = detect_tone(utterance)
        history = self.store.recent(conversation_id, Config.CONVERSATION_CONTEXT_TURNS)
        parsed = self.resolver.resolve(utterance, context, history=history)
        session = self.dispatcher.new_session(limits, conversation_id)
        outcome = self.dispatcher.dispatch_intent(parsed, session, extras=context)

        action_name = parsed.action_name
        needs_clarification = False
        pending_fields = tuple(parsed.missing_required)
        dispatched = bool(outcome.trace)

        if outcome.skipped_reason == "clarification":
            formatted = self.normalizer.clarification(clarification_question(parsed), tone)
            needs_clarification = True
        elif outcome.skipped_reason == "low_confidence":
            formatted = self.normalizer.normalize(TextResult(LOW_CONFIDENCE_BODY), tone)
        elif outcome.primary_result is not None:
            formatted = self.normalizer.normalize(outcome.primary_result, tone, action_name)
        elif outcome.failure_reason == ReasonCode.HANDLER_FAILURE:
            formatted = self.normalizer.normalize(None, tone, action_name, failed=True)
        elif outcome.failure_reason == ReasonCode.SCHEMA_VALIDATION_FAILED:
            error = outcome.trace[-1].output.get("error") or {}
            field_name = error.get("argument")
            if field_name:
                formatted = self.normalizer.clarification(question_for_field(field_name), tone)
                needs_clarification = True
                # The handler never ran; the next turn can answer for this argument
                pending_fields = (field_name,)
                dispatched = False
            else:
                formatted = self.normalizer.normalize(TextResult(UNAVAILABLE_BODY), tone)
        else:
            # not permitted, unknown action, or budget exhausted before the call
            formatted = self.normalizer.normalize(TextResult(UNAVAILABLE_BODY), tone)

        self.store.append(conversation_id, ConversationTurn(
            utterance=utterance,
            intent_label=parsed.intent_label,
            action_name=action_name,
            parameters=dict(parsed.parameters),
            missing_required=pending_fields,
            confidence=parsed.confidence,
            dispatched=dispatched,
            reply=formatted.rendered_text,
        ))

        response: Dict[str, Any] = {
            "renderedText": formatted.rendered_text,
            "intentLabel": parsed.intent_label,
            "confidence": parsed.confidence,
            "trace": [entry.to_dict() for entry in session.trace],
            "terminalState": session.terminal_state,
            "conversationId": conversation_id,
        }
        if needs_clarification:
            response["needsClarification"] = True
        elif action_name:
            response["actionName"] = action_name

        elapsed_ms = int((time.time() - start_time) * 1000)
        self.logger.info(
            f"[REQUEST] intent={parsed.intent_label} action={action_name} tone={tone} "
            f"steps={len(session.trace)} state={session.terminal_state} ({elapsed_ms}ms)"
        )
        return response

    # ------------------------------------------------------------------
    # Tool-calling mode
    # ------------------------------------------------------------------

    def _llm(self) -> LLMClient:
        if self.llm_client is None:
            self.llm_client = LLMClient()
        return self.llm_client

    def run_brain(
        self,
        prompt: str,
        tools_allow: Optional[Iterable[str]] = None,
        limits: Optional[Mapping[str, Any]] = None,
        conversation_id: Optional[str] = None,
        model: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Let the reasoning model drive: propose calls, run them, repeat, then answer.

        The step/time budget is shared across all rounds of one request.

        Raises:
            LLMNotConfiguredError: If no reasoning model is configured
        """
        llm = self._llm()
        if not llm.is_configured():
            raise LLMNotConfiguredError("LLM not configured: set MORROW_LLM_API_KEY or OPENAI_API_KEY")

        prompt = prompt if isinstance(prompt, str) else ""
        conversation_id = conversation_id or new_conversation_id()
        dispatch_limits = DispatchLimits.from_request(limits, tools_allow)
        session = self.dispatcher.new_session(dispatch_limits, conversation_id)
        tone = detect_tone(prompt)
        tools = self.registry.to_tool_definitions(dispatch_limits.allowed_action_names)
        messages: List[Dict[str, Any]] = build_brain_messages(
            prompt, self.store.recent(conversation_id, Config.CONVERSATION_CONTEXT_TURNS)
        )
        final_text: Optional[str] = None
        rendered: Optional[str] = None
        rounds = 0

        try:
            while not session.is_terminal:
                rounds += 1
                reply = llm.chat(messages, tools=tools or None, model=model)
                plan = normalize_plan({"tool_calls": reply.tool_calls, "reply": reply.content})
                if not plan.calls:
                    final_text = reply.content
                    break

                calls, _ = normalize_tool_aliases(plan.calls, self.registry)
                self.logger.info(f"[LLM] round {rounds}: {[call.action_name for call in calls]}")
                messages.append(msg_assistant(reply.content, tool_calls=reply.tool_calls))

                before = len(session.trace)
                self.dispatcher.run_calls(session, calls, extras=context)
                answered = set()
                for entry in session.trace[before:]:
                    answered.add(entry.call_id)
                    messages.append(msg_tool(entry.call_id, entry.action_name, json.dumps(entry.output, default=str)))
                for call in calls:
                    if call.call_id not in answered:
                        skipped = {"error": {"type": "budget_exceeded", "message": "Call not attempted: budget reached"}}
                        messages.append(msg_tool(call.call_id, call.action_name, json.dumps(skipped)))

            if final_text is None:
                final_text = llm.chat(messages, tools=None, model=model).content
        except (OSError, ValueError) as e:
            self.logger.error(f"[LLM] brain loop failed: {e}")
            rendered = self.normalizer.format_error(e)
            final_text = ""
            if not session.is_terminal:
                session.terminal_state = TerminalState.FAILED

        self.dispatcher.complete(session)

        last_action = next((entry.action_name for entry in reversed(session.trace) if entry.succeeded), None)
        if rendered is None:
            rendered = self.normalizer.normalize(TextResult(final_text or ""), tone, last_action).rendered_text

        self.store.append(conversation_id, ConversationTurn(
            utterance=prompt,
            intent_label="brain",
            action_name=last_action,
            dispatched=bool(session.trace),
            reply=rendered,
        ))
        self.logger.info(
            f"[REQUEST] brain rounds={rounds} steps={len(session.trace)} state={session.terminal_state}"
        )
        return {
            "renderedText": rendered,
            "finalText": final_text or "",
            "trace": [entry.to_dict() for entry in session.trace],
            "terminalState": session.terminal_state,
            "stepsUsed": len(session.trace),
            "model": model or llm.model,
            "provider": llm.name(),
            "conversationId": conversation_id,
        }
