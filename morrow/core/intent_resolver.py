"""morrow.core.intent_resolver

Deterministic intent resolution for free-text marketing requests.

Each intent carries a small set of weighted regex cues. The intent whose
matched cues sum highest wins; equal scores go to the intent declared first.
Entities (location, industry, timeframe, platforms, website, business name,
topic) are extracted independently and merged with caller context and the
previous turn's parameters.

Resolution never raises: anything unrecognized becomes the "chat" intent.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from morrow.core.config import Config
from morrow.core.logger import get_logger

DEFAULT_INTENT = "chat"


@dataclass(frozen=True)
class IntentPattern:
    """Intent label, the action it maps to, and ordered (regex, weight) cues"""
    label: str
    action_name: str
    cues: Tuple[Tuple[str, float], ...]
    _compiled: Tuple[Tuple[re.Pattern, float], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        compiled = tuple((re.compile(rf"\b(?:{cue})\b", re.IGNORECASE), weight) for cue, weight in self.cues)
        object.__setattr__(self, "_compiled", compiled)

    def score(self, text: str) -> float:
        return sum(weight for regex, weight in self._compiled if regex.search(text))


DEFAULT_PATTERNS: Tuple[IntentPattern, ...] = (
    IntentPattern("seo_analysis", "seo_analysis", (
        (r"seo", 0.8),
        (r"search engine", 0.6),
        (r"rank(?:ing|ings)?", 0.5),
        (r"visibility", 0.4),
        (r"optimi[sz]e", 0.3),
        (r"google", 0.3),
        (r"keywords?", 0.3),
    )),
    IntentPattern("social_content", "social_content", (
        (r"social(?: media)?", 0.5),
        (r"posts?", 0.4),
        (r"captions?", 0.4),
        (r"facebook|instagram|twitter|linkedin|tiktok", 0.3),
    )),
    IntentPattern("start_audit", "audit_start", (
        (r"audit", 0.8),
        (r"assessment", 0.5),
        (r"analy[sz]e", 0.3),
        (r"review", 0.3),
        (r"check", 0.2),
    )),
    IntentPattern("competitor_analysis", "competitor_analysis", (
        (r"competitors?", 0.8),
        (r"competition", 0.7),
        (r"rivals?", 0.6),
        (r"compare", 0.3),
    )),
    IntentPattern("content_calendar", "content_calendar", (
        (r"calendar", 0.8),
        (r"content plan", 0.6),
        (r"schedule", 0.4),
        (r"plan", 0.2),
    )),
    IntentPattern("generate_report", "report_generate", (
        (r"report", 0.7),
        (r"summary", 0.3),
        (r"findings", 0.3),
        (r"document", 0.2),
    )),
    IntentPattern("capabilities", "explain_capabilities", (
        (r"what can you(?: do)?", 0.85),
        (r"capabilities", 0.8),
        (r"features", 0.5),
        (r"do for me", 0.5),
        (r"help", 0.3),
    )),
    IntentPattern("chat", "chat", (
        (r"hi|hello|hey|yo", 0.5),
        (r"thanks|thank you|thx", 0.5),
        (r"bye|goodbye", 0.5),
    )),
)


# ============================================================================
# ENTITY EXTRACTION
# ============================================================================

INDUSTRIES: Tuple[str, ...] = (
    "plumbing", "restaurant", "dentist", "dental", "lawyer", "law firm", "bakery",
    "gym", "salon", "cafe", "coffee shop", "roofing", "hvac", "landscaping",
    "real estate", "auto repair", "pizza",
)

PLATFORMS: Tuple[str, ...] = ("facebook", "instagram", "twitter", "linkedin", "tiktok", "youtube")

_NOT_A_PLACE = (
    "the|my|a|an|our|your|their|his|her|its|this|that|these|those|next|last|"
    "order|case|addition|general|mind|time|total|person|detail|details|progress"
)

_LOCATION_RE = re.compile(
    rf"\bin\s+(?!(?:{_NOT_A_PLACE})\b)"
    r"([A-Za-z][A-Za-z'-]*(?:\s+[A-Za-z][A-Za-z'-]*){0,3}?)"
    r"(?=\s*(?:[,.?!;:]|$)|\s+(?:for|to|with|and|on|by|next|this|last|over|about|called|named|area)\b)",
    re.IGNORECASE,
)
_TIMEFRAME_RE = re.compile(r"\b(\d{1,4})\s*(day|week|month)s?\b", re.IGNORECASE)
_NEXT_PERIOD_RE = re.compile(r"\bnext\s+(week|month)\b", re.IGNORECASE)
_URL_RE = re.compile(r"\bhttps?://[^\s,]+", re.IGNORECASE)
_DOMAIN_RE = re.compile(
    r"\b(?:www\.)?[a-z0-9][a-z0-9-]*(?:\.[a-z0-9-]+)*\.(?:com|net|org|io|co|biz|us|info|ai|dev|app|shop)\b(?:/[^\s,]*)?",
    re.IGNORECASE,
)
_QUOTED_NAME_RE = re.compile(r"\b(?:called|named)\s+[\"“]([^\"”]+)[\"”]")
_NAME_RE = re.compile(r"\b(?:called|named)\s+([A-Z0-9][\w&'.-]*(?:\s+(?:[A-Z0-9&][\w&'.-]*|of|and|the))*)")
_TOPIC_RE = re.compile(r"\babout\s+(.+?)(?=\s+(?:for|on|in)\s|[.?!;]|$)", re.IGNORECASE)

_UNIT_DAYS = {"day": 1, "week": 7, "month": 30}


def _strip_trailing_punct(text: str) -> str:
    return (text or "").strip().rstrip(".?!,;:\"'")


def _word_in(word: str, text_lower: str) -> bool:
    return re.search(rf"\b{re.escape(word)}\b", text_lower) is not None


def extract_entities(text: str) -> Dict[str, Any]:
    """Scan an utterance for typed entities; keys are omitted when nothing matched"""
    entities: Dict[str, Any] = {}
    text = text or ""
    text_lower = text.lower()

    m = _LOCATION_RE.search(text)
    if m:
        location = _strip_trailing_punct(m.group(1))
        if location:
            entities["location"] = location

    for industry in INDUSTRIES:
        if _word_in(industry, text_lower):
            entities["industry"] = industry
            break

    m = _TIMEFRAME_RE.search(text)
    if m:
        entities["timeframe"] = int(m.group(1)) * _UNIT_DAYS[m.group(2).lower()]
    else:
        m = _NEXT_PERIOD_RE.search(text)
        if m:
            entities["timeframe"] = _UNIT_DAYS[m.group(1).lower()]

    platforms = [p for p in PLATFORMS if _word_in(p, text_lower)]
    if platforms:
        entities["platforms"] = platforms
        entities["platform"] = platforms[0]

    m = _URL_RE.search(text) or _DOMAIN_RE.search(text)
    if m:
        entities["website"] = _strip_trailing_punct(m.group(0))

    m = _QUOTED_NAME_RE.search(text) or _NAME_RE.search(text)
    if m:
        name = _strip_trailing_punct(m.group(1))
        # "called Joe's Pizza in Denver" -> "Joe's Pizza"
        name = re.split(r"\s+(?:in|for|on|at|and)\s+", name, maxsplit=1)[0]
        if name:
            entities["businessName"] = name

    m = _TOPIC_RE.search(text)
    if m:
        topic = _strip_trailing_punct(m.group(1))
        if topic:
            entities["topic"] = topic

    return entities


# ============================================================================
# PARSED INTENT
# ============================================================================

@dataclass(frozen=True)
class ParsedIntent:
    """Resolver output for one utterance; never mutated after construction"""
    intent_label: str
    action_name: Optional[str]
    parameters: Dict[str, Any]
    confidence: float
    missing_required: Tuple[str, ...] = ()
    raw_text: str = ""
    clarification_target: Optional[str] = None

    @property
    def needs_clarification(self) -> bool:
        return bool(self.missing_required)


CLARIFICATION_QUESTIONS: Dict[str, str] = {
    "businessName": "What's your business name?",
    "website": "What's your website URL?",
    "location": "What city are you in?",
    "industry": "What industry are you in?",
    "topic": "What topic should I focus on?",
    "auditId": "Which audit should I use? I need the audit ID.",
    "query": "What should I look up?",
    "url": "What's the website URL?",
    "timeframe": "How many days should the calendar cover? Pick 1 to 365.",
    "format": "Which format works for you: markdown, html, or pdf?",
    "limit": "How many results do you want? Pick 1 to 10.",
}

ACTION_DESCRIPTIONS: Dict[str, str] = {
    "seo_analysis": "run an SEO analysis",
    "social_content": "create social media content",
    "audit_start": "start a business audit",
    "competitor_analysis": "analyze your competitors",
    "content_calendar": "build a content calendar",
    "report_generate": "generate a report",
    "explain_capabilities": "walk you through what I can do",
    "chat": "chat",
}


def question_for_field(field_name: str) -> str:
    return CLARIFICATION_QUESTIONS.get(field_name, f"I need to know: {field_name}")


def clarification_question(parsed: ParsedIntent) -> Optional[str]:
    """One question, for the first missing field only"""
    if not parsed.missing_required:
        return None
    return question_for_field(parsed.missing_required[0])


def to_confirmation(parsed: ParsedIntent) -> str:
    desc = ACTION_DESCRIPTIONS.get(parsed.action_name or "", "help you")
    details = ", ".join(f"{k}: {v}" for k, v in parsed.parameters.items() if v)
    if details:
        return f"I'll {desc} ({details})"
    return f"I'll {desc}"


# ============================================================================
# RESOLVER
# ============================================================================

class IntentResolver:
    """Maps (utterance, context, recent turns) to a ParsedIntent"""

    def __init__(
        self,
        registry=None,
        patterns: Optional[Sequence[IntentPattern]] = None,
        store=None,
        min_score: Optional[float] = None,
        dispatch_threshold: Optional[float] = None,
    ):
        if registry is None:
            from morrow.tools.registry import build_default_registry
            registry = build_default_registry()
        self.registry = registry
        self.patterns: Tuple[IntentPattern, ...] = tuple(patterns) if patterns is not None else DEFAULT_PATTERNS
        self.store = store
        self.min_score = Config.INTENT_MIN_SCORE if min_score is None else min_score
        self.dispatch_threshold = (
            Config.DISPATCH_CONFIDENCE_THRESHOLD if dispatch_threshold is None else dispatch_threshold
        )
        self.logger = get_logger()

    def _pattern(self, label: str) -> Optional[IntentPattern]:
        for pattern in self.patterns:
            if pattern.label == label:
                return pattern
        return None

    def score_intents(self, text: str) -> List[Tuple[IntentPattern, float]]:
        """Raw score per pattern, in declaration order"""
        return [(pattern, pattern.score(text)) for pattern in self.patterns]

    def _best_match(self, text: str) -> Tuple[Optional[IntentPattern], float]:
        best: Optional[IntentPattern] = None
        best_score = 0.0
        for pattern, score in self.score_intents(text):
            # Strictly greater: on a tie the earlier-declared pattern keeps the win
            if score > best_score:
                best, best_score = pattern, score
        return best, best_score

    def _schema_properties(self, action_name: Optional[str]) -> Tuple[Dict[str, Any], List[str]]:
        tool = self.registry.get(action_name) if action_name else None
        if tool is None:
            return {}, []
        schema = tool.args_schema or {}
        return dict(schema.get("properties") or {}), list(schema.get("required") or [])

    @staticmethod
    def _missing(required: Sequence[str], params: Mapping[str, Any]) -> Tuple[str, ...]:
        return tuple(name for name in required if params.get(name) in (None, ""))

    def _merge(
        self,
        action_name: Optional[str],
        entities: Mapping[str, Any],
        context: Mapping[str, Any],
        history: Sequence[Any],
        text: str,
    ) -> Dict[str, Any]:
        properties, _ = self._schema_properties(action_name)
        if not properties:
            return {}

        params: Dict[str, Any] = {}
        sources: List[Mapping[str, Any]] = [entities, context]
        sources.extend(turn.parameters for turn in reversed(history))
        for key in properties:
            for source in sources:
                value = source.get(key)
                if value not in (None, "", []):
                    params[key] = value
                    break

        if "message" in properties and "message" not in params and text:
            params["message"] = text
        return params

    def _as_clarification_answer(
        self,
        text: str,
        context: Mapping[str, Any],
        previous,
    ) -> Optional[ParsedIntent]:
        pattern = self._pattern(previous.intent_label)
        action_name = previous.action_name or (pattern.action_name if pattern else None)
        if not action_name or not self.registry.has_tool(action_name):
            return None

        answer = _strip_trailing_punct(text)
        if not answer:
            return None

        properties, required = self._schema_properties(action_name)
        params = dict(previous.parameters)
        for key, value in context.items():
            params.setdefault(key, value)
        target = previous.missing_required[0]
        # "make it 60 days" answers timeframe with 60, not the raw text
        params[target] = extract_entities(text).get(target, answer)
        params = {k: v for k, v in params.items() if k in properties}
        return ParsedIntent(
            intent_label=previous.intent_label,
            action_name=action_name,
            parameters=params,
            confidence=previous.confidence,
            missing_required=self._missing(required, params),
            raw_text=text,
            clarification_target=previous.intent_label,
        )

    def resolve(
        self,
        utterance: Any,
        context: Optional[Mapping[str, Any]] = None,
        conversation_id: Optional[str] = None,
        history: Optional[Sequence[Any]] = None,
    ) -> ParsedIntent:
        """
        Resolve one utterance.

        Args:
            utterance: User text (non-strings are treated as empty)
            context: Caller-known values (e.g. businessName); fill gaps the utterance leaves
            conversation_id: Used to read recent turns from the store when history is not given
            history: Recent ConversationTurns, oldest first

        Returns:
            ParsedIntent (always)
        """
        text = utterance.strip() if isinstance(utterance, str) else ""
        context = dict(context) if isinstance(context, Mapping) else {}
        if history is None:
            history = self.store.recent(conversation_id, Config.CONVERSATION_CONTEXT_TURNS) if self.store else []

        if not text:
            self.logger.debug("[INTENT] empty utterance -> chat")
            return ParsedIntent(intent_label=DEFAULT_INTENT, action_name=None, parameters={}, confidence=0.0)

        best, score = self._best_match(text)
        confidence = max(0.0, min(score, 1.0))

        previous = history[-1] if history else None
        if previous is not None and previous.needs_clarification and confidence < self.dispatch_threshold:
            answered = self._as_clarification_answer(text, context, previous)
            if answered is not None:
                self.logger.info(
                    f"[INTENT] clarification answer for {previous.missing_required[0]} "
                    f"-> {answered.intent_label} missing={list(answered.missing_required)}"
                )
                return answered

        if best is None or score < self.min_score:
            best = self._pattern(DEFAULT_INTENT)
            label = DEFAULT_INTENT
        else:
            label = best.label

        action_name = best.action_name if best is not None else None
        if action_name and (confidence < self.dispatch_threshold or not self.registry.has_tool(action_name)):
            action_name = None

        params = self._merge(action_name, extract_entities(text), context, history, text)
        _, required = self._schema_properties(action_name)
        missing = self._missing(required, params)

        self.logger.info(
            f"[INTENT] {label} conf={confidence:.2f} action={action_name} "
            f"params={sorted(params)} missing={list(missing)}"
        )
        return ParsedIntent(
            intent_label=label,
            action_name=action_name,
            parameters=params,
            confidence=confidence,
            missing_required=missing,
            raw_text=text,
        )
