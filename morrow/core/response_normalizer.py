"""
Response normalizer - turns any action result into one consistent reply.

Rendered replies are assembled in a fixed order, sections separated by a
blank line (empty sections are dropped):

    <emoji> <lead phrase>.     (optional)
    <simplified body>
    What's next?               (optional)
    • step
    <tone sign-off>

Clarifications render only the question. Failures render only the
tone-specific failure message.
"""
import random
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from morrow.core.config import Config
from morrow.core.logger import get_logger


# ============================================================================
# TONE
# ============================================================================

TONES: Tuple[str, ...] = ("urgent", "excited", "casual", "formal", "neutral")

TONE_STYLES: Dict[str, Dict[str, Any]] = {
    "urgent": {
        "emoji": "⚡",
        "leads": ("On it", "Right away", "Got it"),
        "sign_off": "Anything else urgent?",
        "failure": "Sorry, that didn't go through. Want me to try again right away?",
    },
    "excited": {
        "emoji": "🔥",
        "leads": ("Let's go", "Love it", "Awesome"),
        "sign_off": "What should we tackle next?",
        "failure": "Argh, that one didn't work out. Let's give it another shot!",
    },
    "casual": {
        "emoji": "🙂",
        "leads": ("Sure thing", "No problem", "Gotcha"),
        "sign_off": "Need anything else?",
        "failure": "Something went sideways on my end. Want to try that again?",
    },
    "formal": {
        "emoji": "📌",
        "leads": ("Understood", "Will do", "Certainly"),
        "sign_off": "How else may I assist?",
        "failure": "I'm sorry, I wasn't able to complete that request. Please try again shortly.",
    },
    "neutral": {
        "emoji": "✨",
        "leads": ("Got it", "Okay", "Alright"),
        "sign_off": "What can I help with next?",
        "failure": "Sorry, I couldn't finish that one. Want to try again?",
    },
}

_URGENT_RE = re.compile(r"\b(?:asap|urgent|urgently|now|immediately|right away|emergency)\b", re.IGNORECASE)
_CASUAL_RE = re.compile(r"\b(?:hey|hi|hello|yo|sup|thanks|thx|lol|cool|gonna|wanna)\b", re.IGNORECASE)
_FORMAL_RE = re.compile(
    r"\b(?:dear|greetings|good (?:morning|afternoon|evening)|kindly|regards|sincerely|to whom it may concern)\b",
    re.IGNORECASE,
)


def detect_tone(utterance: Any) -> str:
    """Classify the register of the original utterance: urgent > casual > formal > neutral"""
    text = utterance if isinstance(utterance, str) else ""
    if _URGENT_RE.search(text) or text.count("!") >= 3:
        return "urgent"
    if _CASUAL_RE.search(text):
        return "casual"
    if _FORMAL_RE.search(text):
        return "formal"
    return "neutral"


def _tone(tone: Optional[str]) -> str:
    return tone if tone in TONE_STYLES else "neutral"


def sign_off(tone: Optional[str]) -> str:
    return TONE_STYLES[_tone(tone)]["sign_off"]


def failure_message(tone: Optional[str]) -> str:
    """Generic apology shown when the sole action failed"""
    return TONE_STYLES[_tone(tone)]["failure"]


# ============================================================================
# RAW RESULT UNION
# ============================================================================

TEXT_KEYS: Tuple[str, ...] = ("analysis", "report", "content", "text", "response")


@dataclass(frozen=True)
class TextResult:
    text: str


@dataclass(frozen=True)
class StructuredResult:
    data: Mapping[str, Any]
    text: Optional[str] = None


@dataclass(frozen=True)
class ErrorResult:
    message: str
    error_type: str = "handler_failure"


RawResult = Union[TextResult, StructuredResult, ErrorResult]


def coerce_result(raw: Any) -> Optional[RawResult]:
    """Map a loosely-shaped handler result onto the result union"""
    if raw is None or isinstance(raw, (TextResult, StructuredResult, ErrorResult)):
        return raw
    if isinstance(raw, str):
        return TextResult(raw)
    if isinstance(raw, Mapping):
        if raw.get("error"):
            error = raw["error"]
            if isinstance(error, Mapping):
                return ErrorResult(str(error.get("message", "")), str(error.get("type", "handler_failure")))
            return ErrorResult(str(error))
        for key in TEXT_KEYS:
            value = raw.get(key)
            if isinstance(value, str) and value.strip():
                return StructuredResult(dict(raw), value)
        return StructuredResult(dict(raw))
    return TextResult(str(raw))


# ============================================================================
# BODY SIMPLIFICATION
# ============================================================================

SIMPLE_WORDS: Dict[str, str] = {
    "utilize": "use",
    "implement": "set up",
    "commence": "start",
    "terminate": "end",
    "facilitate": "help",
    "therefore": "so",
    "however": "but",
    "subsequently": "then",
    "approximately": "about",
    "approximate": "about",
    "additional": "more",
}

_SIMPLE_RE = re.compile(
    r"\b(" + "|".join(sorted(SIMPLE_WORDS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
CONJUNCTIONS: Tuple[str, ...] = ("and", "but", "so", "because")


def _replace_word(match: re.Match) -> str:
    word = match.group(0)
    plain = SIMPLE_WORDS[word.lower()]
    if word.isupper():
        return plain.upper()
    if word[0].isupper():
        return plain[0].upper() + plain[1:]
    return plain


def split_long_sentence(sentence: str, max_words: int) -> List[str]:
    """Split at the conjunction nearest the midpoint (middle half only), recursively"""
    words = sentence.split()
    n = len(words)
    if n <= max_words:
        return [sentence]

    lo, hi = n / 4.0, 3 * n / 4.0
    best = None
    for i in range(1, n - 1):
        if words[i].lower() in CONJUNCTIONS and lo <= i <= hi:
            if best is None or abs(i - n / 2.0) < abs(best - n / 2.0):
                best = i
    if best is None:
        return [sentence]

    left = " ".join(words[:best]).rstrip(",;:")
    right_words = words[best + 1:] if words[best].lower() == "and" else words[best:]
    right = " ".join(right_words)
    if not left or not right:
        return [sentence]
    if left[-1] not in ".!?":
        left += "."
    right = right[0].upper() + right[1:]
    return split_long_sentence(left, max_words) + split_long_sentence(right, max_words)


def simplify_text(text: str, max_words: Optional[int] = None) -> str:
    """Plain-word replacements, then line-wise long-sentence splitting"""
    if not text:
        return ""
    max_words = max_words or Config.MAX_SENTENCE_WORDS
    simplified = _SIMPLE_RE.sub(_replace_word, text)

    lines = []
    for line in simplified.split("\n"):
        if len(line.split()) <= max_words:
            lines.append(line)
            continue
        indent = line[:len(line) - len(line.lstrip())]
        pieces: List[str] = []
        for sentence in _SENTENCE_SPLIT_RE.split(line.strip()):
            pieces.extend(split_long_sentence(sentence, max_words))
        lines.append(indent + " ".join(pieces))
    return "\n".join(lines).strip()


# ============================================================================
# NEXT STEPS
# ============================================================================

GENERAL_NEXT_STEPS: Tuple[str, ...] = (
    "Run a quick audit",
    "Check your SEO health",
    "Plan next month's content",
)

NEXT_STEPS: Dict[str, Tuple[str, ...]] = {
    "audit_start": ("Review the findings", "Get a detailed report", "Start fixing issues"),
    "seo_analysis": ("Check competitor rankings", "Create content plan", "Optimize key pages"),
    "social_content": ("Schedule the posts", "Create more content", "Review engagement strategy"),
    "competitor_analysis": ("Run an SEO check", "Spot content gaps", "Plan a response campaign"),
    "content_calendar": ("Draft the first posts", "Pick posting times", "Review the plan weekly"),
    "report_generate": ("Share the report", "Start fixing issues", "Schedule a follow-up audit"),
    "search_knowledge": ("Ask a follow-up question", "Run a quick audit", "Check your SEO health"),
    "leads_list": ("Audit a lead's website", "Check a lead's SEO", "Draft outreach posts"),
}


def next_steps_for(action_name: Optional[str], limit: Optional[int] = None) -> Tuple[str, ...]:
    limit = Config.MAX_NEXT_STEPS if limit is None else limit
    steps = NEXT_STEPS.get(action_name or "", GENERAL_NEXT_STEPS)
    return tuple(steps[:max(0, min(limit, 3))])


def render_next_steps(steps: Sequence[str]) -> str:
    if not steps:
        return ""
    return "What's next?\n" + "\n".join(f"• {step}" for step in steps)


# ============================================================================
# SUPPLEMENTARY FORMATTERS
# ============================================================================

CONFIRMATIONS: Tuple[str, ...] = (
    "On it",
    "You got it",
    "Let's do this",
    "Working on it",
    "Sure thing",
    "Right away",
)

_ACTION_DETAILS: Dict[str, Callable[[Mapping[str, Any]], str]] = {
    "audit_start": lambda p: "Running audit" + (f" for {p['businessName']}" if p.get("businessName") else ""),
    "seo_analysis": lambda p: "Checking SEO" + (f" for {p['businessName']}" if p.get("businessName") else ""),
    "social_content": lambda p: (
        f"Creating {p.get('platform') or 'social media'} post" + (f" about {p['topic']}" if p.get("topic") else "")
    ),
    "competitor_analysis": lambda p: "Looking at competitors" + (f" in {p['location']}" if p.get("location") else ""),
    "content_calendar": lambda p: f"Building a {p.get('timeframe') or 30}-day content plan",
}

FRIENDLY_ERRORS: Dict[str, str] = {
    "timeout": "Hmm, that's taking too long. Can you try again?",
    "network": "Lost connection for a sec. Mind trying again?",
    "rate_limit": "Whoa, too many requests. Let's take a quick breather.",
    "unknown": "Something went sideways. Want to try that again?",
}

PLACEHOLDER_BODY = "Working on it. I'll have more for you shortly."


def _error_kind(error: Any) -> str:
    msg = str(getattr(error, "message", None) or error).lower()
    if "timeout" in msg or "timed out" in msg:
        return "timeout"
    if "network" in msg or "connection" in msg:
        return "network"
    if re.search(r"\brate\b|rate.?limit|too many requests|\b429\b", msg):
        return "rate_limit"
    return "unknown"


@dataclass(frozen=True)
class FormattedResponse:
    tone_label: str
    body_text: str
    suggested_next_steps: Tuple[str, ...]
    rendered_text: str
    needs_clarification: bool = False


class ResponseNormalizer:
    """Builds FormattedResponse values; the lead-phrase picker is injectable"""

    def __init__(
        self,
        phrase_picker: Optional[Callable[[Sequence[str]], str]] = None,
        use_lead: Optional[bool] = None,
        max_sentence_words: Optional[int] = None,
        max_next_steps: Optional[int] = None,
    ):
        self.phrase_picker = phrase_picker or random.choice
        self.use_lead = Config.USE_EMOJIS if use_lead is None else use_lead
        self.max_sentence_words = max_sentence_words or Config.MAX_SENTENCE_WORDS
        self.max_next_steps = Config.MAX_NEXT_STEPS if max_next_steps is None else max_next_steps
        self.logger = get_logger()

    def _lead(self, tone: str) -> str:
        if not self.use_lead:
            return ""
        style = TONE_STYLES[tone]
        return f"{style['emoji']} {self.phrase_picker(style['leads'])}."

    def normalize(
        self,
        raw: Any,
        tone: Optional[str] = None,
        action_name: Optional[str] = None,
        include_next_steps: bool = True,
        failed: bool = False,
    ) -> FormattedResponse:
        tone = _tone(tone)
        result = coerce_result(raw)

        if failed or isinstance(result, ErrorResult):
            message = failure_message(tone)
            self.logger.debug(f"[NORMALIZE] failure path tone={tone}")
            return FormattedResponse(tone, message, (), message)

        text = result.text if result is not None else None
        body = simplify_text(text, self.max_sentence_words) if text else ""
        if not body:
            body = PLACEHOLDER_BODY

        steps = next_steps_for(action_name, self.max_next_steps) if include_next_steps else ()
        sections = [self._lead(tone), body, render_next_steps(steps), sign_off(tone)]
        rendered = "\n\n".join(section for section in sections if section)
        self.logger.debug(f"[NORMALIZE] tone={tone} action={action_name} steps={len(steps)}")
        return FormattedResponse(tone, body, steps, rendered)

    def clarification(self, question: str, tone: Optional[str] = None) -> FormattedResponse:
        return FormattedResponse(_tone(tone), question, (), question, needs_clarification=True)

    def format_confirmation(self, action_name: Optional[str], params: Optional[Mapping[str, Any]] = None) -> str:
        template = _ACTION_DETAILS.get(action_name or "")
        details = template(params or {}) if template else "Working on your request"
        return f"{self.phrase_picker(CONFIRMATIONS)}! {details}"

    def format_error(self, error: Any) -> str:
        return FRIENDLY_ERRORS[_error_kind(error)]

    def format_status(self, status: Any) -> Optional[str]:
        """Streaming status line: a plain string, or {scanning|analyzing|generating: ...}"""
        if isinstance(status, str):
            return status
        if not isinstance(status, Mapping):
            return None
        if status.get("scanning"):
            return f"Scanning… {status.get('found') or 0} found."
        if status.get("analyzing"):
            return f"Analyzing… {round(status.get('progress') or 0)}% complete."
        if status.get("generating"):
            return "Creating content… almost done."
        return None
