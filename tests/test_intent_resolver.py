"""
Tests for deterministic intent resolution.

Covers intent scoring, the declared-order tie-break, entity extraction,
context merging, missing-field detection and clarification answers.

Run with: python -m pytest tests/test_intent_resolver.py -v
"""

import pytest

from morrow.core.conversation_store import ConversationStore, ConversationTurn
from morrow.core.intent_resolver import (
    IntentPattern,
    IntentResolver,
    ParsedIntent,
    clarification_question,
    extract_entities,
    question_for_field,
    to_confirmation,
)
from morrow.tools.registry import build_default_registry

from conftest import CountingHandler, object_schema, stub_registry


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(scope="module")
def registry():
    return build_default_registry()


@pytest.fixture
def resolver(registry):
    return IntentResolver(registry)


def _turn_from(parsed: ParsedIntent, dispatched: bool = False) -> ConversationTurn:
    return ConversationTurn(
        utterance=parsed.raw_text,
        intent_label=parsed.intent_label,
        action_name=parsed.action_name,
        parameters=dict(parsed.parameters),
        missing_required=parsed.missing_required,
        confidence=parsed.confidence,
        dispatched=dispatched,
    )


# ============================================================================
# EXAMPLE SCENARIOS
# ============================================================================

class TestExampleScenarios:
    """End-user utterances from the product walkthrough."""

    def test_seo_request_without_business_name(self, resolver):
        """SEO request resolves with extracted entities and asks for the business name."""
        parsed = resolver.resolve("Can you analyze the SEO for my plumbing business in Denver?", {})

        assert parsed.intent_label == "seo_analysis"
        assert parsed.action_name == "seo_analysis"
        assert parsed.confidence >= 0.7
        assert parsed.parameters == {"location": "Denver", "industry": "plumbing"}
        assert parsed.missing_required == ("businessName",)
        assert clarification_question(parsed) == "What's your business name?"

    def test_capabilities_question(self, resolver):
        """'what can you do' beats the greeting cue."""
        parsed = resolver.resolve("Hey, what can you do?")

        assert parsed.intent_label == "capabilities"
        assert parsed.action_name == "explain_capabilities"
        assert parsed.confidence >= 0.5
        assert parsed.missing_required == ()

    def test_competitors_in_city(self, resolver):
        parsed = resolver.resolve("Who are my competitors in Denver?", {"businessName": "Acme"})

        assert parsed.intent_label == "competitor_analysis"
        assert parsed.parameters["location"] == "Denver"
        assert parsed.missing_required == ()

    def test_content_calendar_next_month(self, resolver):
        parsed = resolver.resolve("Create a content calendar for next month", {"businessName": "Acme"})

        assert parsed.intent_label == "content_calendar"
        assert parsed.parameters["timeframe"] == 30


# ============================================================================
# SCORING AND FALLBACK
# ============================================================================

class TestScoring:
    """Tests for cue scoring, thresholds and the default intent."""

    def test_empty_utterance_is_chat_with_zero_confidence(self, resolver):
        for text in ("", "   ", "\n\t"):
            parsed = resolver.resolve(text)
            assert parsed.intent_label == "chat"
            assert parsed.confidence == 0.0
            assert parsed.parameters == {}
            assert parsed.action_name is None

    def test_non_string_utterance_treated_as_empty(self, resolver):
        parsed = resolver.resolve(None)
        assert parsed.intent_label == "chat"
        assert parsed.confidence == 0.0

    def test_unmatched_utterance_falls_back_to_chat(self, resolver):
        parsed = resolver.resolve("blorp zzz")
        assert parsed.intent_label == "chat"
        assert parsed.confidence == 0.0
        assert parsed.action_name is None

    def test_weak_match_below_min_score_becomes_chat(self, resolver):
        """A lone 0.2 cue is under the 0.3 floor."""
        parsed = resolver.resolve("check this")
        assert parsed.intent_label == "chat"
        assert parsed.action_name is None

    def test_below_dispatch_threshold_has_no_action(self, resolver):
        """A 0.4 match keeps its label but names no action."""
        parsed = resolver.resolve("what about my visibility")
        assert parsed.intent_label == "seo_analysis"
        assert parsed.confidence == pytest.approx(0.4)
        assert parsed.action_name is None
        assert parsed.missing_required == ()

    def test_confidence_is_clamped(self, resolver):
        parsed = resolver.resolve("SEO ranking and search engine visibility on Google")
        assert parsed.confidence == 1.0

    def test_greeting_dispatches_chat_with_message(self, resolver):
        parsed = resolver.resolve("Hello")
        assert parsed.intent_label == "chat"
        assert parsed.action_name == "chat"
        assert parsed.parameters == {"message": "Hello"}

    def test_cues_match_whole_words_only(self, resolver):
        """'reporting' must not trigger the 'report' cue."""
        parsed = resolver.resolve("reporting")
        assert parsed.intent_label == "chat"

    def test_resolution_is_deterministic(self, resolver):
        text = "Can you analyze the SEO for my plumbing business in Denver?"
        first = resolver.resolve(text, {"website": "https://acme.example"})
        for _ in range(5):
            assert resolver.resolve(text, {"website": "https://acme.example"}) == first


class TestTieBreak:
    """Equal scores go to the intent declared first."""

    def _resolver(self, order):
        registry = stub_registry(first_action=CountingHandler(), second_action=CountingHandler())
        patterns = {
            "first": IntentPattern("first", "first_action", (("report", 0.6),)),
            "second": IntentPattern("second", "second_action", (("report", 0.6),)),
        }
        return IntentResolver(registry, patterns=[patterns[name] for name in order])

    def test_first_declared_wins(self):
        parsed = self._resolver(["first", "second"]).resolve("report please")
        assert parsed.intent_label == "first"
        assert parsed.action_name == "first_action"

    def test_declaration_order_decides(self):
        parsed = self._resolver(["second", "first"]).resolve("report please")
        assert parsed.intent_label == "second"

    def test_higher_score_beats_order(self):
        registry = stub_registry(first_action=CountingHandler(), second_action=CountingHandler())
        resolver = IntentResolver(registry, patterns=[
            IntentPattern("first", "first_action", (("report", 0.6),)),
            IntentPattern("second", "second_action", (("report", 0.6), ("summary", 0.3))),
        ])
        assert resolver.resolve("report summary").intent_label == "second"

    def test_unregistered_action_is_not_named(self):
        registry = stub_registry(other=CountingHandler())
        resolver = IntentResolver(registry, patterns=[IntentPattern("first", "missing_action", (("report", 0.9),))])
        parsed = resolver.resolve("report")
        assert parsed.intent_label == "first"
        assert parsed.action_name is None


# ============================================================================
# ENTITY EXTRACTION
# ============================================================================

class TestEntityExtraction:
    """Tests for typed entity patterns."""

    def test_location_keeps_casing_and_stops_at_connector(self):
        entities = extract_entities("Who are my competitors in San Diego for my bakery?")
        assert entities["location"] == "San Diego"
        assert entities["industry"] == "bakery"

    def test_location_ignores_possessives_and_numbers(self):
        assert "location" not in extract_entities("plan posts in my area")
        assert "location" not in extract_entities("a calendar in 30 days")
        assert "location" not in extract_entities("check everything in the report")

    def test_timeframe_units(self):
        assert extract_entities("plan 2 weeks of posts")["timeframe"] == 14
        assert extract_entities("a 3 month plan")["timeframe"] == 90
        assert extract_entities("next 10 days")["timeframe"] == 10
        assert extract_entities("something for next week")["timeframe"] == 7

    def test_platforms_in_vocabulary_order(self):
        entities = extract_entities("Post on Instagram and Facebook")
        assert entities["platforms"] == ["facebook", "instagram"]
        assert entities["platform"] == "facebook"

    def test_website_url_and_bare_domain(self):
        assert extract_entities("audit https://acme.example/home, thanks")["website"] == "https://acme.example/home"
        assert extract_entities("check sunsetplumbing.com please")["website"] == "sunsetplumbing.com"

    def test_business_name_only_from_called_or_named(self):
        entities = extract_entities("my shop called Joe's Pizza in Denver")
        assert entities["businessName"] == "Joe's Pizza"
        assert entities["location"] == "Denver"
        assert extract_entities('a bakery named "crumb & co"')["businessName"] == "crumb & co"
        assert "businessName" not in extract_entities("my business Joe's Pizza")

    def test_topic_after_about(self):
        entities = extract_entities("write a post about our spring sale on Instagram")
        assert entities["topic"] == "our spring sale"

    def test_nothing_found(self):
        assert extract_entities("hello there") == {}


# ============================================================================
# MERGING AND MISSING FIELDS
# ============================================================================

class TestParameterMerge:
    """Utterance first, then context, then previous turns; schema keys only."""

    def test_context_fills_gaps(self, resolver):
        parsed = resolver.resolve("Check the SEO for my site", {"businessName": "Acme"})
        assert parsed.parameters == {"businessName": "Acme"}
        assert parsed.missing_required == ()

    def test_utterance_beats_context(self, resolver):
        parsed = resolver.resolve(
            "SEO for my bakery in Austin",
            {"location": "Denver", "businessName": "Acme"},
        )
        assert parsed.parameters["location"] == "Austin"
        assert parsed.parameters["businessName"] == "Acme"

    def test_unknown_context_keys_are_dropped(self, resolver):
        parsed = resolver.resolve("SEO check", {"businessName": "Acme", "favoriteColor": "blue"})
        assert "favoriteColor" not in parsed.parameters

    def test_previous_turn_parameters_fill_remaining_gaps(self, resolver):
        earlier = ConversationTurn(
            utterance="SEO for Acme",
            intent_label="seo_analysis",
            action_name="seo_analysis",
            parameters={"businessName": "Acme", "location": "Denver"},
            dispatched=True,
        )
        parsed = resolver.resolve("Now who are my competitors?", history=[earlier])
        assert parsed.intent_label == "competitor_analysis"
        assert parsed.parameters == {"businessName": "Acme", "location": "Denver"}
        assert parsed.missing_required == ()

    def test_missing_fields_in_schema_order(self, resolver):
        parsed = resolver.resolve("who are my competitors")
        assert parsed.missing_required == ("businessName", "location")
        assert clarification_question(parsed) == "What's your business name?"

    def test_store_supplies_history_by_conversation_id(self, registry):
        store = ConversationStore()
        store.append("conv_1", ConversationTurn(
            utterance="SEO for Acme",
            intent_label="seo_analysis",
            action_name="seo_analysis",
            parameters={"businessName": "Acme"},
            dispatched=True,
        ))
        resolver = IntentResolver(registry, store=store)
        parsed = resolver.resolve("write a social post about our new menu", conversation_id="conv_1")
        assert parsed.parameters["businessName"] == "Acme"
        assert parsed.parameters["topic"] == "our new menu"


class TestClarificationAnswer:
    """A bare answer after a clarification fills the first missing field."""

    def test_answer_fills_first_missing_field(self, resolver):
        first = resolver.resolve("Can you analyze the SEO for my plumbing business in Denver?")
        answer = resolver.resolve("Sunset Plumbing.", history=[_turn_from(first)])

        assert answer.intent_label == "seo_analysis"
        assert answer.action_name == "seo_analysis"
        assert answer.parameters["businessName"] == "Sunset Plumbing"
        assert answer.parameters["location"] == "Denver"
        assert answer.missing_required == ()
        assert answer.confidence == first.confidence
        assert answer.clarification_target == "seo_analysis"

    def test_answers_one_field_at_a_time(self, resolver):
        first = resolver.resolve("who are my competitors")
        second = resolver.resolve("Acme Bakery", history=[_turn_from(first)])
        assert second.missing_required == ("location",)
        assert clarification_question(second) == "What city are you in?"

        third = resolver.resolve("Austin", history=[_turn_from(first), _turn_from(second)])
        assert third.parameters == {"businessName": "Acme Bakery", "location": "Austin"}
        assert third.missing_required == ()

    def test_typed_entity_in_answer_is_used(self, resolver):
        """A rejected argument is the pending field; "60 days" answers it as 60"""
        rejected = ConversationTurn(
            utterance="Build a content calendar for 900 days",
            intent_label="content_calendar",
            action_name="content_calendar",
            parameters={"businessName": "Acme", "timeframe": 900},
            missing_required=("timeframe",),
            confidence=0.8,
        )
        answer = resolver.resolve("make it 60 days", history=[rejected])

        assert answer.action_name == "content_calendar"
        assert answer.parameters == {"businessName": "Acme", "timeframe": 60}
        assert answer.missing_required == ()

    def test_confident_new_request_is_not_an_answer(self, resolver):
        first = resolver.resolve("who are my competitors")
        parsed = resolver.resolve("Hey, what can you do?", history=[_turn_from(first)])
        assert parsed.intent_label == "capabilities"
        assert parsed.clarification_target is None

    def test_dispatched_turn_is_not_awaiting_an_answer(self, resolver):
        first = resolver.resolve("who are my competitors")
        parsed = resolver.resolve("Acme", history=[_turn_from(first, dispatched=True)])
        assert parsed.clarification_target is None


# ============================================================================
# QUESTIONS AND CONFIRMATIONS
# ============================================================================

class TestQuestionsAndConfirmations:

    def test_no_question_when_nothing_missing(self, resolver):
        assert clarification_question(resolver.resolve("Hey, what can you do?")) is None

    def test_generic_question_for_unlisted_field(self):
        assert question_for_field("scope") == "I need to know: scope"

    def test_schema_arguments_have_wording(self):
        for field_name in ("timeframe", "format", "limit"):
            assert not question_for_field(field_name).startswith("I need to know")

    def test_to_confirmation_lists_parameters(self, resolver):
        parsed = resolver.resolve("Can you analyze the SEO for my plumbing business in Denver?")
        assert to_confirmation(parsed) == "I'll run an SEO analysis (location: Denver, industry: plumbing)"

    def test_to_confirmation_without_action(self, resolver):
        assert to_confirmation(resolver.resolve("blorp")) == "I'll help you"

    def test_custom_schema_drives_missing_fields(self):
        registry = stub_registry(seo_analysis=(CountingHandler(), object_schema(
            {"businessName": {"type": "string"}, "website": {"type": "string"}},
            ["businessName", "website"],
        )))
        parsed = IntentResolver(registry).resolve("seo please", {"businessName": "Acme"})
        assert parsed.missing_required == ("website",)
        assert clarification_question(parsed) == "What's your website URL?"
