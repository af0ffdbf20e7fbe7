"""
Tests for the bounded in-memory conversation store.

Run with: python -m pytest tests/test_conversation_store.py -v
"""

from morrow.core.conversation_store import ConversationStore, ConversationTurn, new_conversation_id

from conftest import FakeClock


def _turn(label, ts=100.0, **kwargs):
    return ConversationTurn(utterance=f"say {label}", intent_label=label, ts=ts, **kwargs)


class TestConversationStore:
    """append/recent with overflow and age eviction."""

    def test_recent_is_oldest_first(self):
        store = ConversationStore(clock=FakeClock(100.0))
        for label in ("a", "b", "c"):
            store.append("conv_1", _turn(label))

        assert [t.intent_label for t in store.recent("conv_1")] == ["a", "b", "c"]
        assert [t.intent_label for t in store.recent("conv_1", 2)] == ["b", "c"]
        assert store.recent("conv_1", 0) == []

    def test_overflow_evicts_oldest(self):
        store = ConversationStore(max_turns=12, clock=FakeClock(100.0))
        for idx in range(15):
            store.append("conv_1", _turn(f"t{idx}"))

        turns = store.recent("conv_1")
        assert len(turns) == 12
        assert turns[0].intent_label == "t3"
        assert turns[-1].intent_label == "t14"

    def test_conversations_are_independent(self):
        store = ConversationStore(clock=FakeClock(100.0))
        store.append("conv_a", _turn("a"))
        store.append("conv_b", _turn("b"))

        assert [t.intent_label for t in store.recent("conv_a")] == ["a"]
        assert sorted(store.conversation_ids()) == ["conv_a", "conv_b"]

    def test_old_turns_expire(self):
        clock = FakeClock(1000.0)
        store = ConversationStore(max_age_sec=60, clock=clock)
        store.append("conv_1", _turn("old", ts=1000.0))
        clock.advance(30)
        store.append("conv_1", _turn("new", ts=clock()))
        clock.advance(40)

        assert [t.intent_label for t in store.recent("conv_1")] == ["new"]

        clock.advance(100)
        assert store.recent("conv_1") == []
        assert store.conversation_ids() == []

    def test_append_sweeps_idle_conversations(self):
        clock = FakeClock(1000.0)
        store = ConversationStore(max_age_sec=60, clock=clock, sweep_interval_sec=30)
        for idx in range(20):
            store.append(f"conv_{idx}", _turn("hi", ts=clock()))

        clock.advance(61)
        store.append("conv_live", _turn("hi", ts=clock()))

        assert store.sweep() == 0
        assert store.conversation_ids() == ["conv_live"]

    def test_sweep_interval_capped_at_max_age(self):
        clock = FakeClock(1000.0)
        store = ConversationStore(max_age_sec=10, clock=clock, sweep_interval_sec=30)
        store.append("conv_idle", _turn("hi", ts=clock()))
        clock.advance(5)
        store.append("conv_live", _turn("hi", ts=clock()))

        # nothing is old enough yet
        assert store.sweep_interval_sec == 10
        assert store.sweep() == 0
        clock.advance(20)
        assert store.sweep() == 2

    def test_turn_without_ts_is_stamped_by_store_clock(self):
        clock = FakeClock(500.0)
        store = ConversationStore(max_age_sec=60, clock=clock)
        turn = ConversationTurn(utterance="hi", intent_label="chat")
        store.append("conv_1", turn)

        assert turn.ts == 500.0
        clock.advance(61)
        assert store.recent("conv_1") == []

    def test_missing_id_is_ignored(self):
        store = ConversationStore()
        store.append("", _turn("a"))
        store.append(None, _turn("b"))
        assert store.conversation_ids() == []
        assert store.recent(None) == []
        assert store.recent("nobody") == []

    def test_clear(self):
        store = ConversationStore(clock=FakeClock(100.0))
        store.append("conv_a", _turn("a"))
        store.append("conv_b", _turn("b"))

        store.clear("conv_a")
        assert store.conversation_ids() == ["conv_b"]
        store.clear()
        assert store.conversation_ids() == []


class TestConversationTurn:

    def test_needs_clarification(self):
        assert _turn("seo", missing_required=("businessName",)).needs_clarification is True
        assert _turn("seo", missing_required=("businessName",), dispatched=True).needs_clarification is False
        assert _turn("seo").needs_clarification is False

    def test_new_conversation_id_shape(self):
        conversation_id = new_conversation_id()
        assert conversation_id.startswith("conv_")
        assert len(conversation_id) == len("conv_") + 12
        assert conversation_id != new_conversation_id()
