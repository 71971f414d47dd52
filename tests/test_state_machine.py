"""
Tests for the order conversation state machine.

These drive OrderStateMachine.process end to end without an endpoint
(deterministic parsing) unless a FakeEndpoint is passed explicitly.

Run with: pytest tests/test_state_machine.py -v
"""

import asyncio

import pytest

from cafe_bot.tasks.models import (
    Language,
    OrderStatus,
    PairingContext,
    PendingSizeRequest,
    SuggestionContext,
)
from cafe_bot.tasks.schemas import ConversationPhase
from cafe_bot.tasks.state_machine import OrderStateMachine
from tests.test_helpers import FakeEndpoint, order_json


def say(machine, ctx, text):
    return asyncio.run(machine.process(text, ctx))


def cart(ctx):
    return [(line.name, line.selected_size, line.quantity) for line in ctx.accumulator.lines]


# =============================================================================
# AWAITING_SIZE
# =============================================================================

class TestSizeClarification:
    """Tests for items that need a size."""

    def test_missing_size_then_answer(self, machine, ctx):
        result = say(machine, ctx, "2 milk teas")
        assert result.phase == ConversationPhase.AWAITING_SIZE
        assert "Medium (₱120) or Large (₱140)" in result.message
        assert ctx.accumulator.is_empty()

        result = say(machine, ctx, "large")
        assert result.phase == ConversationPhase.IDLE
        assert cart(ctx) == [("Milk Tea", "Large", 2)]
        assert ctx.accumulator.total() == 280
        assert [line.get_summary() for line in result.committed_lines] == ["2x Milk Tea (Large)"]
        assert "started an order" in result.message

    def test_size_given_up_front_commits_immediately(self, machine, ctx):
        result = say(machine, ctx, "2 large milk tea")
        assert result.phase == ConversationPhase.IDLE
        assert cart(ctx) == [("Milk Tea", "Large", 2)]

    def test_single_size_item_never_asks(self, machine, ctx):
        result = say(machine, ctx, "cheese burger")
        assert result.phase == ConversationPhase.IDLE
        assert cart(ctx) == [("Cheese Burger", "Regular", 1)]

    def test_one_prompt_for_several_items(self, machine, ctx):
        result = say(machine, ctx, "milk tea and iced coffee")
        assert result.phase == ConversationPhase.AWAITING_SIZE
        assert "- Milk Tea: Medium (₱120) or Large (₱140)" in result.message
        assert "- Iced Coffee: Cold (M) (₱110) or Cold (L) (₱130)" in result.message

    def test_per_item_answers(self, machine, ctx):
        say(machine, ctx, "milk tea and iced coffee")
        result = say(machine, ctx, "large for the milk tea, medium for the iced coffee")
        assert result.phase == ConversationPhase.IDLE
        assert cart(ctx) == [("Milk Tea", "Large", 1), ("Iced Coffee", "Cold (M)", 1)]
        assert ctx.accumulator.total() == 250

    def test_partial_answer_reprompts_the_rest(self, machine, ctx):
        say(machine, ctx, "milk tea and chicken wings")
        result = say(machine, ctx, "large")
        assert result.phase == ConversationPhase.AWAITING_SIZE
        assert cart(ctx) == [("Milk Tea", "Large", 1)]
        assert "6 pcs (₱180) or 12 pcs (₱340)" in result.message

        result = say(machine, ctx, "12 pcs")
        assert result.phase == ConversationPhase.IDLE
        assert ctx.accumulator.total() == 480

    def test_unrecognized_answer_reprompts(self, machine, ctx):
        say(machine, ctx, "2 milk teas")
        result = say(machine, ctx, "hmm not sure")
        assert result.phase == ConversationPhase.AWAITING_SIZE
        assert "What size" in result.message
        assert ctx.accumulator.is_empty()

    def test_cancel_discards_pending_sizes(self, machine, ctx):
        say(machine, ctx, "2 milk teas")
        result = say(machine, ctx, "never mind")
        assert result.phase == ConversationPhase.IDLE
        assert ctx.pending_sizes == []
        assert ctx.accumulator.is_empty()

    def test_tagalog_size_prompt(self, machine, ctx):
        result = say(machine, ctx, "gusto ko ng 2 milk tea")
        assert result.language == Language.TAGALOG
        assert result.message.startswith("Anong size")
        assert "Medium (₱120) o Large (₱140)" in result.message

        result = say(machine, ctx, "malaki po")
        assert cart(ctx) == [("Milk Tea", "Large", 2)]
        assert "Na-add ko na" in result.message


# =============================================================================
# AWAITING_CONFIRMATION
# =============================================================================

class TestLowConfidenceConfirmation:
    """Tests for yes/no confirmation of weak matches."""

    def test_confirm_uses_default_size(self, machine, ctx):
        result = say(machine, ctx, "chclate")
        assert result.phase == ConversationPhase.AWAITING_CONFIRMATION
        assert "did you mean Hot Chocolate?" in result.message

        result = say(machine, ctx, "yes")
        assert result.phase == ConversationPhase.IDLE
        assert cart(ctx) == [("Hot Chocolate", "Hot (M)", 1)]

    def test_decline(self, machine, ctx):
        say(machine, ctx, "chclate")
        result = say(machine, ctx, "no")
        assert result.phase == ConversationPhase.IDLE
        assert ctx.accumulator.is_empty()
        assert ctx.pending_confirmations == []

    def test_unclear_answer_reasks(self, machine, ctx):
        say(machine, ctx, "chclate")
        result = say(machine, ctx, "maybe later")
        assert result.phase == ConversationPhase.AWAITING_CONFIRMATION
        assert "Please say yes or no" in result.message


# =============================================================================
# Commands
# =============================================================================

class TestCommands:
    """Tests for cart commands."""

    def test_cancel_with_nothing_ordered(self, machine, ctx):
        result = say(machine, ctx, "cancel my order")
        assert result.message == "You don't have an active order to cancel."
        assert ctx.accumulator.status == OrderStatus.IN_PROGRESS

    def test_cancel_clears_order(self, machine, ctx):
        say(machine, ctx, "2 large milk tea")
        result = say(machine, ctx, "cancel my order")
        assert "canceled your current order" in result.message
        assert ctx.accumulator.is_empty()
        assert ctx.accumulator.status == OrderStatus.CANCELLED

    def test_show_cart(self, machine, ctx):
        say(machine, ctx, "2 large milk tea")
        result = say(machine, ctx, "show my cart")
        assert result.message.startswith("You have 2 items in your order.")

    def test_show_empty_cart(self, machine, ctx):
        result = say(machine, ctx, "show my cart")
        assert "don't have any items" in result.message

    def test_checkout_requested(self, machine, ctx):
        say(machine, ctx, "2 large milk tea")
        result = say(machine, ctx, "that's all")
        assert result.checkout_requested is True
        assert "Your total is ₱280" in result.message

    def test_checkout_with_empty_order(self, machine, ctx):
        result = say(machine, ctx, "checkout")
        assert result.checkout_requested is False

    def test_start_order(self, machine, ctx):
        result = say(machine, ctx, "I want to start an order")
        assert "started an order" in result.message
        assert ctx.accumulator.is_empty()

    def test_blocking_phase_wins_over_commands(self, machine, ctx):
        say(machine, ctx, "2 milk teas")
        result = say(machine, ctx, "show my cart")
        assert result.phase == ConversationPhase.AWAITING_SIZE


# =============================================================================
# Open Input
# =============================================================================

class TestOpenInput:
    """Tests for classification and reply fallbacks."""

    def test_help_when_nothing_recognized(self, machine, ctx):
        result = say(machine, ctx, "hello there")
        assert result.phase == ConversationPhase.IDLE
        assert "I can help you order" in result.message

    def test_price_question_without_endpoint(self, machine, ctx):
        result = say(machine, ctx, "how much is the milk tea")
        assert "Milk Tea: Medium (₱120) or Large (₱140)" in result.message
        assert result.phase == ConversationPhase.SUGGESTION_ACTIVE
        assert ctx.accumulator.is_empty()

    def test_classifier_order(self, catalog, clock, ctx):
        endpoint = FakeEndpoint(classify_reply=order_json(("Milk Tea", 2, "Large", "high")))
        machine = OrderStateMachine(catalog, endpoint=endpoint, clock=clock)

        result = say(machine, ctx, "two large milk teas please")
        assert cart(ctx) == [("Milk Tea", "Large", 2)]
        assert endpoint.generate_requests == []
        assert result.phase == ConversationPhase.IDLE

    def test_classifier_hallucination_is_dropped(self, catalog, clock, ctx):
        endpoint = FakeEndpoint(
            classify_reply=order_json(("Unicorn Frappe", 1, "Large", "high")),
            generate_reply="We don't have that, sorry!",
        )
        machine = OrderStateMachine(catalog, endpoint=endpoint, clock=clock)

        result = say(machine, ctx, "one unicorn frappe")
        assert ctx.accumulator.is_empty()
        assert result.message == "We don't have that, sorry!"

    def test_endpoint_failures_fall_back(self, catalog, clock, ctx):
        endpoint = FakeEndpoint(classify_reply=RuntimeError("down"), generate_reply=RuntimeError("down"))
        machine = OrderStateMachine(catalog, endpoint=endpoint, clock=clock)

        result = say(machine, ctx, "one milk tea please")
        assert result.message.startswith("Sorry, I'm having trouble")
        assert ctx.accumulator.is_empty()

    def test_long_messages_are_truncated(self, machine, ctx, monkeypatch):
        from cafe_bot import config
        monkeypatch.setattr(config, "MAX_MESSAGE_LENGTH", 20)
        say(machine, ctx, "hello " * 100)
        assert len(ctx.history[0]["content"]) <= 20


# =============================================================================
# Unavailable Items
# =============================================================================

class TestUnavailableItems:
    """Sold-out items are answered with available alternatives."""

    def test_sold_out_item_offers_alternatives(self, machine, ctx):
        result = say(machine, ctx, "can I get a spaghetti")
        assert result.message == (
            "Sorry, Spaghetti isn't available right now. "
            "You might like Cheese Burger or Chicken Wings instead."
        )
        assert result.phase == ConversationPhase.SUGGESTION_ACTIVE
        assert [i.name for i in ctx.suggestion.items] == ["Cheese Burger", "Chicken Wings"]
        assert ctx.accumulator.is_empty()

    def test_alternative_can_be_picked(self, machine, ctx):
        say(machine, ctx, "can I get a spaghetti")
        result = say(machine, ctx, "the first one")
        assert cart(ctx) == [("Cheese Burger", "Regular", 1)]
        assert result.phase == ConversationPhase.IDLE

    def test_available_items_still_ordered(self, machine, ctx):
        result = say(machine, ctx, "can I get a large milk tea and a spaghetti")
        assert cart(ctx) == [("Milk Tea", "Large", 1)]
        assert "Spaghetti isn't available" in result.message
        assert [i.name for i in ctx.suggestion.items] == ["Cheese Burger", "Chicken Wings"]

    def test_replacement_question(self, machine, ctx):
        result = say(machine, ctx, "anything similar to the milk tea?")
        assert result.message == "Instead of Milk Tea, you might like Iced Coffee, Hot Chocolate or Iced Tea."
        assert ctx.accumulator.is_empty()
        assert result.phase == ConversationPhase.SUGGESTION_ACTIVE

    def test_tagalog_reply(self, machine, ctx):
        result = say(machine, ctx, "pabili po ng spaghetti")
        assert result.message.startswith("Pasensya, wala kaming Spaghetti ngayon.")

    def test_with_endpoint_skips_generation(self, catalog, clock, ctx):
        endpoint = FakeEndpoint(classify_reply=order_json(("Spaghetti", 1, None, "high")))
        bot = OrderStateMachine(catalog, endpoint=endpoint, clock=clock)
        result = say(bot, ctx, "one spaghetti please")
        assert result.message.startswith("Sorry, Spaghetti isn't available")
        assert endpoint.generate_requests == []

    def test_nothing_to_offer(self, clock, ctx, item):
        bot = OrderStateMachine([item("Spaghetti"), item("Milk Tea")], clock=clock)
        result = say(bot, ctx, "spaghetti please")
        assert result.message == "Sorry, Spaghetti isn't available right now. Is there anything else you'd like?"
        assert ctx.suggestion is None


# =============================================================================
# Context Bookkeeping
# =============================================================================

class TestContext:
    """Tests for history and catalog updates."""

    def test_history_keeps_recent_turns(self, machine, ctx, monkeypatch):
        from cafe_bot import config
        monkeypatch.setattr(config, "HISTORY_TURNS", 2)
        for text in ["hello", "hi again", "show my cart"]:
            say(machine, ctx, text)
        assert len(ctx.history) == 4
        assert ctx.history[0] == {"role": "user", "content": "hi again"}
        assert ctx.history[-1]["role"] == "assistant"

    @pytest.mark.parametrize("keep", [0, -1])
    def test_history_disabled(self, ctx, keep):
        for _ in range(3):
            ctx.record_turn("hello", "Hi! What can I get you?", keep)
        assert ctx.history == []

    def test_language_remembered(self, machine, ctx):
        say(machine, ctx, "salamat po")
        assert ctx.language == Language.TAGALOG

    def test_update_catalog(self, machine, ctx, item):
        machine.update_catalog([item("Iced Tea")])
        result = say(machine, ctx, "cheese burger")
        assert ctx.accumulator.is_empty()
        assert "I can help you order" in result.message

    @pytest.mark.parametrize("text", ["", "   ", "?!"])
    def test_junk_input_never_raises(self, machine, ctx, text):
        result = say(machine, ctx, text)
        assert result.phase == ConversationPhase.IDLE


class TestPhase:
    """Tests for ConversationContext.phase precedence."""

    def test_blocking_phase_beats_passive_contexts(self, ctx, item):
        ctx.suggestion = SuggestionContext(items=[item("Iced Tea")], created_at=0)
        ctx.pairing = PairingContext(main_item_name="Cheese Burger", created_at=0)
        assert ctx.phase(now=10, ttl=300) == ConversationPhase.SUGGESTION_ACTIVE

        ctx.pending_sizes = [PendingSizeRequest(item=item("Milk Tea"), available_sizes=item("Milk Tea").size_options())]
        phase = ctx.phase(now=10, ttl=300)
        assert phase == ConversationPhase.AWAITING_SIZE
        assert phase.is_blocking

    def test_expired_contexts_are_idle(self, ctx, item):
        ctx.suggestion = SuggestionContext(items=[item("Iced Tea")], created_at=0)
        ctx.pairing = PairingContext(main_item_name="Cheese Burger", created_at=200)
        assert ctx.phase(now=400, ttl=300) == ConversationPhase.PAIRING_ACTIVE
        assert not ConversationPhase.PAIRING_ACTIVE.is_blocking
        assert ctx.phase(now=600, ttl=300) == ConversationPhase.IDLE
