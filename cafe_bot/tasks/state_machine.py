"""
Order Conversation State Machine.

This module turns one customer utterance at a time into order changes and a
localized reply. Each utterance is routed through a fixed priority order:

1. AWAITING_SIZE: the answer to an open size question
2. AWAITING_CONFIRMATION: yes/no on low-confidence matches
3. SUGGESTION_ACTIVE: follow-ups to items the bot just mentioned
4. Commands: show cart, cancel order, checkout, start order
5. Open input: intent classification, then free-text reply

All session state lives in a ConversationContext passed to every call. The
only suspension points are the classifier and generation calls in step 5,
and nothing is mutated before them, so a superseded (cancelled) call leaves
the context exactly as it was.
"""

from dataclasses import dataclass, field
import logging
import time
from typing import Callable

from .. import config
from ..llm_client import CompletionEndpoint
from ..localization import get_localized_text
from .accumulator import OrderAccumulator
from .classifier import IntentClassifier
from .menu_lookup import MenuLookup
from .message_builder import MessageBuilder
from .models import (
    CandidateMatch,
    CatalogItem,
    Confidence,
    Language,
    OrderLine,
    OrderStatus,
    PairingContext,
    PendingSizeRequest,
    SuggestionContext,
)
from .parsers import (
    detect_language,
    extract_alternative_target,
    extract_pairing_target,
    extract_size_token,
    is_cancel,
    is_pricing_query,
    parse_command,
    parse_yes_no,
    split_segments,
)
from .schemas import (
    ConversationPhase,
    Grounding,
    NeedsSelection,
    NeedsSize,
    Resolved,
    SizeResolved,
    StateMachineResult,
)
from .size_resolver import SizeResolver
from .suggestion_handler import SuggestionHandler, SuggestionOutcome

logger = logging.getLogger(__name__)


@dataclass
class ConversationContext:
    """Everything one session remembers between utterances."""
    accumulator: OrderAccumulator = field(default_factory=OrderAccumulator)
    pending_sizes: list[PendingSizeRequest] = field(default_factory=list)
    pending_confirmations: list[CandidateMatch] = field(default_factory=list)
    suggestion: SuggestionContext | None = None
    pairing: PairingContext | None = None
    history: list[dict] = field(default_factory=list)
    language: Language = Language.ENGLISH

    def active_suggestion(self, now: float, ttl: float) -> SuggestionContext | None:
        if self.suggestion and self.suggestion.is_active(now, ttl):
            return self.suggestion
        return None

    def active_pairing(self, now: float, ttl: float) -> PairingContext | None:
        if self.pairing and self.pairing.is_active(now, ttl):
            return self.pairing
        return None

    def phase(self, now: float, ttl: float) -> ConversationPhase:
        """The blocking phase if there is one, else the strongest passive one."""
        if self.pending_sizes:
            return ConversationPhase.AWAITING_SIZE
        if self.pending_confirmations:
            return ConversationPhase.AWAITING_CONFIRMATION
        if self.active_suggestion(now, ttl):
            return ConversationPhase.SUGGESTION_ACTIVE
        if self.active_pairing(now, ttl):
            return ConversationPhase.PAIRING_ACTIVE
        return ConversationPhase.IDLE

    def record_turn(self, user_text: str, bot_text: str, keep: int) -> None:
        self.history.append({"role": "user", "content": user_text})
        self.history.append({"role": "assistant", "content": bot_text})
        if keep <= 0:
            self.history.clear()
            return
        del self.history[:-keep * 2]


class OrderStateMachine:
    """
    Explicit dispatcher over conversation phases, one handler per phase.

    Usage:
        machine = OrderStateMachine(catalog, endpoint=None)
        ctx = ConversationContext()
        result = await machine.process("2 large milk tea", ctx)
    """

    def __init__(
        self,
        catalog: list[CatalogItem],
        endpoint: CompletionEndpoint | None = None,
        clock: Callable[[], float] = time.monotonic,
        context_ttl: float | None = None,
    ):
        self.lookup = MenuLookup(catalog)
        self.resolver = SizeResolver()
        self.messages = MessageBuilder()
        self.classifier = IntentClassifier(self.lookup, self.resolver, endpoint)
        self.suggestions = SuggestionHandler(self.lookup, self.resolver, self.messages)
        self.clock = clock
        self.context_ttl = config.CONTEXT_TTL_SECONDS if context_ttl is None else context_ttl

    def update_catalog(self, catalog: list[CatalogItem]) -> None:
        self.lookup.catalog = catalog

    async def process(self, text: str, ctx: ConversationContext) -> StateMachineResult:
        """
        Process one utterance.

        Args:
            text: The customer's message
            ctx: The session's conversation context (mutated in place)

        Returns:
            StateMachineResult with the reply, resulting phase and committed lines
        """
        text = (text or "")[:config.MAX_MESSAGE_LENGTH].strip()
        now = self.clock()
        language = detect_language(text)

        message, committed, checkout_requested = await self._dispatch(text, ctx, language, now)

        ctx.language = language
        ctx.record_turn(text, message, config.HISTORY_TURNS)
        phase = ctx.phase(now, self.context_ttl)
        logger.info("Processed utterance: phase=%s committed=%d", phase.value, len(committed))

        return StateMachineResult(
            message=message,
            phase=phase,
            language=language,
            committed_lines=[line.model_copy() for line in committed],
            checkout_requested=checkout_requested,
        )

    async def _dispatch(
        self,
        text: str,
        ctx: ConversationContext,
        language: Language,
        now: float,
    ) -> tuple[str, list[OrderLine], bool]:
        if ctx.pending_sizes:
            return (*self._handle_awaiting_size(text, ctx, language, now), False)

        if ctx.pending_confirmations:
            return (*self._handle_awaiting_confirmation(text, ctx, language, now), False)

        pairing = None
        suggestion = ctx.active_suggestion(now, self.context_ttl)
        if suggestion:
            outcome = self.suggestions.handle(text, suggestion, language, now)
            if outcome and outcome.action == "pairing":
                pairing = outcome.pairing
            elif outcome:
                return (*self._apply_suggestion_outcome(outcome, ctx, language, now), False)

        if pairing is None:
            command = parse_command(text)
            if command:
                return self._handle_command(command, ctx, language)

        message, committed = await self._handle_open_input(text, ctx, language, now, pairing)
        return message, committed, False

    # =========================================================================
    # AWAITING_SIZE
    # =========================================================================

    def _handle_awaiting_size(
        self,
        text: str,
        ctx: ConversationContext,
        language: Language,
        now: float,
    ) -> tuple[str, list[OrderLine]]:
        if is_cancel(text):
            logger.debug("Customer cancelled %d pending size request(s)", len(ctx.pending_sizes))
            ctx.pending_sizes = []
            return self._with_confirmation_prompt(get_localized_text("size-cancelled", language), ctx, language), []

        segments = split_segments(text)
        general_token = extract_size_token(text)

        resolved: list[Grounding] = []
        remaining: list[PendingSizeRequest] = []
        for request in ctx.pending_sizes:
            size = self._resolve_size_answer(request, text, segments, general_token)
            if size is None:
                remaining.append(request)
            else:
                resolved.append(Resolved(request.item, size, request.quantity, Confidence.HIGH))

        order_started = ctx.accumulator.is_empty()
        committed = self._commit(resolved, ctx, now)
        ctx.pending_sizes = remaining

        parts = []
        if committed:
            parts.append(self.messages.items_added(committed, language, order_started))
        if remaining:
            parts.append(self.messages.size_prompt(remaining, language))
            return " ".join(parts), committed
        return self._with_confirmation_prompt(" ".join(parts), ctx, language), committed

    def _resolve_size_answer(
        self,
        request: PendingSizeRequest,
        text: str,
        segments: list[str],
        general_token: str | None,
    ) -> str | None:
        """
        Pick the size for one pending item from the customer's answer.

        A segment naming the item wins ("large for the milk tea, medium for
        the coffee"), then an exact label typed out ("Hot (S)"), then the
        general size keyword, then the raw answer.
        """
        labels = {label.lower(): label for label in request.labels()}
        if text.lower() in labels:
            return labels[text.lower()]

        tokens = []
        if len(segments) > 1:
            for segment in segments:
                if self._segment_names_item(segment, request.item):
                    tokens.append(extract_size_token(segment) or segment)
                    break
        tokens.extend([general_token, text])

        for token in tokens:
            if not token:
                continue
            resolution = self.resolver.resolve(token, request.item)
            if isinstance(resolution, SizeResolved):
                return resolution.size
        return None

    def _segment_names_item(self, segment: str, item: CatalogItem) -> bool:
        if item.name.lower() in segment.lower():
            return True
        match = self.lookup.find_best_match(segment)
        return match is not None and match.item.name == item.name

    # =========================================================================
    # AWAITING_CONFIRMATION
    # =========================================================================

    def _handle_awaiting_confirmation(
        self,
        text: str,
        ctx: ConversationContext,
        language: Language,
        now: float,
    ) -> tuple[str, list[OrderLine]]:
        answer = parse_yes_no(text)
        if answer is None:
            return self.messages.confirm_reask(ctx.pending_confirmations, language), []

        candidates = ctx.pending_confirmations
        ctx.pending_confirmations = []
        if answer is False:
            return get_localized_text("confirm-declined", language), []

        groundings: list[Grounding] = []
        for candidate in candidates:
            quantity = candidate.quantity if isinstance(candidate.quantity, int) else 1
            size_token = candidate.size or config.DEFAULT_CONFIRMATION_SIZE
            resolution = self.resolver.resolve(size_token, candidate.item)
            if isinstance(resolution, NeedsSelection):
                groundings.append(NeedsSize(candidate.item, quantity, resolution.options))
            else:
                groundings.append(Resolved(candidate.item, resolution.size, quantity, Confidence.HIGH))

        return self._apply_groundings(groundings, ctx, language, now)

    # =========================================================================
    # SUGGESTION_ACTIVE
    # =========================================================================

    def _apply_suggestion_outcome(
        self,
        outcome: SuggestionOutcome,
        ctx: ConversationContext,
        language: Language,
        now: float,
    ) -> tuple[str, list[OrderLine]]:
        if outcome.action == "price":
            ctx.suggestion = outcome.suggestion
            return outcome.message, []

        if outcome.action == "clarify":
            return outcome.message, []

        ctx.suggestion = None
        return self._apply_groundings(outcome.groundings, ctx, language, now)

    # =========================================================================
    # Commands
    # =========================================================================

    def _handle_command(
        self,
        command: str,
        ctx: ConversationContext,
        language: Language,
    ) -> tuple[str, list[OrderLine], bool]:
        accumulator = ctx.accumulator
        logger.debug("Command: %s", command)

        if command == "show_cart":
            return self.messages.cart_summary(accumulator, language), [], False

        if command == "cancel_order":
            if accumulator.is_empty():
                return get_localized_text("no-order-to-cancel", language), [], False
            accumulator.clear()
            accumulator.status = OrderStatus.CANCELLED
            ctx.suggestion = None
            ctx.pairing = None
            logger.info("Order cancelled by customer")
            return get_localized_text("order-cancelled", language), [], False

        if command == "checkout":
            return self.messages.checkout_prompt(accumulator, language), [], not accumulator.is_empty()

        return get_localized_text("order-started", language), [], False

    # =========================================================================
    # Open Input
    # =========================================================================

    async def _handle_open_input(
        self,
        text: str,
        ctx: ConversationContext,
        language: Language,
        now: float,
        pairing: PairingContext | None,
    ) -> tuple[str, list[OrderLine]]:
        sold_out = None
        if pairing is None:
            # "something similar to X" is a question, never an order
            replaced = self._replacement_target(text)
            if replaced is not None:
                reply = self._offer_alternatives(replaced, ctx, language, now)
                if reply is not None:
                    return reply, []
            sold_out = self.lookup.find_unavailable_mention(text)

        response = await self.classifier.classify(text, ctx.history)
        groundings = [g for g in self.classifier.ground(response) if isinstance(g, (Resolved, NeedsSize))]

        if groundings:
            message, committed = self._apply_groundings(groundings, ctx, language, now)
            if sold_out is not None:
                message = f"{message} {self._offer_alternatives(sold_out, ctx, language, now)}"
            return message, committed

        if sold_out is not None:
            return self._offer_alternatives(sold_out, ctx, language, now), []

        reply = await self.classifier.generate_reply(text, ctx.history)

        # Nothing below runs until every await has completed
        target = extract_pairing_target(text)
        if pairing is None and target:
            pairing = self.suggestions.pairing_for(target, now)
        if pairing is not None:
            ctx.pairing = pairing

        if reply is not None:
            mentioned = self.lookup.find_mentioned_items(reply)
            if mentioned:
                ctx.suggestion = SuggestionContext(items=mentioned, created_at=now)
            return reply, []

        if self.classifier.has_endpoint:
            return get_localized_text("generation-fallback", language), []
        return self._deterministic_reply(text, ctx, language, now), []

    def _replacement_target(self, text: str) -> CatalogItem | None:
        """The item named after "instead of" or "similar to", sold out or not."""
        target = extract_alternative_target(text)
        if not target:
            return None
        sold_out = self.lookup.find_unavailable_mention(target)
        if sold_out is not None:
            return sold_out
        match = self.lookup.find_best_match(target)
        return match.item if match else None

    def _offer_alternatives(
        self,
        item: CatalogItem,
        ctx: ConversationContext,
        language: Language,
        now: float,
    ) -> str | None:
        """
        Offer same-category alternatives for an item.

        The alternatives become the active suggestion so "add that" or "the
        first one" can pick one. A sold-out item always gets a reply, even
        with nothing to offer; an available one gets None in that case.
        """
        alternatives = self.lookup.alternatives_for(item)
        if item.available and not alternatives:
            return None

        logger.debug("Offering %d alternative(s) for %s", len(alternatives), item.name)
        if alternatives:
            ctx.suggestion = SuggestionContext(items=alternatives, created_at=now)
        return self.messages.alternatives(item, alternatives, language)

    def _deterministic_reply(
        self,
        text: str,
        ctx: ConversationContext,
        language: Language,
        now: float,
    ) -> str:
        """Reply without an endpoint: answer price questions about named items."""
        mentioned = self.lookup.find_mentioned_items(text)
        if mentioned and is_pricing_query(text):
            ctx.suggestion = SuggestionContext(items=mentioned, created_at=now)
            return self.messages.price_info(mentioned, language)
        return get_localized_text("order-help", language)

    # =========================================================================
    # Commit
    # =========================================================================

    def _apply_groundings(
        self,
        groundings: list[Grounding],
        ctx: ConversationContext,
        language: Language,
        now: float,
    ) -> tuple[str, list[OrderLine]]:
        """
        Route grounded items: commit confident ones, ask for missing sizes,
        and ask for confirmation on low-confidence matches.
        """
        to_commit: list[Resolved] = []
        needs_size: list[PendingSizeRequest] = []
        needs_confirmation: list[CandidateMatch] = []

        for grounding in groundings:
            if isinstance(grounding, Resolved):
                if grounding.confidence == Confidence.LOW:
                    needs_confirmation.append(CandidateMatch(
                        item=grounding.item,
                        confidence=grounding.confidence,
                        size=grounding.size,
                        quantity=grounding.quantity,
                    ))
                else:
                    to_commit.append(grounding)
            elif isinstance(grounding, NeedsSize):
                if grounding.confidence == Confidence.LOW:
                    needs_confirmation.append(CandidateMatch(
                        item=grounding.item,
                        confidence=grounding.confidence,
                        quantity=grounding.quantity,
                    ))
                else:
                    needs_size.append(PendingSizeRequest(
                        item=grounding.item,
                        quantity=grounding.quantity,
                        available_sizes=grounding.options,
                    ))

        order_started = ctx.accumulator.is_empty()
        committed = self._commit(to_commit, ctx, now)
        ctx.pending_sizes = ctx.pending_sizes + needs_size
        ctx.pending_confirmations = ctx.pending_confirmations + needs_confirmation

        parts = []
        if committed:
            parts.append(self.messages.items_added(committed, language, order_started))
        if ctx.pending_sizes:
            parts.append(self.messages.size_prompt(ctx.pending_sizes, language))
        elif ctx.pending_confirmations:
            parts.append(self.messages.confirm_prompt(ctx.pending_confirmations, language))
        if not parts:
            parts.append(get_localized_text("not-on-menu", language))
        return " ".join(parts), committed

    def _commit(self, resolved: list[Grounding], ctx: ConversationContext, now: float) -> list[OrderLine]:
        """Add resolved items to the order, then bundle any pending pairing item."""
        committed: list[OrderLine] = []
        for grounding in resolved:
            line = ctx.accumulator.add(grounding.item, grounding.size, grounding.quantity)
            if line is not None and line not in committed:
                committed.append(line)

        if committed:
            paired = self._commit_pairing(ctx, now)
            if paired is not None and paired not in committed:
                committed.append(paired)
        return committed

    def _commit_pairing(self, ctx: ConversationContext, now: float) -> OrderLine | None:
        pairing = ctx.active_pairing(now, self.context_ttl)
        ctx.pairing = None
        if pairing is None:
            return None

        match = self.lookup.find_best_match(pairing.main_item_name)
        if match is None or ctx.accumulator.has_item_named(match.item.name):
            return None

        logger.debug("Bundling paired item %s", match.item.name)
        return ctx.accumulator.add(match.item, match.item.first_size(), 1)

    def _with_confirmation_prompt(self, message: str, ctx: ConversationContext, language: Language) -> str:
        if ctx.pending_confirmations:
            prompt = self.messages.confirm_prompt(ctx.pending_confirmations, language)
            return f"{message} {prompt}".strip()
        return message
