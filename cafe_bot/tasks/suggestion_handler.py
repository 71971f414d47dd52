"""
Suggestion Follow-up Handler.

After the bot mentions catalog items ("Try our Milk Tea or Iced Coffee!"),
short follow-ups like "add that", "the second one", "how much is it" or
"lahat" refer back to them. This module decides what such a follow-up means.
It never mutates the conversation; the state machine applies the outcome.
"""

from dataclasses import dataclass, field
import logging
import re
from typing import Literal

from .menu_lookup import MenuLookup
from .message_builder import MessageBuilder
from .models import CatalogItem, Confidence, Language, PairingContext, SuggestionContext
from .parsers import (
    extract_pairing_target,
    extract_position,
    extract_quantity,
    extract_size_token,
    is_confirmation,
    is_pricing_query,
    parse_yes_no,
    wants_all,
)
from .parsers.constants import POSITIONAL_PATTERN
from .schemas import Grounding, NeedsSelection, NeedsSize, Resolved
from .size_resolver import SizeResolver

logger = logging.getLogger(__name__)

QUESTION_PATTERN = re.compile(r"\?\s*$|\b(?:what|which|how|why|ano|alin|paano|bakit)\b", re.IGNORECASE)


def _is_question(text: str) -> bool:
    return bool(QUESTION_PATTERN.search(text))


@dataclass
class SuggestionOutcome:
    """What a follow-up to a suggestion turned out to be."""
    action: Literal["pairing", "price", "commit", "clarify"]
    message: str = ""
    groundings: list[Grounding] = field(default_factory=list)
    pairing: PairingContext | None = None
    suggestion: SuggestionContext | None = None


class SuggestionHandler:
    """
    Classifies follow-ups to an active suggestion context.

    Checked in order: pairing question, pricing query, direct mention of a
    suggested item, positional reference, plain confirmation. Anything else
    is not about the suggestion and returns None.
    """

    def __init__(self, lookup: MenuLookup, resolver: SizeResolver, messages: MessageBuilder):
        self.lookup = lookup
        self.resolver = resolver
        self.messages = messages

    def handle(
        self,
        text: str,
        suggestion: SuggestionContext,
        language: Language,
        now: float,
    ) -> SuggestionOutcome | None:
        # A pairing question is never an order confirmation
        target = extract_pairing_target(text)
        if target:
            return SuggestionOutcome(action="pairing", pairing=self.pairing_for(target, now))

        referenced = self._referenced_items(text, suggestion)

        if is_pricing_query(text):
            return self._price_outcome(text, suggestion, referenced, language)

        if referenced is not None and _is_question(text) and not is_confirmation(text):
            return None

        if referenced is None:
            if not (is_confirmation(text) or wants_all(text)):
                return None
            if parse_yes_no(text) is False:
                return None
            if len(suggestion.items) == 1 or wants_all(text):
                referenced = list(suggestion.items)
            else:
                logger.debug("Ambiguous confirmation across %d suggested items", len(suggestion.items))
                return SuggestionOutcome(
                    action="clarify",
                    message=self.messages.which_item(suggestion.items, language),
                )

        quantity = self._quantity(text, suggestion)
        size_token = extract_size_token(text) or suggestion.suggested_size
        return SuggestionOutcome(
            action="commit",
            groundings=[self._ground(item, size_token, quantity) for item in referenced],
        )

    def pairing_for(self, target: str, now: float) -> PairingContext:
        """Build a pairing context, naming the catalog item when the target matches one."""
        match = self.lookup.find_best_match(target)
        name = match.item.name if match else target
        return PairingContext(main_item_name=name, created_at=now)

    def _referenced_items(self, text: str, suggestion: SuggestionContext) -> list[CatalogItem] | None:
        """Suggested items named directly or by position, or None if neither."""
        mentioned = [item for item in self.lookup.find_mentioned_items(text) if item in suggestion.items]
        if mentioned:
            return mentioned

        position = extract_position(text)
        if position is not None and -len(suggestion.items) <= position < len(suggestion.items):
            return [suggestion.items[position]]
        return None

    def _quantity(self, text: str, suggestion: SuggestionContext) -> int:
        if wants_all(text):
            # "all of them" means the quantity that was being discussed
            return suggestion.suggested_quantity or 1
        # "2nd" is a position, not a quantity
        quantity = extract_quantity(POSITIONAL_PATTERN.sub(" ", text))
        return quantity or suggestion.suggested_quantity or 1

    def _ground(self, item: CatalogItem, size_token: str | None, quantity: int) -> Grounding:
        resolution = self.resolver.resolve(size_token, item)
        if isinstance(resolution, NeedsSelection):
            return NeedsSize(item, quantity, resolution.options)
        return Resolved(item, resolution.size, quantity, Confidence.HIGH)

    def _price_outcome(
        self,
        text: str,
        suggestion: SuggestionContext,
        referenced: list[CatalogItem] | None,
        language: Language,
    ) -> SuggestionOutcome:
        items = referenced or list(suggestion.items)
        size_token = extract_size_token(text)

        size_label = None
        if size_token and len(items) == 1:
            resolution = self.resolver.resolve(size_token, items[0])
            if not isinstance(resolution, NeedsSelection):
                size_label = resolution.size

        # Remember what was asked about so "add that" can use it
        updated = suggestion.model_copy(update={
            "suggested_quantity": extract_quantity(text) or suggestion.suggested_quantity,
            "suggested_size": size_token or suggestion.suggested_size,
        })
        return SuggestionOutcome(
            action="price",
            message=self.messages.price_info(items, language, size_label),
            suggestion=updated,
        )
