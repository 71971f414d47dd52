"""
Message Builder for the Order State Machine.

This module handles response text for the order flow: size and
confirmation prompts, added-item acknowledgements, price answers and cart
summaries. All text goes through the localization table so every message
exists in English and Tagalog.
"""

from ..localization import get_localized_text
from .accumulator import OrderAccumulator
from .models import CandidateMatch, CatalogItem, Language, OrderLine, PendingSizeRequest, SizeOption


class MessageBuilder:
    """
    Handles message construction for the order state machine.
    """

    CURRENCY = "₱"

    CONJUNCTIONS = {
        Language.ENGLISH: {"and": "and", "or": "or"},
        Language.TAGALOG: {"and": "at", "or": "o"},
    }

    def format_price(self, amount: float) -> str:
        """Format a price: 140 -> '₱140', 52.5 -> '₱52.50'."""
        if float(amount).is_integer():
            return f"{self.CURRENCY}{int(amount)}"
        return f"{self.CURRENCY}{amount:.2f}"

    def join_names(self, names: list[str], language: Language, conjunction: str = "and") -> str:
        """Join names as 'A, B and C' (or 'A, B at C')."""
        word = self.CONJUNCTIONS.get(language, self.CONJUNCTIONS[Language.ENGLISH])[conjunction]
        if not names:
            return ""
        if len(names) == 1:
            return names[0]
        return f"{', '.join(names[:-1])} {word} {names[-1]}"

    def format_options(self, options: list[SizeOption], language: Language) -> str:
        parts = [f"{option.label} ({self.format_price(option.price)})" for option in options]
        return self.join_names(parts, language, conjunction="or")

    def size_prompt(self, pending: list[PendingSizeRequest], language: Language) -> str:
        """
        Build one clarification message for every item still missing a size.

        A single item gets an inline question; several items get one line each.
        """
        if len(pending) == 1:
            request = pending[0]
            return get_localized_text(
                "size-prompt-one", language,
                self._quantity_name(request.item.name, request.quantity),
                self.format_options(request.available_sizes, language),
            )

        lines = "\n".join(
            f"- {self._quantity_name(request.item.name, request.quantity)}: "
            f"{self.format_options(request.available_sizes, language)}"
            for request in pending
        )
        return get_localized_text("size-prompt-many", language, lines)

    def confirm_prompt(self, candidates: list[CandidateMatch], language: Language) -> str:
        return get_localized_text("confirm-items", language, self._candidate_names(candidates, language))

    def confirm_reask(self, candidates: list[CandidateMatch], language: Language) -> str:
        return get_localized_text("confirm-reask", language, self._candidate_names(candidates, language))

    def items_added(self, lines: list[OrderLine], language: Language, order_started: bool = False) -> str:
        """Acknowledge committed lines, greeting first when this started the order."""
        summary = self.join_names([line.get_summary() for line in lines], language)
        message = get_localized_text("item-added", language, summary)
        if order_started:
            message = f"{get_localized_text('order-started', language)} {message}"
        return message

    def which_item(self, items: list[CatalogItem], language: Language) -> str:
        names = self.join_names([item.name for item in items], language, conjunction="or")
        return get_localized_text("which-item", language, names)

    def price_info(self, items: list[CatalogItem], language: Language, size: str | None = None) -> str:
        """Price text for each item, narrowed to one size label when it exists."""
        details = []
        for item in items:
            if size and item.has_size(size):
                details.append(f"{item.name} ({size}) is {self.format_price(item.pricing[size])}")
            else:
                prices = self.format_options(item.size_options(), language)
                details.append(f"{item.name}: {prices}")
        return get_localized_text("price-info", language, "; ".join(details))

    def alternatives(
        self,
        item: CatalogItem,
        alternatives: list[CatalogItem],
        language: Language,
    ) -> str:
        """Offer alternatives, apologizing first when the item is sold out."""
        names = self.join_names([other.name for other in alternatives], language, conjunction="or")
        if item.available:
            return get_localized_text("item-alternatives", language, item.name, names)
        if not alternatives:
            return get_localized_text("item-unavailable-no-alternatives", language, item.name)
        return get_localized_text("item-unavailable", language, item.name, names)

    def cart_summary(self, accumulator: OrderAccumulator, language: Language) -> str:
        if accumulator.is_empty():
            return get_localized_text("cart-empty", language)
        return get_localized_text("cart-summary", language, accumulator.total_units())

    def checkout_prompt(self, accumulator: OrderAccumulator, language: Language) -> str:
        if accumulator.is_empty():
            return get_localized_text("cart-empty", language)
        total = get_localized_text(
            "order-total", language,
            self.format_price(accumulator.total()),
            accumulator.estimate_prep_minutes(),
        )
        return f"{get_localized_text('checkout-prompt', language)} {total}"

    @staticmethod
    def _quantity_name(name: str, quantity: int) -> str:
        return f"{quantity}x {name}" if quantity > 1 else name

    def _candidate_names(self, candidates: list[CandidateMatch], language: Language) -> str:
        names = []
        for candidate in candidates:
            quantity = candidate.quantity if isinstance(candidate.quantity, int) else 1
            label = self._quantity_name(candidate.item.name, quantity)
            if candidate.size:
                label = f"{label} ({candidate.size})"
            names.append(label)
        return self.join_names(names, language)
