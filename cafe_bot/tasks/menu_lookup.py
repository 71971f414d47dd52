"""
Menu Lookup Engine for Order Items.

This module grounds free-text item names against the catalog snapshot. It
tries progressively looser passes (exact name, containment, shared words,
edit distance) and tags each hit with a confidence tier.
"""

from dataclasses import dataclass
import logging
import re

from rapidfuzz.distance import Levenshtein

from .models import CatalogItem, Confidence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    """A catalog item matched to a name span, with the pass's confidence."""
    item: CatalogItem
    confidence: Confidence


class MenuLookup:
    """
    Handles catalog lookups and searching.

    Only available items are ever matched or offered. Unavailable items are
    kept aside so a request for one can be answered with alternatives. The
    catalog is read-only and may be shared between sessions.
    """

    # Edit-distance acceptance thresholds
    MIN_SIMILARITY = 0.60
    MEDIUM_SIMILARITY = 0.80
    MAX_EDIT_DISTANCE = 3
    MAX_LENGTH_DIFFERENCE = 6

    # Alternatives offered for an unavailable item
    MAX_ALTERNATIVES = 3

    def __init__(self, catalog: list[CatalogItem] | None):
        """
        Initialize the menu lookup engine.

        Args:
            catalog: Catalog snapshot. Unavailable items are ignored.
        """
        self.catalog = catalog

    @property
    def catalog(self) -> list[CatalogItem]:
        """Get the available catalog items."""
        return self._items

    @catalog.setter
    def catalog(self, value: list[CatalogItem] | None):
        """Replace the catalog snapshot."""
        items = list(value or [])
        self._items = [item for item in items if item.available]
        self._unavailable = [item for item in items if not item.available]

    def find_best_match(self, name: str) -> MatchResult | None:
        """
        Find the catalog item that best matches a name span.

        Args:
            name: Item name as the customer said it (e.g. "milktea", "2 burgers")

        Returns:
            MatchResult with the first pass that succeeds, or None
        """
        span = re.sub(r"\s+", " ", (name or "").lower()).strip()
        if not span or not self._items:
            return None

        # Pass 1: Exact match
        for item in self._items:
            if item.name.lower() == span:
                return MatchResult(item, Confidence.HIGH)

        # Pass 2: Containment in either direction
        match = self._match_containment(span)
        if match:
            return MatchResult(match, Confidence.MEDIUM)

        # Pass 3: Shared significant words
        match = self._match_shared_words(span)
        if match:
            return MatchResult(match, Confidence.LOW)

        # Pass 4: Edit distance
        result = self._match_edit_distance(span)
        if result is None:
            logger.debug("No catalog match for %r", name)
        return result

    def _match_containment(self, span: str) -> CatalogItem | None:
        # Item name is contained in the span, e.g. "iced milk tea please" finds "Milk Tea".
        # Prefer LONGER item names (more complete match)
        name_in_span = [item for item in self._items if item.name.lower() in span]
        if name_in_span:
            return max(name_in_span, key=lambda item: len(item.name))

        # Span is contained in the item name, e.g. "burger" finds "Cheese Burger".
        # Prefer shorter item names (more specific match)
        span_in_name = [item for item in self._items if span in item.name.lower()]
        if span_in_name:
            return min(span_in_name, key=lambda item: len(item.name))
        return None

    def _match_shared_words(self, span: str) -> CatalogItem | None:
        span_words = {word for word in re.findall(r"[\w']+", span) if len(word) > 2}
        if not span_words:
            return None

        best_item = None
        best_count = 0
        for item in self._items:
            item_words = {word for word in re.findall(r"[\w']+", item.name.lower()) if len(word) > 2}
            shared = len(span_words & item_words)
            # Strictly greater keeps catalog order on ties
            if shared > best_count:
                best_item, best_count = item, shared
        return best_item

    def _match_edit_distance(self, span: str) -> MatchResult | None:
        best_item = None
        best_similarity = 0.0

        for item in self._items:
            item_name = item.name.lower()
            if abs(len(span) - len(item_name)) > self.MAX_LENGTH_DIFFERENCE:
                continue

            targets = [item_name] + [word for word in item_name.split() if len(word) >= 3]
            for target in targets:
                distance = Levenshtein.distance(span, target)
                similarity = 1 - distance / max(len(span), len(target))
                if distance > self.MAX_EDIT_DISTANCE or similarity < self.MIN_SIMILARITY:
                    continue
                if similarity > best_similarity:
                    best_item, best_similarity = item, similarity

        if best_item is None:
            return None

        confidence = Confidence.MEDIUM if best_similarity >= self.MEDIUM_SIMILARITY else Confidence.LOW
        logger.debug(
            "Edit-distance match %r -> %r (similarity %.2f, %s)",
            span, best_item.name, best_similarity, confidence.value,
        )
        return MatchResult(best_item, confidence)

    def find_mentioned_items(self, text: str) -> list[CatalogItem]:
        """
        Find catalog items named in free text, in order of appearance.

        Used on the bot's own replies so "add that" can refer back to what
        was just suggested. Overlapping names keep the longer one
        ("Milk Tea" wins over "Tea").

        Args:
            text: Free text to scan

        Returns:
            Distinct catalog items in the order they first appear
        """
        if not text:
            return []

        hits = []
        for item in self._items:
            pattern = r"\b" + re.escape(item.name.lower()) + r"\b"
            for match in re.finditer(pattern, text.lower()):
                hits.append((match.start(), match.end(), item))

        hits.sort(key=lambda hit: (hit[0], -(hit[1] - hit[0])))

        mentioned: list[CatalogItem] = []
        covered_until = -1
        for start, end, item in hits:
            if start < covered_until:
                continue
            covered_until = end
            if item not in mentioned:
                mentioned.append(item)
        return mentioned

    def find_unavailable_mention(self, text: str) -> CatalogItem | None:
        """
        Find an unavailable catalog item named in free text.

        The full name counts anywhere on word boundaries. A single longer
        word of the name ("spaghetti", "carbonara") also counts, unless an
        available item shares that word.

        Args:
            text: Customer utterance

        Returns:
            The first unavailable item mentioned, or None
        """
        if not text or not self._unavailable:
            return None

        lowered = text.lower()
        available_words = {
            word for item in self._items for word in item.name.lower().split()
        }
        for item in self._unavailable:
            name = item.name.lower()
            if re.search(r"\b" + re.escape(name) + r"\b", lowered):
                return item
            for word in name.split():
                if len(word) <= 3 or word in available_words:
                    continue
                if re.search(r"\b" + re.escape(word) + r"\b", lowered):
                    return item
        return None

    def alternatives_for(self, item: CatalogItem) -> list[CatalogItem]:
        """
        Available items to offer in place of the given one.

        Same category only, items sharing the sub-category first, otherwise
        in catalog order.
        """
        candidates = [
            other for other in self._items
            if other.category == item.category and other.name != item.name
        ]
        if item.sub_category:
            candidates.sort(key=lambda other: other.sub_category != item.sub_category)
        return candidates[:self.MAX_ALTERNATIVES]
