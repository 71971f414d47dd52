"""
Size Resolution.

Maps what the customer said about size ("large", "regular", "L", "iced",
"the float one") onto one of an item's real priced labels ("Cold (L)",
"Regular", "Float (M)"). When nothing fits and the item has more than one
size, the caller gets every (label, price) pair back to offer as choices.
"""

import logging
import re

from .models import CatalogItem
from .parsers.constants import SIZE_BUCKETS, SIZE_SYNONYMS
from .schemas.resolution import NeedsSelection, SizeResolution, SizeResolved

logger = logging.getLogger(__name__)


class SizeResolver:
    """
    Resolves a requested size token against an item's pricing labels.

    Resolution order:
        1. Direct case-insensitive label equality
        2. Canonical bucket (small/medium/large/hot/cold/float) to label variants
        3. Substring match, with naive plural stripping
        4. The only size, when there is just one
        5. NeedsSelection with every option
    """

    # Shortest token accepted inside a label without word boundaries
    MIN_SUBSTRING_LENGTH = 3

    def resolve(self, requested: str | None, item: CatalogItem) -> SizeResolution:
        """
        Resolve a size for an item.

        Args:
            requested: Size keyword or raw answer text, or None if unstated
            item: The catalog item whose pricing labels are candidates

        Returns:
            SizeResolved(label) or NeedsSelection(options)
        """
        labels = item.sizes()
        token = re.sub(r"\s+", " ", (requested or "").lower()).strip()

        if token:
            label = (
                self._match_exact(token, labels)
                or self._match_bucket(token, labels)
                or self._match_substring(token, labels)
            )
            if label:
                logger.debug("Resolved size %r -> %r for %s", requested, label, item.name)
                return SizeResolved(label)

        if len(labels) == 1:
            return SizeResolved(labels[0])

        return NeedsSelection(item.size_options())

    @staticmethod
    def _match_exact(token: str, labels: list[str]) -> str | None:
        for label in labels:
            if label.lower() == token:
                return label
        return None

    @staticmethod
    def _canonical_bucket(token: str) -> str | None:
        if token in SIZE_SYNONYMS:
            return SIZE_SYNONYMS[token]
        # Bare label variants like "m" or "iced"
        for bucket, variants in SIZE_BUCKETS.items():
            if any(variant.lower() == token for variant in variants):
                return bucket
        return None

    def _match_bucket(self, token: str, labels: list[str]) -> str | None:
        bucket = self._canonical_bucket(token)
        if bucket is None:
            return None
        lowered = {label.lower(): label for label in labels}
        for variant in SIZE_BUCKETS[bucket]:
            if variant.lower() in lowered:
                return lowered[variant.lower()]
        return None

    def _match_substring(self, token: str, labels: list[str]) -> str | None:
        variants = [token]
        if token.endswith("es") and len(token) > 3:
            variants.append(token[:-2])
        if token.endswith("s") and len(token) > 2:
            variants.append(token[:-1])

        for variant in variants:
            for label in labels:
                label_lower = label.lower()
                # Short tokens only as whole words ("6" but not the "2" in "12 pcs")
                if len(variant) >= self.MIN_SUBSTRING_LENGTH and variant in label_lower:
                    return label
                if re.search(r"(?<!\w)" + re.escape(variant) + r"(?!\w)", label_lower):
                    return label
                # Label inside the token only on word boundaries ("the 12oz one")
                if re.search(r"(?<!\w)" + re.escape(label_lower) + r"(?!\w)", variant):
                    return label
        return None
