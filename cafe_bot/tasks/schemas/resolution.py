"""
Resolution Variants.

Tagged results for grounding a free-text item against the catalog and for
resolving a requested size against an item's priced labels. Callers are
expected to handle every variant with isinstance checks.
"""

from dataclasses import dataclass

from ..models import CatalogItem, Confidence, SizeOption


# =============================================================================
# Size Resolution
# =============================================================================

@dataclass(frozen=True)
class SizeResolved:
    """The requested size maps to exactly this catalog label."""
    size: str


@dataclass(frozen=True)
class NeedsSelection:
    """No label could be chosen; the customer must pick one of these."""
    options: list[SizeOption]


SizeResolution = SizeResolved | NeedsSelection


# =============================================================================
# Item Grounding
# =============================================================================

@dataclass(frozen=True)
class Resolved:
    """A catalog item with a priced size, ready to commit."""
    item: CatalogItem
    size: str
    quantity: int
    confidence: Confidence


@dataclass(frozen=True)
class NeedsSize:
    """A catalog item that still needs its size chosen."""
    item: CatalogItem
    quantity: int
    options: list[SizeOption]
    confidence: Confidence = Confidence.HIGH


@dataclass(frozen=True)
class NoMatch:
    """Nothing in the catalog is close enough to the requested name."""
    name: str


Grounding = Resolved | NeedsSize | NoMatch
