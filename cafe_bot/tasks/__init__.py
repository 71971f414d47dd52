"""
Order Resolution Tasks.

This package provides the building blocks of the order conversation:
- Pydantic models for catalog items, order lines and short-lived context
- Deterministic parsers and language detection
- Catalog matching and size resolution
- The order accumulator

The state machine, classifier and message builder are imported from their
own modules (they depend on the top-level LLM client and localization).
"""

from .models import (
    Language,
    Confidence,
    CatalogItem,
    SizeOption,
    CandidateMatch,
    PendingSizeRequest,
    SuggestionContext,
    PairingContext,
    OrderStatus,
    OrderLine,
    CustomerInfo,
    Order,
    load_catalog,
    weaker_confidence,
)

from .menu_lookup import MenuLookup, MatchResult
from .size_resolver import SizeResolver
from .accumulator import OrderAccumulator
