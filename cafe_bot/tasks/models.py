"""
Pydantic models for the order-resolution engine.

The model layer mirrors the conversation's moving parts:
- CatalogItem (read-only snapshot supplied by the host)
- CandidateMatch / PendingSizeRequest (items on their way into the order)
- SuggestionContext / PairingContext (short-lived conversational memory)
- OrderLine / Order (the in-progress order and its finalized view)
"""

from enum import Enum
from typing import Any, Literal
import logging
import uuid

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class Language(str, Enum):
    """Languages the bot can answer in."""
    ENGLISH = "english"
    TAGALOG = "tagalog"


class Confidence(str, Enum):
    """Qualitative match strength, strongest first."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    @classmethod
    def parse(cls, value: Any, default: "Confidence | None" = None) -> "Confidence":
        """Coerce loosely-typed classifier output ("High", None, 3) to a tier."""
        if isinstance(value, Confidence):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default or cls.MEDIUM


_CONFIDENCE_RANK = {
    Confidence.HIGH: 3,
    Confidence.MEDIUM: 2,
    Confidence.LOW: 1,
}


def weaker_confidence(a: Confidence, b: Confidence) -> Confidence:
    """Return the weaker of two confidence tiers."""
    return a if a.rank <= b.rank else b


# =============================================================================
# Catalog
# =============================================================================

class CatalogItem(BaseModel):
    """A sellable menu entry with one or more priced size variants."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    category: str = ""
    sub_category: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sub_category", "subCategory"),
    )
    pricing: dict[str, float]
    available: bool = Field(
        default=True,
        validation_alias=AliasChoices("available", "isAvailable"),
    )

    @field_validator("pricing")
    @classmethod
    def _pricing_not_empty(cls, value: dict[str, float]) -> dict[str, float]:
        if not value:
            raise ValueError("pricing must contain at least one size")
        return value

    def sizes(self) -> list[str]:
        """Size labels in catalog order."""
        return list(self.pricing.keys())

    def first_size(self) -> str:
        return next(iter(self.pricing))

    def price_for(self, size: str) -> float | None:
        return self.pricing.get(size)

    def has_size(self, size: str | None) -> bool:
        return size is not None and size in self.pricing

    def size_options(self) -> list["SizeOption"]:
        return [SizeOption(label=label, price=price) for label, price in self.pricing.items()]


def load_catalog(records: list[dict | CatalogItem]) -> list[CatalogItem]:
    """
    Validate a raw catalog snapshot.

    Records that fail validation (missing name, empty pricing, ...) are skipped
    with a warning so a single bad row never takes the bot down.
    """
    catalog: list[CatalogItem] = []
    for record in records or []:
        if isinstance(record, CatalogItem):
            catalog.append(record)
            continue
        try:
            catalog.append(CatalogItem.model_validate(record))
        except ValidationError as e:
            logger.warning("Skipping invalid catalog record %r: %s", record.get("name") if isinstance(record, dict) else record, e)
    return catalog


class SizeOption(BaseModel):
    """A (label, price) pair offered when the customer must pick a size."""
    label: str
    price: float


# =============================================================================
# Order Candidates
# =============================================================================

class CandidateMatch(BaseModel):
    """A catalog-grounded item that has not been committed yet."""
    item: CatalogItem
    confidence: Confidence
    size: str | None = None
    quantity: int | Literal["all"] = 1


class PendingSizeRequest(BaseModel):
    """An order candidate fully identified except for its priced size."""
    item: CatalogItem
    quantity: int = 1
    available_sizes: list[SizeOption]

    def labels(self) -> list[str]:
        return [option.label for option in self.available_sizes]


# =============================================================================
# Short-lived Conversation Context
# =============================================================================

class SuggestionContext(BaseModel):
    """Items the bot just mentioned, so "add that" can resolve against them."""
    items: list[CatalogItem]
    created_at: float
    suggested_quantity: int | None = None
    suggested_size: str | None = None

    def is_active(self, now: float, ttl: float) -> bool:
        return (now - self.created_at) < ttl


class PairingContext(BaseModel):
    """A "what goes with X" question; X is bundled when a suggestion is accepted."""
    main_item_name: str
    created_at: float

    def is_active(self, now: float, ttl: float) -> bool:
        return (now - self.created_at) < ttl


# =============================================================================
# Order
# =============================================================================

class OrderStatus(str, Enum):
    """Lifecycle of the in-progress order."""
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


class OrderLine(BaseModel):
    """One (name, size) line of the order."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    name: str
    selected_size: str
    unit_price: float
    quantity: int = Field(default=1, gt=0)

    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def get_summary(self) -> str:
        """Get a summary description of this line, e.g. '2x Milk Tea (Large)'."""
        prefix = f"{self.quantity}x " if self.quantity > 1 else ""
        return f"{prefix}{self.name} ({self.selected_size})"


class CustomerInfo(BaseModel):
    """Customer details collected at checkout."""
    name: str | None = None
    notes: str | None = None


class Order(BaseModel):
    """Snapshot of the accumulated order."""
    lines: list[OrderLine] = Field(default_factory=list)
    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    total: float = 0.0
    estimated_prep_minutes: int = 0
    status: OrderStatus = OrderStatus.IN_PROGRESS
