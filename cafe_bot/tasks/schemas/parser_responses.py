"""
Parser Response Schemas.

Pydantic models for the output of the deterministic order parser and of the
AI intent classifier. The classifier models accept the camelCase keys the
model is prompted to emit and tolerate missing or loosely-typed fields.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import Confidence


class ParsedOrderItem(BaseModel):
    """One order segment extracted from an utterance."""
    name: str = Field(description="Item name with quantity, size and filler words removed")
    quantity: int = Field(default=1, description="Requested quantity, 1 when unstated")
    size: str | None = Field(
        default=None,
        description="Normalized size keyword (small, medium, large, hot, cold, float) or None",
    )


class ClassifiedItem(BaseModel):
    """An item the classifier believes the customer is ordering."""
    name: str = Field(description="Item name as the customer said it or as it appears on the menu")
    quantity: int = Field(default=1, description="How many of this item")
    size: str | None = Field(default=None, description="Requested size, or null if not mentioned")
    confidence: Confidence = Field(
        default=Confidence.MEDIUM,
        description="How sure the classifier is that this item is being ordered",
    )

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> int:
        try:
            quantity = int(value)
        except (TypeError, ValueError):
            return 1
        return quantity if quantity > 0 else 1

    @field_validator("size", mode="before")
    @classmethod
    def _blank_size_is_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> Confidence:
        return Confidence.parse(value)


class ClassifierResponse(BaseModel):
    """Parsed classification of a single utterance."""

    model_config = ConfigDict(populate_by_name=True)

    has_order_intent: bool = Field(
        default=False,
        alias="hasOrderIntent",
        description="True if the customer is placing an order",
    )
    confidence: Confidence = Field(
        default=Confidence.LOW,
        description="Overall confidence in the order intent",
    )
    items: list[ClassifiedItem] = Field(default_factory=list)

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> Confidence:
        return Confidence.parse(value, default=Confidence.LOW)

    @field_validator("items", mode="before")
    @classmethod
    def _drop_nameless_items(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        kept = []
        for entry in value:
            if isinstance(entry, ClassifiedItem):
                kept.append(entry)
            elif isinstance(entry, dict) and entry.get("name"):
                kept.append(entry)
        return kept
