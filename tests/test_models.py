"""
Tests for the catalog/order models and message formatting helpers.

Run with: pytest tests/test_models.py -v
"""

import pytest
from pydantic import ValidationError

from cafe_bot.tasks.message_builder import MessageBuilder
from cafe_bot.tasks.models import (
    CatalogItem,
    Confidence,
    Language,
    OrderLine,
    SuggestionContext,
    load_catalog,
    weaker_confidence,
)


class TestCatalogItem:
    """Tests for catalog validation."""

    def test_camel_case_fields(self):
        item = CatalogItem.model_validate({
            "name": "Milk Tea",
            "subCategory": "Milk Tea",
            "isAvailable": False,
            "pricing": {"Medium": 120, "Large": 140},
        })
        assert item.sub_category == "Milk Tea"
        assert item.available is False
        assert item.sizes() == ["Medium", "Large"]
        assert item.first_size() == "Medium"
        assert item.price_for("Large") == 140
        assert item.price_for("Small") is None

    def test_empty_pricing_rejected(self):
        with pytest.raises(ValidationError):
            CatalogItem(name="Air", pricing={})

    def test_load_catalog_skips_bad_records(self):
        catalog = load_catalog([
            {"name": "Iced Tea", "pricing": {"Regular": 60}},
            {"name": "Nothing", "pricing": {}},
            {"pricing": {"Regular": 10}},
        ])
        assert [item.name for item in catalog] == ["Iced Tea"]


class TestConfidence:
    """Tests for confidence tiers."""

    @pytest.mark.parametrize("value,expected", [
        ("High", Confidence.HIGH),
        (" low ", Confidence.LOW),
        ("sure", Confidence.MEDIUM),
        (None, Confidence.MEDIUM),
    ])
    def test_parse(self, value, expected):
        assert Confidence.parse(value) == expected

    def test_weaker(self):
        assert weaker_confidence(Confidence.HIGH, Confidence.LOW) == Confidence.LOW
        assert weaker_confidence(Confidence.MEDIUM, Confidence.HIGH) == Confidence.MEDIUM


class TestOrderLine:
    """Tests for order line invariants."""

    def test_quantity_must_stay_positive(self):
        line = OrderLine(name="Milk Tea", selected_size="Large", unit_price=140, quantity=2)
        with pytest.raises(ValidationError):
            line.quantity = 0

    def test_summary(self):
        assert OrderLine(name="Iced Tea", selected_size="Regular", unit_price=60).get_summary() == "Iced Tea (Regular)"


class TestSuggestionContext:
    """Tests for lazy expiry."""

    @pytest.mark.parametrize("now,active", [(0, True), (299.9, True), (300, False), (301, False)])
    def test_is_active(self, item, now, active):
        suggestion = SuggestionContext(items=[item("Iced Tea")], created_at=0)
        assert suggestion.is_active(now, ttl=300) is active


class TestMessageBuilder:
    """Tests for price and list formatting."""

    @pytest.mark.parametrize("amount,expected", [(140, "₱140"), (52.5, "₱52.50"), (0, "₱0")])
    def test_format_price(self, amount, expected):
        assert MessageBuilder().format_price(amount) == expected

    @pytest.mark.parametrize("names,language,expected", [
        ([], Language.ENGLISH, ""),
        (["A"], Language.ENGLISH, "A"),
        (["A", "B"], Language.ENGLISH, "A and B"),
        (["A", "B", "C"], Language.TAGALOG, "A, B at C"),
    ])
    def test_join_names(self, names, language, expected):
        assert MessageBuilder().join_names(names, language) == expected
