import random

import pytest

from cafe_bot.tasks.accumulator import OrderAccumulator
from cafe_bot.tasks.models import CatalogItem, load_catalog
from cafe_bot.tasks.state_machine import ConversationContext, OrderStateMachine
from tests.test_helpers import CATALOG_RECORDS, FakeClock


@pytest.fixture
def catalog() -> list[CatalogItem]:
    return load_catalog(CATALOG_RECORDS)


@pytest.fixture
def item(catalog):
    """Look up a catalog item by name."""
    by_name = {entry.name: entry for entry in catalog}
    return lambda name: by_name[name]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def machine(catalog, clock) -> OrderStateMachine:
    """State machine with no endpoint (deterministic parsing)."""
    return OrderStateMachine(catalog, endpoint=None, clock=clock)


@pytest.fixture
def ctx() -> ConversationContext:
    return ConversationContext(accumulator=OrderAccumulator(rng=random.Random(42)))
