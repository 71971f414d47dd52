"""
Order Accumulator.

Holds the lines of the in-progress order. Lines are keyed by
(name, selected size): adding the same item and size again merges into the
existing line. Every mutation keeps quantities positive and sizes priced.
"""

import logging
import random

from .models import CatalogItem, CustomerInfo, Order, OrderLine, OrderStatus

logger = logging.getLogger(__name__)


class OrderAccumulator:
    """The in-progress order for one session."""

    BASE_PREP_MINUTES = 5
    LARGE_ORDER_UNITS = 5
    LARGE_ORDER_EXTRA_MINUTES = 2
    MAX_JITTER_MINUTES = 3

    def __init__(self, rng: random.Random | None = None):
        self.lines: list[OrderLine] = []
        self.customer = CustomerInfo()
        self.status = OrderStatus.IN_PROGRESS
        self._rng = rng or random.Random()

    def _find_line(self, name: str, size: str) -> OrderLine | None:
        for line in self.lines:
            if line.name == name and line.selected_size == size:
                return line
        return None

    def _line_by_id(self, line_id: str) -> OrderLine | None:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def add(self, item: CatalogItem, size: str, quantity: int = 1) -> OrderLine | None:
        """
        Add an item to the order, merging with an existing (name, size) line.

        Args:
            item: Catalog item being ordered
            size: Pricing label; must exist in item.pricing
            quantity: Units to add; must be positive

        Returns:
            The new or merged line, or None if nothing was added
        """
        if quantity <= 0:
            logger.warning("Refusing to add %s with non-positive quantity %s", item.name, quantity)
            return None

        price = item.price_for(size)
        if price is None:
            logger.warning("Size %r is not priced for %s; skipping line", size, item.name)
            return None

        if not self.lines:
            self.status = OrderStatus.IN_PROGRESS

        line = self._find_line(item.name, size)
        if line:
            line.quantity += quantity
            logger.debug("Merged %d more %s (%s), now %d", quantity, item.name, size, line.quantity)
            return line

        line = OrderLine(name=item.name, selected_size=size, unit_price=price, quantity=quantity)
        self.lines.append(line)
        logger.debug("Added line %s: %s", line.id, line.get_summary())
        return line

    def update_quantity(self, line_id: str, delta: int) -> OrderLine | None:
        """
        Change a line's quantity by delta. A result of zero or less removes the line.

        Returns:
            The updated line, or None if it was removed or not found
        """
        line = self._line_by_id(line_id)
        if line is None:
            return None

        new_quantity = line.quantity + delta
        if new_quantity <= 0:
            self.remove(line_id)
            return None
        line.quantity = new_quantity
        return line

    def remove(self, line_id: str) -> bool:
        """Remove a line by id. Returns True if a line was removed."""
        before = len(self.lines)
        self.lines = [line for line in self.lines if line.id != line_id]
        return len(self.lines) < before

    def clear(self) -> None:
        self.lines = []

    def total(self) -> float:
        return sum(line.line_total() for line in self.lines)

    def item_count(self) -> int:
        """Number of distinct lines."""
        return len(self.lines)

    def total_units(self) -> int:
        return sum(line.quantity for line in self.lines)

    def is_empty(self) -> bool:
        return not self.lines

    def has_item_named(self, name: str) -> bool:
        """True if any line is for this item, in any size (case-insensitive)."""
        target = name.lower().strip()
        return any(line.name.lower() == target for line in self.lines)

    def estimate_prep_minutes(self) -> int:
        """
        Estimate preparation time.

        5 minutes base, plus 1 per distinct item, plus 2 for orders over
        5 units, plus 0-3 minutes of jitter.
        """
        distinct_names = {line.name for line in self.lines}
        minutes = self.BASE_PREP_MINUTES + len(distinct_names)
        if self.total_units() > self.LARGE_ORDER_UNITS:
            minutes += self.LARGE_ORDER_EXTRA_MINUTES
        minutes += self._rng.randint(0, self.MAX_JITTER_MINUTES)
        return minutes

    def to_order(self) -> Order:
        """Snapshot the accumulator as an Order."""
        return Order(
            lines=[line.model_copy() for line in self.lines],
            customer=self.customer.model_copy(),
            total=self.total(),
            estimated_prep_minutes=self.estimate_prep_minutes(),
            status=self.status,
        )
