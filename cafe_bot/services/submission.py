"""
Order submission at checkout.

Builds the wire payload for a finalized order and hands it to an order sink.
The payload uses the camelCase keys the order backend expects:

    {
      "items": [{"name": ..., "price": ..., "quantity": ..., "selectedSize": ...}],
      "totals": {"subtotal": ..., "discount": 0, "total": ...},
      "paymentMethod": "pending",
      "orderType": "chatbot",
      "status": "pending",
      "customerName": ...,
      "estimatedPrepMinutes": ...
    }
"""

import logging
from typing import Any, Protocol

import requests
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .. import config
from ..tasks.models import Order

logger = logging.getLogger(__name__)


class OrderSubmissionError(Exception):
    """Raised when a finalized order cannot be submitted."""

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.status_code = status_code
        message = f"Order submission failed: {reason}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmissionLine(_CamelModel):
    name: str
    price: float
    quantity: int
    selected_size: str


class SubmissionTotals(_CamelModel):
    subtotal: float
    discount: float = 0.0
    total: float


class OrderSubmission(_CamelModel):
    """Finalized order payload, serialized with model_dump(by_alias=True)."""
    items: list[SubmissionLine]
    totals: SubmissionTotals
    payment_method: str = Field(default=config.PAYMENT_METHOD_PLACEHOLDER)
    order_type: str = Field(default=config.ORDER_TYPE)
    status: str = "pending"
    customer_name: str | None = None
    estimated_prep_minutes: int = 0
    notes: str | None = None


def build_submission(order: Order) -> OrderSubmission:
    """Assemble the submission payload from an order snapshot."""
    items = [
        SubmissionLine(
            name=line.name,
            price=line.unit_price,
            quantity=line.quantity,
            selected_size=line.selected_size,
        )
        for line in order.lines
    ]
    subtotal = sum(line.line_total() for line in order.lines)
    return OrderSubmission(
        items=items,
        totals=SubmissionTotals(subtotal=subtotal, discount=0.0, total=subtotal),
        customer_name=order.customer.name,
        estimated_prep_minutes=order.estimated_prep_minutes,
        notes=order.customer.notes,
    )


class OrderSink(Protocol):
    """Receives finalized orders. Raises OrderSubmissionError on failure."""

    def submit(self, submission: OrderSubmission) -> dict[str, Any] | None:
        ...


class HttpOrderSink:
    """Posts finalized orders as JSON to the order backend."""

    def __init__(self, url: str | None = None, timeout: float | None = None):
        self.url = url or config.ORDER_SUBMIT_URL
        self.timeout = config.ORDER_SUBMIT_TIMEOUT if timeout is None else timeout
        if not self.url:
            raise OrderSubmissionError("ORDER_SUBMIT_URL is not configured")

    def submit(self, submission: OrderSubmission) -> dict[str, Any] | None:
        payload = submission.model_dump(by_alias=True)
        logger.debug("Posting order with %d item(s) to %s", len(payload["items"]), self.url)

        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error("Order backend rejected submission: %s", e)
            raise OrderSubmissionError(str(e), status_code=status) from e
        except requests.RequestException as e:
            logger.error("Order submission request failed: %s", e)
            raise OrderSubmissionError(str(e)) from e

        logger.info("Order submitted (%d item(s))", len(payload["items"]))
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("Order backend returned a non-JSON body")
            return None
