"""
Tests for SessionManager: per-session isolation, superseded messages, and
order submission.

Run with: pytest tests/test_session.py -v
"""

import asyncio

import pytest

from cafe_bot.services.session import SessionManager
from cafe_bot.services.submission import OrderSubmissionError
from cafe_bot.tasks.models import OrderStatus
from tests.test_helpers import CATALOG_RECORDS, FakeClock, FakeEndpoint, order_json


class BlockingEndpoint(FakeEndpoint):
    """FakeEndpoint whose classify call waits until released."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def classify(self, request):
        self.entered.set()
        await self.release.wait()
        return await super().classify(request)


class RecordingSink:
    def __init__(self):
        self.submissions = []

    def submit(self, submission):
        self.submissions.append(submission)
        return {"id": "ord_1"}


class FailingSink:
    def __init__(self, error):
        self.error = error

    def submit(self, submission):
        raise self.error


def make_manager(**kwargs):
    kwargs.setdefault("clock", FakeClock())
    return SessionManager(CATALOG_RECORDS, **kwargs)


# =============================================================================
# Messages
# =============================================================================

class TestHandleMessage:
    """Tests for routing messages to sessions."""

    def test_sessions_are_isolated(self):
        manager = make_manager()

        async def scenario():
            await manager.handle_message("a", "2 large milk tea")
            await manager.handle_message("b", "cheese burger")

        asyncio.run(scenario())
        assert [line.name for line in manager.get_context("a").accumulator.lines] == ["Milk Tea"]
        assert [line.name for line in manager.get_context("b").accumulator.lines] == ["Cheese Burger"]

    def test_superseded_message_is_discarded(self):
        endpoint = BlockingEndpoint(classify_reply=order_json(("Milk Tea", 1, "Large", "high")))
        manager = make_manager(endpoint=endpoint)

        async def scenario():
            first = asyncio.create_task(manager.handle_message("s1", "one large milk tea please"))
            await endpoint.entered.wait()
            second = await manager.handle_message("s1", "show my cart")
            return await first, second

        first, second = asyncio.run(scenario())
        assert first is None
        assert "don't have any items" in second.message
        ctx = manager.get_context("s1")
        assert ctx.accumulator.is_empty()
        # Only the second message made it into the history
        assert [h["content"] for h in ctx.history if h["role"] == "user"] == ["show my cart"]

    def test_caller_cancellation_propagates(self):
        endpoint = BlockingEndpoint()
        manager = make_manager(endpoint=endpoint)

        async def scenario():
            task = asyncio.create_task(manager.handle_message("s1", "one large milk tea please"))
            await endpoint.entered.wait()
            task.cancel()
            await task

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(scenario())
        assert manager.get_context("s1").history == []

    def test_update_catalog(self):
        manager = make_manager()
        manager.update_catalog([{"name": "Iced Tea", "pricing": {"Regular": 60}}])
        asyncio.run(manager.handle_message("s1", "cheese burger"))
        assert manager.get_context("s1").accumulator.is_empty()

    def test_end_session(self):
        manager = make_manager()
        asyncio.run(manager.handle_message("s1", "2 large milk tea"))
        manager.end_session("s1")
        assert manager.get_context("s1").accumulator.is_empty()


# =============================================================================
# Submission
# =============================================================================

class TestSubmitOrder:
    """Tests for SessionManager.submit_order."""

    def test_successful_submission(self):
        sink = RecordingSink()
        manager = make_manager(sink=sink)
        asyncio.run(manager.handle_message("s1", "2 large milk tea"))

        submission = asyncio.run(manager.submit_order("s1", customer_name="Ana", notes="less ice"))

        assert sink.submissions == [submission]
        assert submission.items[0].name == "Milk Tea"
        assert submission.items[0].selected_size == "Large"
        assert submission.items[0].quantity == 2
        assert submission.totals.total == 280
        assert submission.customer_name == "Ana"
        assert submission.notes == "less ice"
        assert submission.estimated_prep_minutes >= 6

        accumulator = manager.get_context("s1").accumulator
        assert accumulator.is_empty()
        assert accumulator.status == OrderStatus.SUBMITTED

    def test_sink_error_leaves_order_intact(self):
        manager = make_manager(sink=FailingSink(OrderSubmissionError("backend down", status_code=503)))
        asyncio.run(manager.handle_message("s1", "2 large milk tea"))

        with pytest.raises(OrderSubmissionError) as exc_info:
            asyncio.run(manager.submit_order("s1"))

        assert exc_info.value.status_code == 503
        accumulator = manager.get_context("s1").accumulator
        assert accumulator.total() == 280
        assert accumulator.status == OrderStatus.IN_PROGRESS

    def test_unexpected_sink_error_is_wrapped(self):
        manager = make_manager(sink=FailingSink(ValueError("bad payload")))
        asyncio.run(manager.handle_message("s1", "cheese burger"))

        with pytest.raises(OrderSubmissionError, match="bad payload"):
            asyncio.run(manager.submit_order("s1"))
        assert not manager.get_context("s1").accumulator.is_empty()

    def test_empty_order(self):
        manager = make_manager(sink=RecordingSink())
        manager.get_context("s1")
        with pytest.raises(OrderSubmissionError, match="no items"):
            asyncio.run(manager.submit_order("s1"))

    def test_unknown_session(self):
        manager = make_manager(sink=RecordingSink())
        with pytest.raises(OrderSubmissionError, match="unknown session"):
            asyncio.run(manager.submit_order("nope"))

    def test_no_sink_configured(self):
        manager = make_manager()
        asyncio.run(manager.handle_message("s1", "cheese burger"))
        with pytest.raises(OrderSubmissionError, match="no order sink"):
            asyncio.run(manager.submit_order("s1"))
