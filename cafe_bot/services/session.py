"""
Session Management Service for Cafe Bot
=======================================

This module owns one ConversationContext per chat session and runs each
incoming message through the order state machine.

Concurrency Model:
------------------
Each message runs as an asyncio.Task keyed by session id. A new message for
a session cancels that session's outstanding task first; the cancelled
call's result is discarded and handle_message returns None for it. The state
machine mutates nothing before its LLM calls, so a superseded message leaves
the session exactly as it was. Nothing is retried.

Sessions never share mutable state. The catalog snapshot is read-only and
shared by every session.

Usage:
------
    from cafe_bot.services.session import SessionManager

    manager = SessionManager(catalog, endpoint=OpenAICompletionEndpoint())
    result = await manager.handle_message("abc123", "2 large milk tea")
    if result and result.checkout_requested:
        submission = await manager.submit_order("abc123", customer_name="Ana")
"""

import asyncio
import logging
import random
import time
from typing import Callable

from ..llm_client import CompletionEndpoint
from ..tasks.accumulator import OrderAccumulator
from ..tasks.models import CatalogItem, OrderStatus, load_catalog
from ..tasks.schemas import StateMachineResult
from ..tasks.state_machine import ConversationContext, OrderStateMachine
from .submission import OrderSink, OrderSubmission, OrderSubmissionError, build_submission

logger = logging.getLogger(__name__)


class SessionManager:
    """Routes messages to per-session conversation state."""

    def __init__(
        self,
        catalog: list[CatalogItem | dict],
        endpoint: CompletionEndpoint | None = None,
        sink: OrderSink | None = None,
        clock: Callable[[], float] = time.monotonic,
        rng_factory: Callable[[], random.Random] = random.Random,
    ):
        self.machine = OrderStateMachine(load_catalog(catalog), endpoint=endpoint, clock=clock)
        self.sink = sink
        self._rng_factory = rng_factory
        self._sessions: dict[str, ConversationContext] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    def get_context(self, session_id: str) -> ConversationContext:
        """Get the session's context, creating an empty one on first use."""
        ctx = self._sessions.get(session_id)
        if ctx is None:
            ctx = ConversationContext(accumulator=OrderAccumulator(rng=self._rng_factory()))
            self._sessions[session_id] = ctx
            logger.debug("Created session %s", session_id)
        return ctx

    def update_catalog(self, catalog: list[CatalogItem | dict]) -> None:
        """Swap in a refreshed catalog snapshot for all sessions."""
        items = load_catalog(catalog)
        self.machine.update_catalog(items)
        logger.info("Catalog updated: %d item(s)", len(items))

    async def handle_message(self, session_id: str, text: str) -> StateMachineResult | None:
        """
        Process a message for a session.

        Returns:
            The state machine result, or None if a newer message for the same
            session superseded this one before it finished
        """
        previous = self._tasks.get(session_id)
        if previous is not None and not previous.done():
            logger.info("Cancelling superseded message for session %s", session_id)
            previous.cancel()

        ctx = self.get_context(session_id)
        task = asyncio.create_task(self.machine.process(text, ctx))
        self._tasks[session_id] = task

        try:
            return await task
        except asyncio.CancelledError:
            if self._tasks.get(session_id) is task:
                # Our caller was cancelled, not superseded
                raise
            logger.debug("Discarded result of superseded message for session %s", session_id)
            return None
        finally:
            if self._tasks.get(session_id) is task:
                del self._tasks[session_id]

    async def submit_order(
        self,
        session_id: str,
        customer_name: str | None = None,
        notes: str | None = None,
    ) -> OrderSubmission:
        """
        Submit the session's order through the configured sink.

        On success the order is marked submitted and the cart is emptied. On
        failure OrderSubmissionError is raised and the in-progress order is
        left untouched.
        """
        ctx = self._sessions.get(session_id)
        if ctx is None:
            raise OrderSubmissionError(f"unknown session {session_id}")
        if ctx.accumulator.is_empty():
            raise OrderSubmissionError("order has no items")
        if self.sink is None:
            raise OrderSubmissionError("no order sink configured")

        order = ctx.accumulator.to_order()
        order.customer.name = customer_name or order.customer.name
        order.customer.notes = notes or order.customer.notes
        submission = build_submission(order)

        try:
            await asyncio.to_thread(self.sink.submit, submission)
        except OrderSubmissionError:
            raise
        except Exception as e:
            logger.error("Order sink failed for session %s: %s", session_id, e)
            raise OrderSubmissionError(str(e)) from e

        ctx.accumulator.customer = order.customer
        ctx.accumulator.clear()
        ctx.accumulator.status = OrderStatus.SUBMITTED
        logger.info("Submitted order for session %s (%d item(s))", session_id, len(submission.items))
        return submission

    def end_session(self, session_id: str) -> None:
        """Drop a session, cancelling any message still in flight."""
        task = self._tasks.pop(session_id, None)
        if task is not None and not task.done():
            task.cancel()
        self._sessions.pop(session_id, None)
