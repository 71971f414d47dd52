"""
AI Intent Classification.

Wraps the completion endpoint for the open-input branch of the conversation:
deciding whether an utterance places an order, grounding whatever items the
model returns against the real catalog, and producing free-text replies when
it does not. With no endpoint configured the same questions are answered by
keyword heuristics and the deterministic parser.

Model output is never trusted: every item is re-matched and re-sized, and
anything malformed degrades to "no order intent".
"""

import json
import logging
import re

from pydantic import ValidationError

from ..llm_client import (
    SYSTEM_PROMPT_CLASSIFICATION,
    SYSTEM_PROMPT_GENERATION,
    CompletionEndpoint,
    CompletionRequest,
    build_catalog_context,
)
from .menu_lookup import MenuLookup
from .models import Confidence, weaker_confidence
from .parsers import has_order_indicator, is_non_order, parse_order_text, should_skip_classification
from .schemas import (
    ClassifiedItem,
    ClassifierResponse,
    Grounding,
    NeedsSelection,
    NeedsSize,
    NoMatch,
    Resolved,
)
from .size_resolver import SizeResolver

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def parse_classifier_response(raw: str | None) -> ClassifierResponse:
    """
    Parse a classifier reply that may be plain JSON, fenced JSON, or chatter
    around a JSON object.

    Args:
        raw: Raw text returned by the endpoint

    Returns:
        ClassifierResponse; has_order_intent is False when nothing usable was found
    """
    if not raw or not raw.strip():
        logger.warning("Empty classifier response")
        return ClassifierResponse()

    text = raw.strip()
    fenced = CODE_FENCE_PATTERN.search(text)
    if fenced:
        text = fenced.group(1).strip()

    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        logger.warning("Classifier response has no JSON object: %s", raw[:200])
        return ClassifierResponse()

    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse classifier response as JSON: %s", str(e))
        logger.debug("Raw classifier response: %s", raw[:500])
        return ClassifierResponse()

    try:
        return ClassifierResponse.model_validate(data)
    except ValidationError as e:
        logger.warning("Classifier response failed validation: %s", e)
        return ClassifierResponse()


class IntentClassifier:
    """
    Decides order intent for open input and grounds the result.
    """

    def __init__(
        self,
        lookup: MenuLookup,
        resolver: SizeResolver,
        endpoint: CompletionEndpoint | None = None,
    ):
        self.lookup = lookup
        self.resolver = resolver
        self.endpoint = endpoint

    @property
    def has_endpoint(self) -> bool:
        return self.endpoint is not None

    def _request(self, system_prompt: str, text: str, history: list[dict]) -> CompletionRequest:
        return CompletionRequest(
            system_prompt=system_prompt,
            utterance=text,
            context=build_catalog_context(self.lookup.catalog),
            history=list(history),
        )

    async def classify(self, text: str, history: list[dict]) -> ClassifierResponse:
        """
        Classify an utterance.

        Uses the endpoint when one is configured and falls back to the
        deterministic heuristics otherwise. Transport and parse failures are
        logged and reported as no order intent. Cancellation propagates.
        """
        if not self.has_endpoint:
            return self.detect_deterministic(text)

        if should_skip_classification(text):
            logger.debug("Skipping classification for %r", text)
            return ClassifierResponse()

        try:
            raw = await self.endpoint.classify(self._request(SYSTEM_PROMPT_CLASSIFICATION, text, history))
        except Exception as e:
            logger.error("Classifier call failed: %s", e)
            return ClassifierResponse()

        response = parse_classifier_response(raw)
        logger.debug(
            "Classified %r: intent=%s items=%d",
            text, response.has_order_intent, len(response.items),
        )
        return response

    def detect_deterministic(self, text: str) -> ClassifierResponse:
        """
        Keyword heuristics for order intent, used when no endpoint is configured.

        An utterance is an order when it is not a question about drinks,
        pairings or prices, at least one segment matches the catalog, and it
        either carries an order cue ("i want", "add", "sige") or consists only
        of item names.
        """
        if is_non_order(text):
            return ClassifierResponse()

        parsed = parse_order_text(text)
        items = []
        for segment in parsed:
            if self.lookup.find_best_match(segment.name) is None:
                continue
            items.append(ClassifiedItem(
                name=segment.name,
                quantity=segment.quantity,
                size=segment.size,
                confidence=Confidence.HIGH,
            ))

        if not items:
            return ClassifierResponse()

        only_item_names = len(items) == len(parsed)
        if not (has_order_indicator(text) or only_item_names):
            return ClassifierResponse()

        return ClassifierResponse(has_order_intent=True, confidence=Confidence.HIGH, items=items)

    def ground(self, response: ClassifierResponse) -> list[Grounding]:
        """
        Re-ground every classified item through the matcher and size resolver.

        The effective confidence is the weaker of the match tier and the
        classifier's own confidence for that item.
        """
        if not response.has_order_intent:
            return []

        groundings: list[Grounding] = []
        for classified in response.items:
            match = self.lookup.find_best_match(classified.name)
            if match is None:
                logger.debug("Dropping unmatched item %r", classified.name)
                groundings.append(NoMatch(classified.name))
                continue

            confidence = weaker_confidence(match.confidence, classified.confidence)
            resolution = self.resolver.resolve(classified.size, match.item)
            if isinstance(resolution, NeedsSelection):
                groundings.append(NeedsSize(match.item, classified.quantity, resolution.options, confidence))
            else:
                groundings.append(Resolved(match.item, resolution.size, classified.quantity, confidence))
        return groundings

    async def generate_reply(self, text: str, history: list[dict]) -> str | None:
        """
        Get a free-text reply from the endpoint.

        Returns:
            The reply, or None when there is no endpoint or the call failed
        """
        if not self.has_endpoint:
            return None
        try:
            reply = await self.endpoint.generate(self._request(SYSTEM_PROMPT_GENERATION, text, history))
        except Exception as e:
            logger.error("Generation call failed: %s", e)
            return None
        return reply or None
