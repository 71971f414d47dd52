"""
Deterministic Parsers.

Regex and keyword-table parsing for order text, answers to clarification
questions, commands, and suggestion references. Nothing here raises on odd
input: anything unrecognized comes back as a default (None, 1, or an empty
list) and the caller decides what to do.
"""

import logging
import re
from typing import Literal

from ..schemas.parser_responses import ParsedOrderItem
from .constants import (
    ALL_QUANTITY_PATTERN,
    AFFIRMATIVE_PATTERN,
    AFFIRMATIVE_PHRASE_PATTERN,
    ALTERNATIVE_TARGET_PATTERN,
    ARTICLES,
    CANCEL_ORDER_PATTERNS,
    CANCEL_PATTERN,
    CHECKOUT_PATTERNS,
    CONFIRMATION_PATTERN,
    NEGATIVE_PATTERN,
    NON_ORDER_PATTERNS,
    ORDER_INDICATORS,
    ORDER_PHRASES,
    PAIRING_PATTERN,
    POSITIONAL_PATTERN,
    POSITIONAL_WORDS,
    PRICING_PATTERN,
    QUANTITY_DIGITS_PATTERN,
    QUANTITY_WORD_PATTERN,
    SHOW_CART_PATTERNS,
    SIZE_KEYWORD_PATTERN,
    SIZE_SYNONYMS,
    START_ORDER_PATTERNS,
    WORD_TO_NUM,
)

logger = logging.getLogger(__name__)

SEGMENT_SPLIT_PATTERN = re.compile(r"\s+and\s+|,", re.IGNORECASE)
TRAILING_FILLER_PATTERN = re.compile(r"\s+(?:please|po|thanks|thank\s+you)$", re.IGNORECASE)
PUNCTUATION_PATTERN = re.compile(r"[?!.;:]+")

Command = Literal["show_cart", "cancel_order", "checkout", "start_order"]


# =============================================================================
# Token Extraction
# =============================================================================

def _find_quantity(text: str) -> tuple[int, tuple[int, int]] | None:
    """Locate the first quantity token, digits before spelled-out words."""
    match = QUANTITY_DIGITS_PATTERN.search(text)
    if match:
        return int(match.group()), match.span()
    match = QUANTITY_WORD_PATTERN.search(text)
    if match:
        return WORD_TO_NUM[match.group(1).lower()], match.span()
    return None


def extract_quantity(text: str) -> int | None:
    """Extract quantity from text like '2 milk tea' or 'three lattes'."""
    found = _find_quantity(text or "")
    return found[0] if found else None


def _find_size(text: str) -> tuple[str, tuple[int, int]] | None:
    match = SIZE_KEYWORD_PATTERN.search(text)
    if match:
        return SIZE_SYNONYMS[match.group(1).lower()], match.span()
    return None


def extract_size_token(text: str) -> str | None:
    """Extract a canonical size (small, medium, large, hot, cold, float) from text."""
    found = _find_size(text or "")
    return found[0] if found else None


def _remove_span(text: str, span: tuple[int, int]) -> str:
    return text[:span[0]] + " " + text[span[1]:]


def _strip_order_phrases(name: str) -> str:
    """Remove leading "i want", "can i get", "please" ... and a leading article."""
    changed = True
    while changed and name:
        changed = False
        for phrase in ORDER_PHRASES:
            if name == phrase:
                return ""
            if name.startswith(phrase + " "):
                name = name[len(phrase) + 1:].lstrip()
                changed = True
                break

    words = name.split(" ", 1)
    if words[0] in ARTICLES:
        name = words[1] if len(words) > 1 else ""
    return name


def split_segments(text: str) -> list[str]:
    """Split an utterance into order segments on ' and ' and commas."""
    return [segment.strip() for segment in SEGMENT_SPLIT_PATTERN.split(text or "") if segment.strip()]


def _parse_segment(segment: str) -> ParsedOrderItem | None:
    working = PUNCTUATION_PATTERN.sub(" ", segment.lower())

    quantity = 1
    found_quantity = _find_quantity(working)
    if found_quantity:
        quantity, span = found_quantity
        working = _remove_span(working, span)

    size = None
    found_size = _find_size(working)
    if found_size:
        size, span = found_size
        working = _remove_span(working, span)

    name = re.sub(r"\s+", " ", working).strip()
    name = TRAILING_FILLER_PATTERN.sub("", name)
    name = _strip_order_phrases(name).strip()

    if not name:
        return None
    return ParsedOrderItem(name=name, quantity=quantity, size=size)


def parse_order_text(text: str) -> list[ParsedOrderItem]:
    """
    Parse free text into order segments.

    "2 large milk tea and a cheeseburger" ->
        [ParsedOrderItem(name="milk tea", quantity=2, size="large"),
         ParsedOrderItem(name="cheeseburger", quantity=1, size=None)]

    Args:
        text: The raw utterance

    Returns:
        One ParsedOrderItem per non-empty segment that still has a name
    """
    items = []
    for segment in split_segments(text):
        parsed = _parse_segment(segment)
        if parsed is not None:
            items.append(parsed)
    logger.debug("Parsed %r into %d segment(s)", text, len(items))
    return items


# =============================================================================
# Yes / No / Cancel
# =============================================================================

def parse_yes_no(text: str) -> bool | None:
    """Return True for an affirmative answer, False for a negative one, None otherwise."""
    if not text:
        return None
    if CANCEL_PATTERN.search(text):
        return False
    if AFFIRMATIVE_PHRASE_PATTERN.search(text):
        return True
    if NEGATIVE_PATTERN.search(text):
        return False
    if AFFIRMATIVE_PATTERN.search(text):
        return True
    return None


def is_cancel(text: str) -> bool:
    return bool(text) and bool(CANCEL_PATTERN.search(text))


# =============================================================================
# Commands
# =============================================================================

def parse_command(text: str) -> Command | None:
    """
    Recognize a cart command.

    Cancel is checked before checkout so "cancel my order" never checks out.
    """
    text = (text or "").strip()
    if not text:
        return None
    if any(p.search(text) for p in CANCEL_ORDER_PATTERNS):
        return "cancel_order"
    if any(p.search(text) for p in SHOW_CART_PATTERNS):
        return "show_cart"
    if any(p.search(text) for p in CHECKOUT_PATTERNS):
        return "checkout"
    if any(p.search(text) for p in START_ORDER_PATTERNS):
        return "start_order"
    return None


# =============================================================================
# Order Detection
# =============================================================================

_ORDER_INDICATOR_PATTERNS = [
    re.compile(r"\b" + re.escape(indicator) + r"\b", re.IGNORECASE)
    for indicator in ORDER_INDICATORS
]


def is_non_order(text: str) -> bool:
    """True for questions about drinks, pairings or prices."""
    lowered = (text or "").lower()
    return any(pattern in lowered for pattern in NON_ORDER_PATTERNS)


def has_order_indicator(text: str) -> bool:
    return any(p.search(text or "") for p in _ORDER_INDICATOR_PATTERNS)


def should_skip_classification(text: str) -> bool:
    """
    Cheap pre-check before spending a classifier call.

    Very short text, questions, and what/how/why phrasing are never orders.
    """
    stripped = (text or "").strip()
    if len(stripped) < 3:
        return True
    if stripped.endswith("?"):
        return True
    return bool(re.search(r"\b(?:what|how|why)\b", stripped, re.IGNORECASE))


# =============================================================================
# Suggestion References
# =============================================================================

def is_confirmation(text: str) -> bool:
    """'add that', 'i'll take it', 'sige yan', a bare 'yes'."""
    return bool(text) and bool(CONFIRMATION_PATTERN.search(text.strip()))


def is_pricing_query(text: str) -> bool:
    return bool(text) and bool(PRICING_PATTERN.search(text))


def extract_alternative_target(text: str) -> str | None:
    """Item the customer wants something in place of ("similar to the milk tea" -> "milk tea")."""
    match = ALTERNATIVE_TARGET_PATTERN.search(text or "")
    return match.group(1).strip() if match else None


def wants_all(text: str) -> bool:
    return bool(text) and bool(ALL_QUANTITY_PATTERN.search(text))


def extract_position(text: str) -> int | None:
    """Map 'first' / 'pangalawa' / 'last' to a list index (negative from the end)."""
    match = POSITIONAL_PATTERN.search(text or "")
    if not match:
        return None
    return POSITIONAL_WORDS[match.group(1).lower()]


def extract_pairing_target(text: str) -> str | None:
    """
    Extract the main item from a pairing question.

    "what drinks go with the burger?" -> "burger"
    """
    match = PAIRING_PATTERN.search(text or "")
    if not match:
        return None
    target = match.group("item") or match.group("item_tl") or ""
    target = re.sub(r"\s+", " ", target).strip().lower()
    target = TRAILING_FILLER_PATTERN.sub("", target).strip()
    return target or None
