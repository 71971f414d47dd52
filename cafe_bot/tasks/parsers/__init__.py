"""
Parsers Package.

This package contains the parsing functions and constants used by the
state machine for interpreting user input.

Exports:
- Language detection: Tagalog/English marker scan
- Constants: Keyword tables, size buckets, compiled patterns
- Deterministic Parsers: Order text, yes/no, commands, suggestion references
"""

from .language import detect_language

from .constants import (
    WORD_TO_NUM,
    SIZE_SYNONYMS,
    SIZE_BUCKETS,
)

from .deterministic import (
    Command,
    parse_order_text,
    split_segments,
    extract_quantity,
    extract_size_token,
    parse_yes_no,
    is_cancel,
    parse_command,
    is_non_order,
    has_order_indicator,
    should_skip_classification,
    is_confirmation,
    is_pricing_query,
    extract_alternative_target,
    wants_all,
    extract_position,
    extract_pairing_target,
)

__all__ = [
    # Language
    "detect_language",
    # Constants
    "WORD_TO_NUM",
    "SIZE_SYNONYMS",
    "SIZE_BUCKETS",
    # Deterministic parsers
    "Command",
    "parse_order_text",
    "split_segments",
    "extract_quantity",
    "extract_size_token",
    "parse_yes_no",
    "is_cancel",
    "parse_command",
    "is_non_order",
    "has_order_indicator",
    "should_skip_classification",
    "is_confirmation",
    "is_pricing_query",
    "extract_alternative_target",
    "wants_all",
    "extract_position",
    "extract_pairing_target",
]
