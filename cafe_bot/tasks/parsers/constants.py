"""
Parser Constants.

This module contains the keyword tables and compiled patterns used by the
deterministic parsers and the state machine for recognizing user intent in
English and Tagalog: quantities, sizes, filler phrases, yes/no answers,
commands, and suggestion references.
"""

import re

# =============================================================================
# Quantities
# =============================================================================

WORD_TO_NUM = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

QUANTITY_DIGITS_PATTERN = re.compile(r"\d+")
QUANTITY_WORD_PATTERN = re.compile(
    r"\b(" + "|".join(WORD_TO_NUM) + r")\b",
    re.IGNORECASE,
)

# "all of them", "lahat" - resolved against a suggestion's quantity
ALL_QUANTITY_PATTERN = re.compile(
    r"\ball\s+of\s+(?:them|those|these|it)\b|\bthem\s+all\b|\bboth\b|\blahat\b",
    re.IGNORECASE,
)


# =============================================================================
# Sizes
# =============================================================================

# Spoken size keyword -> canonical size
SIZE_SYNONYMS = {
    "small": "small",
    "sm": "small",
    "maliit": "small",
    "medium": "medium",
    "md": "medium",
    "regular": "medium",
    "large": "large",
    "lg": "large",
    "malaki": "large",
    "hot": "hot",
    "cold": "cold",
    "float": "float",
}

SIZE_KEYWORD_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(SIZE_SYNONYMS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)

# Canonical bucket -> catalog label variants that belong to it
SIZE_BUCKETS = {
    "small": ["Small", "S", "Sm", "Hot (S)"],
    "medium": ["Medium", "M", "Regular", "Hot (M)", "Cold (M)", "Float (M)"],
    "large": ["Large", "L", "Cold (L)", "Float (L)"],
    "hot": ["Hot (M)", "Hot (S)", "Hot"],
    "cold": ["Cold (M)", "Cold (L)", "Cold", "Iced"],
    "float": ["Float (M)", "Float (L)", "Float"],
}


# =============================================================================
# Order Phrasing
# =============================================================================

# Leading phrases stripped from an item segment, longest first
ORDER_PHRASES = sorted([
    "i want", "i wanna", "i'd like", "i would like", "i'll have", "ill have",
    "i'll get", "i will have", "can i get", "can i have", "could i get",
    "could i have", "may i have", "give me", "get me", "let me get", "let me have",
    "please", "add", "order", "and",
    "gusto ko ng", "gusto ko", "pabili ng", "pabili", "pa-order ng", "paorder ng",
    "isang", "ng",
], key=len, reverse=True)

ARTICLES = ("a", "an", "the", "some")

# Cues that an utterance is an order (deterministic path)
ORDER_INDICATORS = [
    "ok", "okay", "sure", "yes", "yeah", "yep",
    "i want", "i'd like", "i'll have", "give me", "can i get", "can i have",
    "order", "add", "get me", "please",
    "gusto ko", "pabili", "pa-order", "sige",
]

# Cues that an utterance is a question, never an order
NON_ORDER_PATTERNS = [
    "what drinks", "what beverages", "partner it with", "pair it with",
    "goes with", "go with", "how much", "price", "cost",
    "magkano", "presyo", "bagay sa",
]

# "something similar to X": group 1 is the item the customer wants replaced
ALTERNATIVE_TARGET_PATTERN = re.compile(
    r"\b(?:alternatives?\s+(?:to|for)|substitutes?\s+for|instead\s+of|similar\s+to|"
    r"other\s+options\s+(?:than|besides)|kapalit\s+ng)\s+(?:the\s+|a\s+|an\s+)?(.+?)[\s?!.]*$",
    re.IGNORECASE,
)


# =============================================================================
# Yes / No / Cancel
# =============================================================================

AFFIRMATIVE_PATTERN = re.compile(
    r"\b(?:yes|yeah|yep|yup|sure|ok|okay|correct|right|definitely|please do|"
    r"go ahead|sounds good|oo|opo|sige|tama|ayos)\b",
    re.IGNORECASE,
)

NEGATIVE_PATTERN = re.compile(
    r"\b(?:no|nope|nah|not|don'?t|hindi|ayaw|wag|huwag|hinde)\b",
    re.IGNORECASE,
)

# Affirmative phrases that contain a negation word
AFFIRMATIVE_PHRASE_PATTERN = re.compile(
    r"\b(?:why\s+not|no\s+problem|no\s+worries|not\s+a\s+problem)\b",
    re.IGNORECASE,
)

CANCEL_PATTERN = re.compile(
    r"\b(?:cancel|never\s*mind|forget\s+it|skip\s+it|stop|wag\s+na|huwag\s+na|"
    r"ayaw\s+ko\s+na|i-?cancel)\b",
    re.IGNORECASE,
)


# =============================================================================
# Commands
# =============================================================================

SHOW_CART_PATTERNS = [
    re.compile(r"\b(?:show|view|see|check)\s+(?:me\s+)?(?:my\s+|the\s+)?(?:cart|order)\b", re.IGNORECASE),
    re.compile(r"\bwhat'?s\s+in\s+my\s+(?:cart|order)\b", re.IGNORECASE),
    re.compile(r"\bwhat\s+is\s+in\s+my\s+(?:cart|order)\b", re.IGNORECASE),
    re.compile(r"^(?:my\s+)?cart\??$", re.IGNORECASE),
    re.compile(r"\bano\s+(?:ang\s+|na\s+)?order\s+ko\b", re.IGNORECASE),
]

CANCEL_ORDER_PATTERNS = [
    re.compile(r"\bcancel\s+(?:my\s+|the\s+|this\s+|whole\s+)*order\b", re.IGNORECASE),
    re.compile(r"\bcancel\s+(?:everything|it\s+all|all)\b", re.IGNORECASE),
    re.compile(r"\bstart\s+over\b", re.IGNORECASE),
    re.compile(r"\bi-?cancel\s+(?:mo\s+)?(?:na\s+)?(?:yung\s+|ang\s+)?order\b", re.IGNORECASE),
]

CHECKOUT_PATTERNS = [
    re.compile(r"\bcheck\s*-?out\b", re.IGNORECASE),
    re.compile(r"\bthat'?s\s+all\b", re.IGNORECASE),
    re.compile(r"\bthat\s+is\s+all\b", re.IGNORECASE),
    re.compile(r"\bi'?m\s+done\b", re.IGNORECASE),
    re.compile(r"\bdone\s+ordering\b", re.IGNORECASE),
    re.compile(r"\bplace\s+(?:my|the)\s+order\b", re.IGNORECASE),
    re.compile(r"\b(?:yun|iyon|yan)\s+lang\b", re.IGNORECASE),
    re.compile(r"\bbabayaran\b|\bmagbabayad\b", re.IGNORECASE),
]

START_ORDER_PATTERNS = [
    re.compile(
        r"^(?:i\s+want\s+to\s+|i'?d\s+like\s+to\s+|let'?s\s+|can\s+i\s+)?"
        r"(?:start\s+(?:an?\s+|my\s+|the\s+)?order|order(?:\s+now)?|place\s+an\s+order)[.!]?$",
        re.IGNORECASE,
    ),
    re.compile(r"^(?:gusto\s+ko\s+)?(?:mag-?order|umorder)(?:\s+(?:na|po|ako))*[.!]?$", re.IGNORECASE),
]


# =============================================================================
# Suggestion References
# =============================================================================

# "add that", "i'll take it", "sige yan"
CONFIRMATION_PATTERN = re.compile(
    r"\b(?:add|get|order|take|want|have)\s+(?:that|it|this|those|them|these|one)\b|"
    r"\bthat\s+one\b|\bi'?ll\s+take\b|\bsounds\s+good\b|\blet'?s\s+do\s+it\b|"
    r"\b(?:yan|yun|iyan|iyon)\b|"
    r"^(?:yes|yeah|yep|yup|sure|ok|okay|oo|opo|sige|go|please)\b",
    re.IGNORECASE,
)

PRICING_PATTERN = re.compile(
    r"\bhow\s+much\b|\bprice\b|\bprices\b|\bcost\b|\bcosts\b|\bmagkano\b|\bpresyo\b",
    re.IGNORECASE,
)

# Ordinal word -> list index (negative counts from the end)
POSITIONAL_WORDS = {
    "first": 0, "1st": 0, "una": 0, "unang": 0,
    "second": 1, "2nd": 1, "pangalawa": 1, "pangalawang": 1, "ikalawa": 1,
    "third": 2, "3rd": 2, "pangatlo": 2, "pangatlong": 2, "ikatlo": 2,
    "last": -1, "huli": -1, "huling": -1,
}

POSITIONAL_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(POSITIONAL_WORDS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)

# "what drinks go with the burger" / "ano bagay sa burger"
PAIRING_PATTERN = re.compile(
    r"\b(?:go(?:es)?|pairs?|partner|match(?:es)?)\s+(?:well\s+)?(?:it\s+)?with\s+"
    r"(?:the\s+|a\s+|an\s+|my\s+)?(?P<item>[^?.!]+)"
    r"|\b(?:bagay|kapares|partner)\s+(?:sa|ng)\s+(?:aking\s+|yung\s+|ang\s+)?(?P<item_tl>[^?.!]+)",
    re.IGNORECASE,
)

