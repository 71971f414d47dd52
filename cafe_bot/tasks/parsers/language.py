"""
Language Detection.

Decides whether an utterance is Tagalog or English so responses can be
localized. Detection is marker based: one Tagalog function word, clitic,
greeting or food/ordering verb is enough to answer in Tagalog.
"""

import re

from ..models import Language

# Matched as whole words. Keeps the short clitics "na" and "pa" even though
# they can show up in English text.
TAGALOG_MARKERS = [
    # Greetings and courtesy
    "kumusta", "kamusta", "salamat", "maraming salamat", "mabuhay",
    "magandang umaga", "magandang hapon", "magandang gabi",
    "po", "opo", "paki", "pakiusap",
    # Question words
    "ano", "saan", "kailan", "bakit", "paano", "magkano",
    # Food and ordering
    "kape", "pagkain", "masarap", "sarap", "gutom", "uhaw", "mainit", "malamig",
    "presyo", "pesos", "makakakuha", "makakaorder", "makakabili",
    "orderin", "umorder", "bili", "bumili", "kain", "kumain", "inom", "uminom",
    "gusto ko", "pwede", "meron ba", "wala ba",
    # Time
    "tanghali", "umaga", "gabi", "ngayon", "bukas", "kahapon",
    # Pronouns
    "ako", "ikaw", "siya", "tayo", "kami", "atin",
    # Clitics and fillers
    "lang", "yung", "na", "pa", "naman", "talaga", "kasi", "nga", "lamang",
    "marami", "konti", "rin", "din", "sige", "ayos", "malamang", "siguro", "baka",
    "dito", "doon", "diyan",
]

TAGALOG_PATTERNS = [
    re.compile(r"\b" + re.escape(marker).replace(r"\ ", r"\s+") + r"\b", re.IGNORECASE)
    for marker in TAGALOG_MARKERS
]

# Bare one-word utterances
SHORT_TAGALOG_WORDS = {
    "ikaw", "ako", "siya", "kain", "inom", "gusto", "ayaw", "dito", "diyan",
    "po", "opo", "salamat", "kamusta", "kumusta",
}


def detect_language(text: str | None) -> Language:
    """
    Detect whether text is Tagalog or English.

    Args:
        text: The utterance to analyze

    Returns:
        Language.TAGALOG if any Tagalog marker appears, else Language.ENGLISH
    """
    if not text:
        return Language.ENGLISH

    for pattern in TAGALOG_PATTERNS:
        if pattern.search(text):
            return Language.TAGALOG

    if text.strip().lower() in SHORT_TAGALOG_WORDS:
        return Language.TAGALOG

    return Language.ENGLISH
