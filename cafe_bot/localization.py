"""
Localized response strings (English and Tagalog).

Usage:
    from cafe_bot.localization import get_localized_text
    get_localized_text("cart-summary", "tagalog", 3)

Entries are either plain strings or callables taking the positional args.
"""
import logging
from typing import Callable

from .tasks.models import Language

logger = logging.getLogger(__name__)


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


LOCALIZED_STRINGS: dict[str, dict[str, str | Callable[..., str]]] = {
    # Commands
    "order-started": {
        "english": "I've started an order for you. You can say 'show my cart' anytime to see your current order.",
        "tagalog": "Na-start ko na yung order mo. Sabihin mo lang 'show my cart' kung gusto mong makita yung order mo anytime.",
    },
    "cart-empty": {
        "english": "You don't have any items in your order yet. Would you like to see our menu?",
        "tagalog": "Wala ka pang items sa cart mo. Gusto mo bang makita yung menu namin?",
    },
    "cart-summary": {
        "english": lambda count: f"You have {count} item{_plural(count)} in your order. You can view your cart below.",
        "tagalog": lambda count: f"May {count} item{_plural(count)} ka sa cart mo. Nasa baba yung order mo para ma-check mo.",
    },
    "checkout-prompt": {
        "english": "Great! I'll need a few details to process your order.",
        "tagalog": "Perfect! Kailangan ko lang ng konting details para ma-process natin yung order mo.",
    },
    "order-total": {
        "english": lambda total, minutes: f"Your total is {total}, ready in about {minutes} minutes.",
        "tagalog": lambda total, minutes: f"Ang total mo ay {total}, ready in mga {minutes} minuto.",
    },
    "order-cancelled": {
        "english": "I've canceled your current order. Feel free to start over whenever you're ready!",
        "tagalog": "Na-cancel ko na yung order mo. Just start over nalang kapag ready ka na ulit!",
    },
    "no-order-to-cancel": {
        "english": "You don't have an active order to cancel.",
        "tagalog": "Wala ka pang active order na pwedeng i-cancel.",
    },
    "item-added": {
        "english": lambda name: f"Added {name} to your order. Would you like anything else?",
        "tagalog": lambda name: f"Na-add ko na yung {name} sa order mo. May gusto ka pa bang iba?",
    },
    # Size clarification
    "size-prompt-one": {
        "english": lambda name, options: f"What size would you like for your {name}? We have {options}.",
        "tagalog": lambda name, options: f"Anong size ang gusto mo para sa {name}? Meron kaming {options}.",
    },
    "size-prompt-many": {
        "english": lambda lines: f"What sizes would you like?\n{lines}",
        "tagalog": lambda lines: f"Anong size ang gusto mo para sa mga ito?\n{lines}",
    },
    "size-cancelled": {
        "english": "Okay, I won't add those. Anything else?",
        "tagalog": "Sige, hindi ko na idadagdag. May iba ka pa bang gusto?",
    },
    # Low-confidence confirmation
    "confirm-items": {
        "english": lambda names: f"Just to make sure, did you mean {names}?",
        "tagalog": lambda names: f"Para sigurado, {names} ba ang ibig mong sabihin?",
    },
    "confirm-reask": {
        "english": lambda names: f"Sorry, I didn't catch that. Should I add {names}? Please say yes or no.",
        "tagalog": lambda names: f"Pasensya, hindi ko nakuha. Idadagdag ko ba ang {names}? Oo o hindi lang po.",
    },
    "confirm-declined": {
        "english": "No problem, I won't add that. What would you like instead?",
        "tagalog": "Sige, hindi ko idadagdag. Ano na lang ang gusto mo?",
    },
    # Suggestions
    "which-item": {
        "english": lambda names: f"Which one would you like: {names}?",
        "tagalog": lambda names: f"Alin dito ang gusto mo: {names}?",
    },
    "price-info": {
        "english": lambda details: f"{details}. Would you like to order?",
        "tagalog": lambda details: f"{details}. Gusto mo bang umorder?",
    },
    # Alternatives
    "item-unavailable": {
        "english": lambda name, alternatives: f"Sorry, {name} isn't available right now. You might like {alternatives} instead.",
        "tagalog": lambda name, alternatives: f"Pasensya, wala kaming {name} ngayon. Baka gusto mo ng {alternatives}?",
    },
    "item-unavailable-no-alternatives": {
        "english": lambda name: f"Sorry, {name} isn't available right now. Is there anything else you'd like?",
        "tagalog": lambda name: f"Pasensya, wala kaming {name} ngayon. May iba ka bang gusto?",
    },
    "item-alternatives": {
        "english": lambda name, alternatives: f"Instead of {name}, you might like {alternatives}.",
        "tagalog": lambda name, alternatives: f"Kapalit ng {name}, baka gusto mo ng {alternatives}.",
    },
    # Fallbacks
    "not-on-menu": {
        "english": "Sorry, I couldn't find that on our menu. Could you try another item?",
        "tagalog": "Pasensya, wala yan sa menu namin. Iba na lang kaya?",
    },
    "order-help": {
        "english": "I can help you order! Tell me what you'd like, for example '2 large milk tea'.",
        "tagalog": "Pwede kitang tulungan umorder! Sabihin mo lang kung ano ang gusto mo, halimbawa '2 large milk tea'.",
    },
    "generation-fallback": {
        "english": "Sorry, I'm having trouble answering right now. You can still order by telling me the item and size.",
        "tagalog": "Pasensya, nagkaka-problema ako ngayon. Pwede ka pa ring umorder, sabihin mo lang yung item at size.",
    },
}


def get_localized_text(key: str, language: Language | str = Language.ENGLISH, *args) -> str:
    """
    Look up a response string in the requested language.

    Args:
        key: Message key, e.g. "item-added"
        language: Language enum or its string value. Unknown languages use English.
        *args: Arguments for parameterized messages

    Returns:
        The localized text, or "Missing translation for <key>:<language>"
    """
    lang = language.value if isinstance(language, Language) else str(language).lower()
    entry = LOCALIZED_STRINGS.get(key)
    if entry is None:
        logger.warning("Missing translation for %s:%s", key, lang)
        return f"Missing translation for {key}:{lang}"

    text = entry.get(lang) or entry["english"]
    if callable(text):
        return text(*args)
    return text
