"""
Configuration Module for Cafe Bot
=================================

This module centralizes the configuration settings, environment variables, and
constants used by the order-resolution engine. Values are read once at import
time from the process environment (a ``.env`` file at the project root is
loaded first, if present).

Configuration Categories:
-------------------------
- **LLM Endpoint**: API key and model names for the completion endpoint used
  for free-text replies and order-intent classification.

- **Conversation Context**: How long short-lived suggestion and pairing
  contexts stay valid, and how many recent turns are sent to the LLM.

- **Order Submission**: Where finalized orders are posted at checkout.

- **Input Validation**: Maximum utterance length.

Environment Variables:
----------------------
- OPENAI_API_KEY: API key for the completion endpoint (required only when the
  OpenAI endpoint is constructed)
- OPENAI_MODEL: Model for free-text generation (default: "gpt-4o-mini")
- CLASSIFIER_MODEL: Model for order-intent classification (default: OPENAI_MODEL)
- CONTEXT_TTL_SECONDS: Suggestion/pairing context lifetime (default: 300)
- HISTORY_TURNS: Recent turns sent with each request (default: 5)
- ORDER_SUBMIT_URL: Endpoint receiving finalized orders (default: unset)
- ORDER_SUBMIT_TIMEOUT: Seconds before a submission request times out (default: 10)
- MAX_MESSAGE_LENGTH: Max user message length (default: 2000)

Usage:
------
    from cafe_bot.config import (
        CONTEXT_TTL_SECONDS,
        HISTORY_TURNS,
        DEFAULT_CONFIRMATION_SIZE,
    )
"""

import os
from pathlib import Path

from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where .env lives)
load_dotenv(dotenv_path=BASE_DIR / ".env")


# =============================================================================
# LLM Endpoint Configuration
# =============================================================================
# The key is only checked when OpenAICompletionEndpoint is built, so the engine
# can run in deterministic mode (no endpoint) without any credentials.

OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
CLASSIFIER_MODEL: str = os.getenv("CLASSIFIER_MODEL", OPENAI_MODEL)

# Classification wants stable, short JSON; generation is allowed to be chattier
CLASSIFIER_TEMPERATURE: float = float(os.getenv("CLASSIFIER_TEMPERATURE", "0.2"))
CLASSIFIER_MAX_TOKENS: int = int(os.getenv("CLASSIFIER_MAX_TOKENS", "350"))
GENERATION_TEMPERATURE: float = float(os.getenv("GENERATION_TEMPERATURE", "0.85"))
GENERATION_MAX_TOKENS: int = int(os.getenv("GENERATION_MAX_TOKENS", "200"))


# =============================================================================
# Conversation Context Configuration
# =============================================================================

# Suggestion and pairing contexts are ignored once older than this (seconds).
# Expiry is checked lazily when a context is read, never by a timer.
CONTEXT_TTL_SECONDS: float = float(os.getenv("CONTEXT_TTL_SECONDS", "300"))

# Number of most recent conversation turns passed to the completion endpoint
HISTORY_TURNS: int = int(os.getenv("HISTORY_TURNS", "5"))

# Size used when a low-confidence candidate is confirmed without one
DEFAULT_CONFIRMATION_SIZE: str = os.getenv("DEFAULT_CONFIRMATION_SIZE", "medium")


# =============================================================================
# Order Submission Configuration
# =============================================================================

ORDER_SUBMIT_URL: str = os.getenv("ORDER_SUBMIT_URL", "")
ORDER_SUBMIT_TIMEOUT: float = float(os.getenv("ORDER_SUBMIT_TIMEOUT", "10"))

# Fixed tags carried by every chatbot order
ORDER_TYPE: str = "chatbot"
PAYMENT_METHOD_PLACEHOLDER: str = "pending"


# =============================================================================
# Input Validation Configuration
# =============================================================================

# Longer utterances are truncated before parsing and before any LLM call
MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))
