"""
Logging configuration for the cafe bot.

Usage:
    from cafe_bot.logging_config import setup_logging
    setup_logging()  # Call once when the host application starts

Environment variables:
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, or CRITICAL (default: INFO)

Customer utterances and order contents are only ever logged at DEBUG.
"""
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# HTTP client libraries that log every round trip at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")


def _resolve_level(level: str | None) -> str:
    """Pick the level name from the argument or LOG_LEVEL, falling back to INFO."""
    name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    return name if name in VALID_LEVELS else "INFO"


def setup_logging(level: str = None) -> None:
    """
    Configure logging for the cafe bot.

    Args:
        level: Log level name. If not provided, reads LOG_LEVEL, defaulting
               to INFO. Unknown names also fall back to INFO.
    """
    level_name = _resolve_level(level)
    numeric_level = getattr(logging, level_name)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
    )
    logging.getLogger("cafe_bot").setLevel(numeric_level)

    third_party_level = logging.DEBUG if level_name == "DEBUG" else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    logging.getLogger(__name__).debug("Logging configured at %s level", level_name)
