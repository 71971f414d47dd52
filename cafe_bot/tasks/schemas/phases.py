"""
Conversation Phase Definitions.

This module defines the ConversationPhase enum. IDLE, AWAITING_SIZE and
AWAITING_CONFIRMATION are blocking: the next utterance is interpreted as an
answer to the open question. SUGGESTION_ACTIVE and PAIRING_ACTIVE are passive
and may coexist with any blocking phase.
"""

from enum import Enum


class ConversationPhase(str, Enum):
    """Phases of the order conversation."""
    IDLE = "idle"
    AWAITING_SIZE = "awaiting_size"  # One or more items need a size
    AWAITING_CONFIRMATION = "awaiting_confirmation"  # Low-confidence matches need a yes/no
    SUGGESTION_ACTIVE = "suggestion_active"  # Bot recently mentioned catalog items
    PAIRING_ACTIVE = "pairing_active"  # Customer asked what goes with an item

    @property
    def is_blocking(self) -> bool:
        return self in (
            ConversationPhase.AWAITING_SIZE,
            ConversationPhase.AWAITING_CONFIRMATION,
        )
