"""
State Machine Schemas.

This package contains the data structures used by the state machine for
parsing user input, resolving items and sizes, and reporting results.
"""

from .phases import ConversationPhase
from .parser_responses import (
    ParsedOrderItem,
    ClassifiedItem,
    ClassifierResponse,
)
from .resolution import (
    SizeResolved,
    NeedsSelection,
    SizeResolution,
    Resolved,
    NeedsSize,
    NoMatch,
    Grounding,
)
from .result import StateMachineResult

__all__ = [
    # Phases
    "ConversationPhase",
    # Parser responses
    "ParsedOrderItem",
    "ClassifiedItem",
    "ClassifierResponse",
    # Resolution variants
    "SizeResolved",
    "NeedsSelection",
    "SizeResolution",
    "Resolved",
    "NeedsSize",
    "NoMatch",
    "Grounding",
    # Result
    "StateMachineResult",
]
