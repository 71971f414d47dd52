"""
State Machine Result.

Defines the result structure returned by state machine processing.
"""

from dataclasses import dataclass, field

from ..models import Language, OrderLine
from .phases import ConversationPhase


@dataclass
class StateMachineResult:
    """Result from state machine processing."""
    message: str
    phase: ConversationPhase
    language: Language = Language.ENGLISH
    committed_lines: list[OrderLine] = field(default_factory=list)
    checkout_requested: bool = False
