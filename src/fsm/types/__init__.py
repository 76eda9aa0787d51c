"""Exports públicos de fsm/types."""

from fsm.types.transition import (
    EXPLICIT_TRIGGERS,
    StateTransition,
    TransitionResult,
    Trigger,
)

__all__ = [
    "EXPLICIT_TRIGGERS",
    "StateTransition",
    "TransitionResult",
    "Trigger",
]
