"""Exports públicos de fsm/transitions."""

from fsm.transitions.rules import (
    SELF_LOOP_STATES,
    VALID_TRANSITIONS,
    TransitionMap,
    get_valid_targets,
    is_transition_valid,
    validate_transition_map,
)

__all__ = [
    "SELF_LOOP_STATES",
    "VALID_TRANSITIONS",
    "TransitionMap",
    "get_valid_targets",
    "is_transition_valid",
    "validate_transition_map",
]
