"""Exports públicos de fsm/states."""

from fsm.states.session import (
    CHECKABLE_STATES,
    DEFAULT_INITIAL_STATE,
    PAIRABLE_STATES,
    READY_STATES,
    SessionState,
    is_checkable,
    is_ready,
    is_valid_state,
)

__all__ = [
    "CHECKABLE_STATES",
    "DEFAULT_INITIAL_STATE",
    "PAIRABLE_STATES",
    "READY_STATES",
    "SessionState",
    "is_checkable",
    "is_ready",
    "is_valid_state",
]
