"""Exports públicos de fsm/rules."""

from fsm.rules.guards import (
    DEFAULT_GUARDS,
    Guard,
    GuardResult,
    evaluate_guards,
    guard_explicit_pairing,
    guard_same_state,
    guard_valid_state,
)

__all__ = [
    "DEFAULT_GUARDS",
    "Guard",
    "GuardResult",
    "evaluate_guards",
    "guard_explicit_pairing",
    "guard_same_state",
    "guard_valid_state",
]
