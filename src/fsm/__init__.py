"""
Máquina de estados das sessões de vendor no gateway WhatsApp.

Estrutura:
    - states/: SessionState e conjuntos (ready, checkable, pairable)
    - transitions/: grafo VALID_TRANSITIONS
    - rules/: guards aplicados após o grafo
    - manager/: FSMStateMachine
    - types/: StateTransition, TransitionResult, Trigger
"""

from fsm.manager import FSMStateMachine, create_fsm
from fsm.rules import GuardResult, evaluate_guards
from fsm.states import (
    CHECKABLE_STATES,
    DEFAULT_INITIAL_STATE,
    PAIRABLE_STATES,
    READY_STATES,
    SessionState,
    is_checkable,
    is_ready,
    is_valid_state,
)
from fsm.transitions import (
    VALID_TRANSITIONS,
    get_valid_targets,
    is_transition_valid,
    validate_transition_map,
)
from fsm.types import (
    EXPLICIT_TRIGGERS,
    StateTransition,
    TransitionResult,
    Trigger,
)

__all__ = [
    "CHECKABLE_STATES",
    "DEFAULT_INITIAL_STATE",
    "EXPLICIT_TRIGGERS",
    "PAIRABLE_STATES",
    "READY_STATES",
    "VALID_TRANSITIONS",
    "FSMStateMachine",
    "GuardResult",
    "SessionState",
    "StateTransition",
    "TransitionResult",
    "Trigger",
    "create_fsm",
    "evaluate_guards",
    "get_valid_targets",
    "is_checkable",
    "is_ready",
    "is_transition_valid",
    "is_valid_state",
    "validate_transition_map",
]
