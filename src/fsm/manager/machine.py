"""
FSMStateMachine para VendorSession.

O Session Manager reconstrói uma máquina a partir do estado persistido
em cada operação. O histórico só vive durante essa operação e cada item
vira um evento de log `session_transition`.
"""

from typing import Any

from fsm.rules.guards import evaluate_guards
from fsm.states.session import (
    DEFAULT_INITIAL_STATE,
    SessionState,
    is_checkable,
    is_ready,
)
from fsm.transitions.rules import get_valid_targets, is_transition_valid
from fsm.types.transition import StateTransition, TransitionResult


class FSMStateMachine:
    """Estado corrente de uma sessão mais as transições aplicadas a ela."""

    __slots__ = ("_state", "_applied", "_vendor_id")

    def __init__(
        self,
        initial_state: SessionState | None = None,
        vendor_id: str = "",
    ) -> None:
        self._state = initial_state or DEFAULT_INITIAL_STATE
        self._applied: list[StateTransition] = []
        self._vendor_id = vendor_id

    @property
    def current_state(self) -> SessionState:
        return self._state

    @property
    def history(self) -> list[StateTransition]:
        return self._applied.copy()

    @property
    def vendor_id(self) -> str:
        return self._vendor_id

    @property
    def is_ready(self) -> bool:
        return is_ready(self._state)

    @property
    def is_checkable(self) -> bool:
        return is_checkable(self._state)

    def get_valid_targets(self) -> frozenset[SessionState]:
        return get_valid_targets(self._state)

    def _refusal(self, target: SessionState, trigger: str) -> str | None:
        # None significa que a aresta pode ser percorrida
        if not is_transition_valid(self._state, target):
            return f"Transição inválida: {self._state.name} → {target.name}"
        verdict = evaluate_guards(self._state, target, trigger)
        return None if verdict.allowed else verdict.reason

    def can_transition_to(self, target: SessionState, trigger: str) -> bool:
        return self._refusal(target, trigger) is None

    def transition(
        self,
        target: SessionState,
        trigger: str,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """
        Aplica `target` se o grafo e os guards permitirem.

        Uma recusa não altera o estado nem o histórico; `metadata` vai
        para o log e não deve conter tokens nem telefones.
        """
        refusal = self._refusal(target, trigger)
        if refusal is not None:
            return TransitionResult(success=False, error_reason=refusal)

        record = StateTransition(
            from_state=self._state,
            to_state=target,
            trigger=trigger,
            metadata=dict(metadata or {}),
        )
        self._applied.append(record)
        self._state = target
        return TransitionResult(success=True, transition=record)

    def get_state_summary(self) -> dict[str, Any]:
        return {
            "vendor_id": self._vendor_id,
            "current_state": self._state.value,
            "is_ready": self.is_ready,
            "transition_count": len(self._applied),
            "valid_targets": sorted(s.value for s in self.get_valid_targets()),
        }

    def get_history_summary(self) -> list[dict[str, Any]]:
        return [record.to_log_dict() for record in self._applied]


def create_fsm(
    vendor_id: str,
    initial_state: SessionState | None = None,
) -> FSMStateMachine:
    return FSMStateMachine(initial_state=initial_state, vendor_id=vendor_id)
