"""
Restrições sobre arestas que o grafo já permite.

O grafo responde "existe caminho de X para Y?"; os guards respondem
"este gatilho pode usar esse caminho agora?". Exemplo: expired → pairing
existe, mas só um start_pairing explícito o percorre.
"""

from collections.abc import Callable
from dataclasses import dataclass

from fsm.states.session import SessionState
from fsm.transitions.rules import SELF_LOOP_STATES
from fsm.types.transition import Trigger


@dataclass(frozen=True, slots=True)
class GuardResult:
    """Veredito de um guard; `reason` só é preenchido quando negado."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "GuardResult":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "GuardResult":
        return cls(False, reason)


# (origem, destino, gatilho) -> veredito
Guard = Callable[[SessionState, SessionState, str], GuardResult]

_ALLOWED = GuardResult.allow()


def guard_valid_state(
    from_state: SessionState,
    to_state: SessionState,
    trigger: str,
) -> GuardResult:
    """Rejeita valores crus (str) no lugar de SessionState."""
    for label, value in (("origem", from_state), ("destino", to_state)):
        if not isinstance(value, SessionState):
            return GuardResult.deny(f"Estado de {label} desconhecido: {value!r}")
    return _ALLOWED


def guard_same_state(
    from_state: SessionState,
    to_state: SessionState,
    trigger: str,
) -> GuardResult:
    """
    Permanecer no mesmo estado só vale para DEGRADED acumulando falha.

    Qualquer outro self-loop indicaria um check que não mudou nada e
    não deve gerar transição.
    """
    if from_state is not to_state:
        return _ALLOWED
    if from_state in SELF_LOOP_STATES and trigger == Trigger.CHECK_FAILED:
        return _ALLOWED
    return GuardResult.deny(
        f"{from_state.name} não aceita self-loop com gatilho {trigger}"
    )


def guard_explicit_pairing(
    from_state: SessionState,
    to_state: SessionState,
    trigger: str,
) -> GuardResult:
    """Só start_pairing leva a PAIRING; ticks nunca re-pareiam sozinhos."""
    if to_state is not SessionState.PAIRING or trigger == Trigger.START_PAIRING:
        return _ALLOWED
    return GuardResult.deny(
        f"{from_state.name} → PAIRING exige trigger start_pairing"
    )


# Ordem importa: o primeiro deny vence
DEFAULT_GUARDS: list[Guard] = [
    guard_valid_state,
    guard_same_state,
    guard_explicit_pairing,
]


def evaluate_guards(
    from_state: SessionState,
    to_state: SessionState,
    trigger: str,
    guards: list[Guard] | None = None,
) -> GuardResult:
    """Executa os guards em sequência e devolve o primeiro veredito negativo."""
    chain = DEFAULT_GUARDS if guards is None else guards
    return next(
        (
            verdict
            for verdict in (guard(from_state, to_state, trigger) for guard in chain)
            if not verdict.allowed
        ),
        _ALLOWED,
    )
