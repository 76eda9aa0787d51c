"""
Grafo de transições válidas entre estados de VendorSession.

Qualquer aresta fora deste mapa é rejeitada pela máquina.
"""

from fsm.states.session import SessionState

TransitionMap = dict[SessionState, frozenset[SessionState]]

VALID_TRANSITIONS: TransitionMap = {
    SessionState.UNPAIRED: frozenset({
        SessionState.PAIRING,
    }),

    # PAIRING: confirmação remota ou TTL de pareamento
    SessionState.PAIRING: frozenset({
        SessionState.CONNECTED,
        SessionState.EXPIRED,
    }),

    # CONNECTED: falha de check, revogação remota ou explícita
    SessionState.CONNECTED: frozenset({
        SessionState.DEGRADED,
        SessionState.EXPIRED,
    }),

    # DEGRADED: recupera, acumula falha (self-loop) ou expira
    SessionState.DEGRADED: frozenset({
        SessionState.CONNECTED,
        SessionState.DEGRADED,
        SessionState.EXPIRED,
    }),

    # EXPIRED: somente re-pareamento explícito
    SessionState.EXPIRED: frozenset({
        SessionState.PAIRING,
    }),
}

# Único self-loop permitido
SELF_LOOP_STATES: frozenset[SessionState] = frozenset({SessionState.DEGRADED})


def get_valid_targets(state: SessionState) -> frozenset[SessionState]:
    """
    Retorna os destinos permitidos a partir de um estado.

    Args:
        state: Estado de origem

    Returns:
        Conjunto de destinos (vazio para estado desconhecido)
    """
    return VALID_TRANSITIONS.get(state, frozenset())


def is_transition_valid(from_state: SessionState, to_state: SessionState) -> bool:
    """Verifica se a aresta from_state → to_state existe no grafo."""
    return to_state in get_valid_targets(from_state)


def validate_transition_map() -> list[str]:
    """
    Valida a integridade do mapa de transições.

    Verifica:
    - Todo estado do enum está no mapa
    - Todo estado tem ao menos uma saída
    - Self-loops só em SELF_LOOP_STATES

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for state in SessionState:
        if state not in VALID_TRANSITIONS:
            errors.append(f"Estado {state.name} ausente em VALID_TRANSITIONS")
        elif not VALID_TRANSITIONS[state]:
            errors.append(f"Estado {state.name} não tem transições de saída")

    for from_state, targets in VALID_TRANSITIONS.items():
        for target in targets:
            if not isinstance(target, SessionState):
                errors.append(
                    f"Transição {from_state.name} → {target}: destino inválido"
                )
            elif target == from_state and from_state not in SELF_LOOP_STATES:
                errors.append(f"Self-loop não permitido em {from_state.name}")

    return errors
