"""
Estados de uma VendorSession no gateway WhatsApp.

Ciclo: unpaired → pairing → connected ⇄ degraded → expired.
expired só volta a pairing por pedido explícito do vendor.
"""

from enum import StrEnum


class SessionState(StrEnum):
    """
    Estados da sessão de um vendor.

    - UNPAIRED: Vendor nunca pareou (ou sessão recém-criada)
    - PAIRING: Aguardando leitura do QR/handshake
    - CONNECTED: Sessão ativa no gateway
    - DEGRADED: Sessão com falhas recentes de health check
    - EXPIRED: Sessão perdida; exige novo pareamento
    """

    UNPAIRED = "unpaired"
    PAIRING = "pairing"
    CONNECTED = "connected"
    DEGRADED = "degraded"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


# Estados com remote_session_id obrigatório e aptos a enviar mensagens
READY_STATES: frozenset[SessionState] = frozenset({
    SessionState.CONNECTED,
    SessionState.DEGRADED,
})

# Estados que recebem health check automático
CHECKABLE_STATES: frozenset[SessionState] = frozenset({
    SessionState.PAIRING,
    SessionState.CONNECTED,
    SessionState.DEGRADED,
})

# Estados a partir dos quais o vendor pode (re)iniciar pareamento
PAIRABLE_STATES: frozenset[SessionState] = frozenset({
    SessionState.UNPAIRED,
    SessionState.EXPIRED,
})

DEFAULT_INITIAL_STATE: SessionState = SessionState.UNPAIRED


def is_ready(state: SessionState) -> bool:
    """True se a sessão pode ser usada para envio."""
    return state in READY_STATES


def is_checkable(state: SessionState) -> bool:
    """True se a sessão entra no health check agendado."""
    return state in CHECKABLE_STATES


def is_valid_state(state: object) -> bool:
    """Verifica se o valor é um SessionState."""
    return isinstance(state, SessionState)
