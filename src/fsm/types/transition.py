"""
Registros de transição da FSM de sessão.

StateTransition é imutável e segura para log (sem tokens nem telefones).
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from fsm.states.session import SessionState


class Trigger(StrEnum):
    """Gatilhos conhecidos de transição."""

    START_PAIRING = "start_pairing"
    REMOTE_ACTIVE = "remote_active"
    PAIRING_TIMEOUT = "pairing_timeout"
    CHECK_FAILED = "check_failed"
    CHECK_RECOVERED = "check_recovered"
    FAILURE_THRESHOLD = "failure_threshold"
    REMOTE_REVOKED = "remote_revoked"
    EXPLICIT_REVOKE = "explicit_revoke"
    RECONCILE_MISSING = "reconcile_missing"

    def __str__(self) -> str:
        return self.value


# Gatilhos que só um pedido explícito do vendor/admin pode disparar
EXPLICIT_TRIGGERS: frozenset[str] = frozenset({
    Trigger.START_PAIRING,
    Trigger.EXPLICIT_REVOKE,
})


@dataclass(frozen=True, slots=True)
class StateTransition:
    """
    Mudança de estado de uma VendorSession.

    Attributes:
        from_state: Estado de origem
        to_state: Estado de destino
        trigger: Gatilho (ver Trigger)
        metadata: Dados de auditoria (ex: consecutive_failures, error_kind)
        timestamp: Momento da transição (UTC)
    """

    from_state: SessionState
    to_state: SessionState
    trigger: str
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.trigger or not self.trigger.strip():
            raise ValueError("trigger não pode ser vazio")

    @property
    def is_self_loop(self) -> bool:
        return self.from_state == self.to_state

    def to_log_dict(self) -> dict[str, Any]:
        """Representação para logging estruturado."""
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "trigger": str(self.trigger),
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """
    Resultado de uma tentativa de transição.

    Attributes:
        success: Se a transição foi aplicada
        transition: Registro da transição (se success=True)
        error_reason: Motivo da recusa (se success=False)
    """

    success: bool
    transition: StateTransition | None = None
    error_reason: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.transition is None:
            raise ValueError("Transição bem-sucedida deve incluir transition")
        if not self.success and self.error_reason is None:
            raise ValueError("Transição falha deve incluir error_reason")
