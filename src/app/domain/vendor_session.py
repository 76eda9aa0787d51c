"""Entidade VendorSession.

Uma por vendor. Criada na primeira tentativa de pareamento, alterada
apenas pelo Session Manager, removida na desativação do vendor.

Invariante: remote_session_id != None  <=>  state in {connected, degraded}.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from app.domain.clock import format_datetime, parse_datetime, utc_now
from fsm.states import DEFAULT_INITIAL_STATE, READY_STATES, SessionState


@dataclass(frozen=True, slots=True)
class VendorSession:
    """Sessão de um vendor no gateway WhatsApp.

    Atributos:
        vendor_id: Identificador do vendor (único)
        state: Estado FSM atual
        remote_session_id: Id da sessão no gateway (só quando pronta)
        pairing_handle: Id provisório devolvido pelo gateway ao iniciar pareamento
        pairing_started_at: Início do pareamento corrente (base do TTL)
        session_name: Nome amigável informado pelo vendor
        last_checked_at: Último health check (tick ou sob demanda)
        last_error: Último erro observado (mensagem genérica)
        consecutive_failures: Falhas seguidas de health check
    """

    vendor_id: str
    state: SessionState = DEFAULT_INITIAL_STATE
    remote_session_id: str | None = None
    pairing_handle: str | None = None
    pairing_started_at: datetime | None = None
    session_name: str = ""
    last_checked_at: datetime | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        has_remote = self.remote_session_id is not None
        if has_remote != (self.state in READY_STATES):
            raise ValueError(
                f"remote_session_id inconsistente com estado {self.state.value}"
            )

    @property
    def is_ready(self) -> bool:
        return self.state in READY_STATES

    @property
    def gateway_handle(self) -> str | None:
        """Id a consultar no gateway: remoto se pronta, senão o de pareamento."""
        return self.remote_session_id or self.pairing_handle

    def pairing_elapsed(self, now: datetime) -> float:
        """Segundos desde o início do pareamento (0 se não pareando)."""
        if self.pairing_started_at is None:
            return 0.0
        return (now - self.pairing_started_at).total_seconds()

    def evolve(self, **changes: Any) -> VendorSession:
        """Cópia com alterações; updated_at acompanha."""
        changes.setdefault("updated_at", utc_now())
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serializa para persistência."""
        return {
            "vendor_id": self.vendor_id,
            "state": self.state.value,
            "remote_session_id": self.remote_session_id,
            "pairing_handle": self.pairing_handle,
            "pairing_started_at": format_datetime(self.pairing_started_at),
            "session_name": self.session_name,
            "last_checked_at": format_datetime(self.last_checked_at),
            "last_error": self.last_error,
            "consecutive_failures": self.consecutive_failures,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VendorSession:
        """Deserializa de persistência."""
        return cls(
            vendor_id=data["vendor_id"],
            state=SessionState(data.get("state", DEFAULT_INITIAL_STATE.value)),
            remote_session_id=data.get("remote_session_id"),
            pairing_handle=data.get("pairing_handle"),
            pairing_started_at=parse_datetime(data.get("pairing_started_at")),
            session_name=data.get("session_name", ""),
            last_checked_at=parse_datetime(data.get("last_checked_at")),
            last_error=data.get("last_error"),
            consecutive_failures=int(data.get("consecutive_failures", 0)),
            created_at=parse_datetime(data.get("created_at")) or utc_now(),
            updated_at=parse_datetime(data.get("updated_at")) or utc_now(),
        )

    def to_public_dict(self) -> dict[str, Any]:
        """Visão exposta em respostas de admin/frontend."""
        return {
            "vendor_id": self.vendor_id,
            "state": self.state.value,
            "session_name": self.session_name,
            "connected": self.is_ready,
            "last_checked_at": format_datetime(self.last_checked_at),
            "last_error": self.last_error,
            "consecutive_failures": self.consecutive_failures,
        }
