"""Settings de sessão de vendor.

Limiar de falhas, TTL de pareamento e cadência dos ticks de sessão.
Os valores são defaults configuráveis, não contratos fixos.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class SessionSettings:
    """Configurações de ciclo de vida das VendorSessions.

    Attributes:
        failure_threshold: Falhas consecutivas até degraded → expired
        pairing_ttl_seconds: Tempo máximo em pairing sem confirmação
        check_interval_seconds: Cadência do tick session-check
        reconcile_interval_seconds: Cadência da reconciliação completa
        tick_budget_seconds: Orçamento de tempo por tick
    """

    failure_threshold: int = 3
    pairing_ttl_seconds: int = 300
    check_interval_seconds: int = 300  # 5 min
    reconcile_interval_seconds: int = 3600  # 1h
    tick_budget_seconds: float = 50.0

    def validate(self) -> list[str]:
        """Valida configurações de sessão.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.failure_threshold < 1:
            errors.append("SESSION_FAILURE_THRESHOLD deve ser >= 1")

        if self.pairing_ttl_seconds <= 0:
            errors.append("SESSION_PAIRING_TTL_SECONDS deve ser > 0")

        if self.check_interval_seconds <= 0:
            errors.append("SESSION_CHECK_INTERVAL_SECONDS deve ser > 0")

        if self.reconcile_interval_seconds <= 0:
            errors.append("SESSION_RECONCILE_INTERVAL_SECONDS deve ser > 0")

        if self.tick_budget_seconds <= 0:
            errors.append("TICK_BUDGET_SECONDS deve ser > 0")
        elif self.tick_budget_seconds >= self.check_interval_seconds:
            errors.append("TICK_BUDGET_SECONDS deve ser menor que o intervalo do tick")

        return errors


def _load_session_from_env() -> SessionSettings:
    """Carrega SessionSettings de variáveis de ambiente."""
    return SessionSettings(
        failure_threshold=int(os.getenv("SESSION_FAILURE_THRESHOLD", "3")),
        pairing_ttl_seconds=int(os.getenv("SESSION_PAIRING_TTL_SECONDS", "300")),
        check_interval_seconds=int(os.getenv("SESSION_CHECK_INTERVAL_SECONDS", "300")),
        reconcile_interval_seconds=int(
            os.getenv("SESSION_RECONCILE_INTERVAL_SECONDS", "3600")
        ),
        tick_budget_seconds=float(os.getenv("TICK_BUDGET_SECONDS", "50")),
    )


@lru_cache(maxsize=1)
def get_session_settings() -> SessionSettings:
    """Retorna instância cacheada de SessionSettings."""
    return _load_session_from_env()
