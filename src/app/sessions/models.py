"""Relatórios das operações em lote do Session Manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class HealthCheckReport:
    """Resultado de uma rodada de health checks (ou reconciliação).

    Attributes:
        checked: Sessões verificadas nesta rodada
        skipped: Sessões não iniciadas por falta de orçamento (carry-over)
        errors: Vendors cujo check falhou por erro interno (ex: store)
        transitions: Contagem de transições por estado de destino
    """

    checked: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    transitions: dict[str, int] = field(default_factory=dict)

    def count_transition(self, to_state: str) -> None:
        self.transitions[to_state] = self.transitions.get(to_state, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "transitions": dict(self.transitions),
        }
