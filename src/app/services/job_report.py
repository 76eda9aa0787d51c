"""Relatório de uma rodada de processamento de jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class JobRunReport:
    """Contagens por desfecho; `skipped` = deixados para o próximo tick."""

    processed: int = 0
    skipped: int = 0
    outcomes: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    def count(self, status: str) -> None:
        self.processed += 1
        self.outcomes[status] = self.outcomes.get(status, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "outcomes": dict(self.outcomes),
            "errors": list(self.errors),
        }
