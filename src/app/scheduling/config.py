"""Configuração de jobs agendados: nome → intervalo → handler.

Pertence ao composition root; a plataforma dispara os ticks na cadência
declarada aqui.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

SESSION_CHECK = "session-check"
SESSION_RECONCILE = "session-reconcile"
PRODUCT_SYNC = "product-sync"
MESSAGE_RETRY = "message-retry"

TICK_KINDS: tuple[str, ...] = (SESSION_CHECK, SESSION_RECONCILE, PRODUCT_SYNC, MESSAGE_RETRY)

# Recebe o deadline (time.monotonic) e devolve o resumo da rodada
TickHandler = Callable[[float | None], Awaitable[dict[str, Any]]]


@dataclass(frozen=True, slots=True)
class ScheduledJob:
    """Job periódico.

    Attributes:
        name: Tipo do tick (ex: "session-check")
        interval_seconds: Cadência esperada
        handler: Coroutine executada em cada tick
    """

    name: str
    interval_seconds: int
    handler: TickHandler

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "interval_seconds": self.interval_seconds}


class SchedulerConfig:
    """Registro dos jobs agendados."""

    def __init__(self) -> None:
        self._jobs: dict[str, ScheduledJob] = {}
        self._active = False

    def register(self, name: str, interval_seconds: int, handler: TickHandler) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"Intervalo inválido para {name}: {interval_seconds}")
        self._jobs[name] = ScheduledJob(name, interval_seconds, handler)

    def get(self, name: str) -> ScheduledJob:
        """Job pelo nome.

        Raises:
            ValueError: Tipo de tick desconhecido
        """
        job = self._jobs.get(name)
        if job is None:
            raise ValueError(f"Tick desconhecido: {name}")
        return job

    @property
    def names(self) -> list[str]:
        return list(self._jobs)

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> list[dict[str, Any]]:
        """Liga os jobs; devolve a agenda para a plataforma."""
        self._active = True
        return [job.to_dict() for job in self._jobs.values()]

    def deactivate(self) -> None:
        self._active = False
