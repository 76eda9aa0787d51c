"""Execução de ticks sob orçamento de tempo.

Um tick do mesmo tipo já em execução faz o novo ser pulado; trabalho
não concluído dentro do orçamento fica para o próximo tick.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.domain.clock import format_datetime, utc_now
from app.observability import correlation_scope, generate_correlation_id, record_latency

if TYPE_CHECKING:
    from datetime import datetime

    from app.scheduling.config import SchedulerConfig

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_SKIPPED = "skipped"
STATUS_INACTIVE = "inactive"


@dataclass(slots=True)
class TickReport:
    """Resumo de um tick.

    Attributes:
        tick_kind: Tipo do tick
        status: ok | skipped (já rodando) | inactive (desativado)
        started_at: Início (UTC)
        duration_ms: Duração total
        result: Resumo devolvido pelo handler
        correlation_id: Id de correlação dos logs do tick
    """

    tick_kind: str
    status: str
    started_at: datetime
    duration_ms: float = 0.0
    result: dict[str, Any] = field(default_factory=dict)
    correlation_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick_kind": self.tick_kind,
            "status": self.status,
            "started_at": format_datetime(self.started_at),
            "duration_ms": round(self.duration_ms, 2),
            "result": self.result,
            "correlation_id": self.correlation_id,
        }


class TickRunner:
    """Executa handlers do SchedulerConfig com deadline.

    Args:
        config: Jobs registrados
        budget_seconds: Orçamento por tick
    """

    def __init__(self, config: SchedulerConfig, budget_seconds: float) -> None:
        self._config = config
        self._budget = budget_seconds
        self._running: set[str] = set()

    def is_running(self, tick_kind: str) -> bool:
        return tick_kind in self._running

    async def run(self, tick_kind: str) -> TickReport:
        """Executa um tick.

        Raises:
            ValueError: Tipo de tick desconhecido
        """
        job = self._config.get(tick_kind)
        started_at = utc_now()

        if not self._config.active:
            return TickReport(tick_kind, STATUS_INACTIVE, started_at)
        if tick_kind in self._running:
            logger.info("tick_skipped_overlap", extra={"tick_kind": tick_kind})
            return TickReport(tick_kind, STATUS_SKIPPED, started_at)

        self._running.add(tick_kind)
        started = time.monotonic()
        deadline = started + self._budget
        try:
            with correlation_scope(generate_correlation_id()) as correlation_id:
                logger.info("tick_started", extra={"tick_kind": tick_kind})
                result = await job.handler(deadline)
                duration_ms = (time.monotonic() - started) * 1000
                record_latency("scheduler", tick_kind, duration_ms)
                logger.info(
                    "tick_finished",
                    extra={"tick_kind": tick_kind, "duration_ms": round(duration_ms, 2)},
                )
        finally:
            self._running.discard(tick_kind)

        return TickReport(
            tick_kind,
            STATUS_OK,
            started_at,
            duration_ms=duration_ms,
            result=result,
            correlation_id=correlation_id,
        )
