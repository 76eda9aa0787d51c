"""Métricas via logging estruturado.

Os records (`metric_type` em extra) são agregados fora do processo.

Métricas:
- latency: duração de chamadas ao gateway e de ticks
- job_outcome: desfecho de MessageJob/SyncJob por tentativa
- session_health: resultado de health check por vendor
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Componente (ex: "gateway_client", "scheduler")
        operation: Operação (ex: "send_message", "session-check")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação (opcional; o filter preenche)
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_job_outcome(
    job_type: str,
    status: str,
    attempts: int,
    error_kind: str | None = None,
) -> None:
    """Registra desfecho de uma tentativa de job.

    Args:
        job_type: "message" ou "sync"
        status: Status do job após a tentativa
        attempts: Tentativas consumidas
        error_kind: Tipo de erro, se houve
    """
    extra: dict[str, object] = {
        "metric_type": "job_outcome",
        "job_type": job_type,
        "status": status,
        "attempts": attempts,
    }
    if error_kind:
        extra["error_kind"] = error_kind
    logger.info("metric_job_outcome", extra=extra)


def record_session_health(
    vendor_id: str,
    state: str,
    consecutive_failures: int,
) -> None:
    """Registra resultado de health check de sessão."""
    logger.info(
        "metric_session_health",
        extra={
            "metric_type": "session_health",
            "vendor_id": vendor_id,
            "state": state,
            "consecutive_failures": consecutive_failures,
        },
    )
