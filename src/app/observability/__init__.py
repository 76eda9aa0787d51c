"""Observabilidade: correlation_id e métricas via logs estruturados."""

from app.observability.correlation import (
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_job_outcome,
    record_latency,
    record_session_health,
)

__all__ = [
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "record_job_outcome",
    "record_latency",
    "record_session_health",
    "reset_correlation_id",
    "set_correlation_id",
]
