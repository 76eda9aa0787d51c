"""Liveness (`/health`) e readiness (`/ready`) do bridge.

Readiness exige o bridge ativado (jobs agendados ligados) e, quando
algum store usa Redis, um PING respondido dentro do timeout.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.logging import DEFAULT_SERVICE_NAME

logger = logging.getLogger(__name__)

router = APIRouter()

REDIS_PING_TIMEOUT_SECONDS = 2.0


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class DependencyCheck:
    status: Literal["ok", "skipped", "failed"]
    latency_ms: float | None = None
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.status != "failed"

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Processo de pé; não consulta dependências."""
    return HealthResponse(status="healthy", service=DEFAULT_SERVICE_NAME, timestamp=_now_iso())


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    state = request.app.state
    container = getattr(state, "container", None)
    redis = await _ping_redis(getattr(state, "redis_client", None))
    scheduler = DependencyCheck(
        status="ok" if container is not None and container.scheduler.active else "failed"
    )

    ready = redis.passed and scheduler.passed
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "checks": {
                "redis": redis.as_dict(),
                "scheduler": {"status": scheduler.status},
            },
            "timestamp": _now_iso(),
        },
    )


async def _ping_redis(redis_client: Any | None) -> DependencyCheck:
    # Sem cliente: todos os stores em memória
    if redis_client is None:
        return DependencyCheck(status="skipped", error="not_configured")
    started = time.perf_counter()
    try:
        await asyncio.wait_for(redis_client.ping(), timeout=REDIS_PING_TIMEOUT_SECONDS)
    except TimeoutError:
        return DependencyCheck(status="failed", error="timeout")
    except Exception as exc:
        logger.warning("readiness_redis_ping_failed", extra={"error_type": type(exc).__name__})
        return DependencyCheck(status="failed", error=type(exc).__name__)
    elapsed_ms = (time.perf_counter() - started) * 1000
    return DependencyCheck(status="ok", latency_ms=round(elapsed_ms, 2))
