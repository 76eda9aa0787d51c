"""Helpers de logging do gateway (sem tokens nem telefones)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from utils.errors import GatewayBridgeError

logger = logging.getLogger(__name__)


def truncate_body(response: httpx.Response, max_chars: int) -> str:
    """Corpo bruto truncado para diagnóstico em log."""
    try:
        text = response.text
    except UnicodeDecodeError:
        return "<binary>"
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "...[truncated]"


def log_gateway_error(
    error: GatewayBridgeError,
    method: str,
    endpoint: str,
    body_excerpt: str | None = None,
    gateway_error_code: str = "",
) -> None:
    """Loga erro classificado do gateway."""
    logger.warning(
        "gateway_call_failed",
        extra={
            "method": method,
            "endpoint": endpoint,
            "error_kind": error.kind,
            "status_code": error.status_code,
            "transient": error.transient,
            "gateway_error_code": gateway_error_code or None,
            "body_excerpt": body_excerpt,
        },
    )


def log_success(method: str, endpoint: str, status_code: int, latency_ms: float) -> None:
    logger.debug(
        "gateway_call_ok",
        extra={
            "method": method,
            "endpoint": endpoint,
            "status_code": status_code,
            "latency_ms": round(latency_ms, 2),
        },
    )


def log_auth_retry(method: str, endpoint: str, subject: str) -> None:
    logger.info(
        "gateway_auth_retry",
        extra={"method": method, "endpoint": endpoint, "subject": subject},
    )
