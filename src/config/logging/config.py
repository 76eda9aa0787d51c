"""Configuração de logging do processo.

O root logger recebe um único StreamHandler JSON. Contexto
(correlation_id, service) e mascaramento de campos sensíveis são
aplicados no handler, então qualquer logger do processo sai no mesmo
formato sem configuração extra.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter, SensitiveFieldFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_SERVICE_NAME = "vendor_bridge"

# Em DEBUG esses loggers imprimem headers (Authorization: Bearer ...)
_QUIET_LOGGERS = ("httpx", "httpcore")


def _normalize_level(level: str) -> str:
    normalized = level.upper()
    if normalized not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )
    return normalized


def _json_handler(
    level: str,
    service_name: str,
    correlation_id_getter: Callable[[], str] | None,
) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(create_json_formatter())
    # Contexto antes do mascaramento
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter))
    handler.addFilter(SensitiveFieldFilter())
    return handler


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
) -> None:
    """Instala o handler JSON no root logger, descartando os anteriores.

    Chamada pelo bootstrap (`initialize_app` / `initialize_test_app`).
    `correlation_id_getter` normalmente é
    `app.observability.get_correlation_id`, que lê o ContextVar do tick
    ou request corrente.

    Raises:
        ValueError: nível fora de VALID_LOG_LEVELS.
    """
    normalized = _normalize_level(level)

    root = logging.getLogger()
    root.setLevel(normalized)
    root.handlers = [_json_handler(normalized, service_name, correlation_id_getter)]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_fallback(
    logger: logging.Logger,
    component: str,
    reason: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """Evento `fallback_applied`: um componente não fez o caminho completo.

    Usado pelas rodadas de tick quando o orçamento acaba e parte do
    trabalho fica para o próximo disparo (reason="deadline_reached").
    """
    extra: dict[str, object] = {"fallback_used": True, "component": component}
    if reason:
        extra["reason"] = reason
    if elapsed_ms is not None:
        extra["elapsed_ms"] = round(elapsed_ms, 2)
    logger.info("fallback_applied", extra=extra)
