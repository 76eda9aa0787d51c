"""Composition root do vendor bridge.

Liga logging ao ContextVar de correlação, valida settings e entrega o
AppContainer do processo. Testes montam o próprio container com
`build_container(...)` e não passam por `get_container`.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from app.bootstrap.container import AppContainer, build_container
from app.observability import get_correlation_id
from config.logging import DEFAULT_SERVICE_NAME, configure_logging

DEFAULT_LOG_LEVEL = "INFO"
# Ambientes onde settings inválidas impedem o boot
STRICT_VALIDATION_ENVS = frozenset({"staging", "production"})

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Logging JSON do processo; nível vem de LOG_LEVEL."""
    configure_logging(
        level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL),
        service_name=DEFAULT_SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
    )


def initialize_test_app() -> None:
    configure_logging(
        level="DEBUG",
        service_name=f"{DEFAULT_SERVICE_NAME}_test",
        correlation_id_getter=get_correlation_id,
    )


def collect_settings_errors(container: AppContainer) -> list[str]:
    """Erros de todas as settings do container, prefixados pelo domínio."""
    checks = {
        "base": container.base_settings,
        "gateway": container.gateway_settings,
        "session": container.session_settings,
        "dispatch": container.dispatch_settings,
    }
    return [
        f"{domain}: {error}"
        for domain, settings in checks.items()
        for error in settings.validate()
    ]


def validate_runtime_settings(container: AppContainer) -> None:
    """Checagem de boot.

    Em staging/production erros viram RuntimeError; em development só
    geram `settings_validation_failed` e o boot segue (on_activate ainda
    recusa ativar com configuração incompleta).
    """
    environment = container.base_settings.environment
    errors = collect_settings_errors(container)
    if not errors:
        logger.info("settings_validated", extra={"environment": environment})
        return

    logger.warning(
        "settings_validation_failed",
        extra={"environment": environment, "error_count": len(errors), "errors": errors},
    )
    if environment in STRICT_VALIDATION_ENVS:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")


@lru_cache(maxsize=1)
def get_container() -> AppContainer:
    """Container do processo, montado a partir do ambiente."""
    return build_container()


__all__ = [
    "AppContainer",
    "build_container",
    "collect_settings_errors",
    "get_container",
    "initialize_app",
    "initialize_test_app",
    "validate_runtime_settings",
]
