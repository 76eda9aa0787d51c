"""Ativação, desativação e ticks agendados."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.bootstrap import collect_settings_errors
from utils.errors import ConfigurationError

if TYPE_CHECKING:
    from app.bootstrap.container import AppContainer
    from app.scheduling import TickReport

logger = logging.getLogger(__name__)


async def on_activate(container: AppContainer) -> dict[str, Any]:
    """Ativa o bridge.

    Valida configuração, aciona `on_activate` dos componentes (o Auth
    Manager garante o signing secret) e liga os jobs agendados.

    Raises:
        ConfigurationError: Configuração ausente ou inválida
    """
    errors = collect_settings_errors(container)
    if errors:
        logger.error("activation_failed", extra={"errors": errors})
        raise ConfigurationError("Configuração inválida: " + "; ".join(errors))

    for component in container.lifecycle_components:
        await component.on_activate()
        logger.debug("component_activated", extra={"component": component.lifecycle_name})

    schedule = container.scheduler.activate()
    logger.info("bridge_activated", extra={"scheduled_jobs": [j["name"] for j in schedule]})
    return {"scheduled_jobs": schedule}


async def on_deactivate(container: AppContainer) -> None:
    """Desliga os jobs agendados; sessões e jobs persistidos são mantidos."""
    container.scheduler.deactivate()
    for component in container.lifecycle_components:
        await component.on_deactivate()
    logger.info("bridge_deactivated")


async def on_scheduled_tick(container: AppContainer, tick_kind: str) -> TickReport:
    """Executa um tick agendado.

    Raises:
        ValueError: Tipo de tick desconhecido
    """
    return await container.runner.run(tick_kind)
