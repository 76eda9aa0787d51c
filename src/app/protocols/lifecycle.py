"""Capacidade de ciclo de vida (ativação/desativação).

Componentes que precisam reagir a on_activate/on_deactivate herdam
LifecycleAware e sobrescrevem apenas o que usam.
"""

from __future__ import annotations

from abc import ABC


class LifecycleAware(ABC):  # noqa: B024
    """Hooks de ciclo de vida com implementação padrão vazia."""

    lifecycle_name: str = ""

    async def on_activate(self) -> None:
        return None

    async def on_deactivate(self) -> None:
        return None
