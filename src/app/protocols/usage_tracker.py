"""Protocolo de rastreamento de uso da API do gateway (opcional)."""

from __future__ import annotations

from typing import Protocol


class UsageTrackerProtocol(Protocol):
    """Registra (endpoint, method, status_code) por chamada ao gateway."""

    def record(self, endpoint: str, method: str, status_code: int | None) -> None: ...
