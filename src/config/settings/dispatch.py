"""Settings de despacho de mensagens e sincronização de produtos.

Política de retry/backoff compartilhada por Message Dispatcher
e Sync Coordinator.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class DispatchSettings:
    """Configurações de retry/backoff e cadência de jobs.

    Attributes:
        max_attempts: Tentativas máximas antes de abandoned
        backoff_base_seconds: Delay base (multiplicado por 2^tentativa)
        backoff_max_seconds: Teto do delay exponencial
        backoff_jitter_seconds: Jitter máximo somado ao delay
        retry_interval_seconds: Cadência do tick message-retry
        sync_interval_seconds: Cadência do tick product-sync
        sync_initial_delay_seconds: Atraso antes do primeiro sync de um produto
        max_jobs_per_tick: Limite de jobs iniciados por tick
        auto_messages: Mensagens automáticas por status de pedido,
            no formato `status:template_id` separado por vírgula
    """

    max_attempts: int = 5
    backoff_base_seconds: float = 2.0
    backoff_max_seconds: float = 300.0
    backoff_jitter_seconds: float = 1.0
    retry_interval_seconds: int = 60
    sync_interval_seconds: int = 300
    sync_initial_delay_seconds: int = 30
    max_jobs_per_tick: int = 100
    auto_messages: str = ""

    def validate(self) -> list[str]:
        """Valida configurações de despacho.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.max_attempts < 1:
            errors.append("DISPATCH_MAX_ATTEMPTS deve ser >= 1")

        if self.backoff_base_seconds <= 0:
            errors.append("DISPATCH_BACKOFF_BASE_SECONDS deve ser > 0")

        if self.backoff_max_seconds < self.backoff_base_seconds:
            errors.append("DISPATCH_BACKOFF_MAX_SECONDS deve ser >= base")

        if self.backoff_jitter_seconds < 0:
            errors.append("DISPATCH_BACKOFF_JITTER_SECONDS deve ser >= 0")

        if self.sync_interval_seconds <= 0:
            errors.append("PRODUCT_SYNC_INTERVAL_SECONDS deve ser > 0")

        if self.retry_interval_seconds <= 0:
            errors.append("MESSAGE_RETRY_INTERVAL_SECONDS deve ser > 0")

        if self.max_jobs_per_tick < 1:
            errors.append("MAX_JOBS_PER_TICK deve ser >= 1")

        try:
            self.auto_message_pairs()
        except ValueError as exc:
            errors.append(f"ORDER_AUTO_MESSAGES inválido: {exc}")

        return errors

    def auto_message_pairs(self) -> list[tuple[str, str]]:
        """Pares (status, template_id) de `auto_messages`.

        Raises:
            ValueError: Entrada sem `status:template_id`
        """
        pairs: list[tuple[str, str]] = []
        for entry in filter(None, (e.strip() for e in self.auto_messages.split(","))):
            status, sep, template_id = entry.partition(":")
            if not sep or not status.strip() or not template_id.strip():
                raise ValueError(entry)
            pairs.append((status.strip().lower(), template_id.strip()))
        return pairs


def _load_from_env() -> DispatchSettings:
    """Carrega DispatchSettings de variáveis de ambiente."""
    return DispatchSettings(
        max_attempts=int(os.getenv("DISPATCH_MAX_ATTEMPTS", "5")),
        backoff_base_seconds=float(os.getenv("DISPATCH_BACKOFF_BASE_SECONDS", "2")),
        backoff_max_seconds=float(os.getenv("DISPATCH_BACKOFF_MAX_SECONDS", "300")),
        backoff_jitter_seconds=float(os.getenv("DISPATCH_BACKOFF_JITTER_SECONDS", "1")),
        retry_interval_seconds=int(os.getenv("MESSAGE_RETRY_INTERVAL_SECONDS", "60")),
        sync_interval_seconds=int(os.getenv("PRODUCT_SYNC_INTERVAL_SECONDS", "300")),
        sync_initial_delay_seconds=int(os.getenv("PRODUCT_SYNC_INITIAL_DELAY_SECONDS", "30")),
        max_jobs_per_tick=int(os.getenv("MAX_JOBS_PER_TICK", "100")),
        auto_messages=os.getenv("ORDER_AUTO_MESSAGES", ""),
    )


@lru_cache(maxsize=1)
def get_dispatch_settings() -> DispatchSettings:
    """Retorna instância cacheada de DispatchSettings."""
    return _load_from_env()
