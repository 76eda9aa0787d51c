"""Política de retry/backoff compartilhada por mensagens e sync.

delay(n) = min(base × 2^(n-1), teto) + jitter, nunca menor que o
`retry_after` do gateway nem que o delay anterior do mesmo job.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from config.settings import DispatchSettings
from utils.errors import GatewayBridgeError, GatewayRateLimited


@dataclass(frozen=True, slots=True)
class RetryDecision:
    """Decisão após uma tentativa falha.

    Attributes:
        retry: Job volta para pending com `delay`
        delay: Segundos até a próxima tentativa (se retry)
        exhausted: Falha transitória sem tentativas restantes (abandoned)
    """

    retry: bool
    delay: float | None = None
    exhausted: bool = False


class BackoffPolicy:
    """Backoff exponencial com teto e jitter.

    Args:
        base_seconds: Delay da primeira retentativa
        max_seconds: Teto do termo exponencial
        jitter_seconds: Jitter máximo (uniforme em [0, jitter])
        max_attempts: Tentativas totais antes de abandonar
        rng: Fonte de aleatoriedade em [0, 1) (injetável em testes)
    """

    def __init__(
        self,
        base_seconds: float = 2.0,
        max_seconds: float = 300.0,
        jitter_seconds: float = 1.0,
        max_attempts: int = 5,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self.base_seconds = base_seconds
        self.max_seconds = max_seconds
        self.jitter_seconds = jitter_seconds
        self.max_attempts = max_attempts
        self._rng = rng

    @classmethod
    def from_settings(
        cls,
        settings: DispatchSettings,
        rng: Callable[[], float] = random.random,
    ) -> BackoffPolicy:
        return cls(
            base_seconds=settings.backoff_base_seconds,
            max_seconds=settings.backoff_max_seconds,
            jitter_seconds=settings.backoff_jitter_seconds,
            max_attempts=settings.max_attempts,
            rng=rng,
        )

    def delay_for(
        self,
        attempt: int,
        retry_after: float | None = None,
        previous: float | None = None,
    ) -> float:
        """Delay após a tentativa `attempt` (1-based)."""
        exponent = max(attempt - 1, 0)
        delay = min(self.base_seconds * (2 ** exponent), self.max_seconds)
        delay += self.jitter_seconds * self._rng()
        if retry_after is not None:
            delay = max(delay, retry_after)
        if previous is not None:
            delay = max(delay, previous)
        return round(delay, 3)

    def decide(
        self,
        error: GatewayBridgeError,
        attempt: int,
        history: tuple[float, ...] = (),
    ) -> RetryDecision:
        """Classifica a falha da tentativa `attempt`.

        Permanente → sem retry. Transitória → retry até `max_attempts`.
        """
        if not error.transient:
            return RetryDecision(retry=False)
        if attempt >= self.max_attempts:
            return RetryDecision(retry=False, exhausted=True)

        retry_after = error.retry_after if isinstance(error, GatewayRateLimited) else None
        previous = history[-1] if history else None
        return RetryDecision(
            retry=True,
            delay=self.delay_for(attempt, retry_after=retry_after, previous=previous),
        )
