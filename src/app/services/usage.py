"""Rastreamento de uso da API do gateway.

Escolhido uma vez no bootstrap: LoggingUsageTracker quando habilitado,
NullUsageTracker caso contrário.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter

logger = logging.getLogger(__name__)


class NullUsageTracker:
    """Não registra nada."""

    def record(self, endpoint: str, method: str, status_code: int | None) -> None:
        return None

    def snapshot(self) -> dict[str, int]:
        return {}


class LoggingUsageTracker:
    """Conta chamadas por (method, endpoint, status) e emite `gateway_api_usage`."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def record(self, endpoint: str, method: str, status_code: int | None) -> None:
        key = f"{method.upper()} {endpoint} {status_code if status_code is not None else 'error'}"
        with self._lock:
            self._counts[key] += 1
        logger.info(
            "gateway_api_usage",
            extra={
                "endpoint": endpoint,
                "http_method": method.upper(),
                "status_code": status_code,
            },
        )

    def snapshot(self) -> dict[str, int]:
        """Contagens acumuladas desde o start do processo."""
        with self._lock:
            return dict(self._counts)


def build_usage_tracker(enabled: bool) -> LoggingUsageTracker | NullUsageTracker:
    return LoggingUsageTracker() if enabled else NullUsageTracker()
