"""Filters de logging.

CorrelationIdFilter injeta contexto; SensitiveFieldFilter mascara
campos que nunca devem sair em log (tokens, secrets, telefones).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

REDACTED = "[redacted]"

SENSITIVE_FIELDS = frozenset(
    {
        "token",
        "access_token",
        "authorization",
        "signing_secret",
        "secret",
        "api_key",
        "recipient",
        "phone",
        "assertion",
    }
)


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id e service em cada record.

    correlation_id passado explicitamente via `extra` é preservado.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        record.service = self._service_name
        return True


class SensitiveFieldFilter(logging.Filter):
    """Substitui por REDACTED atributos de record com nome sensível.

    Não descarta records; apenas mascara.
    """

    def __init__(self, fields: frozenset[str] = SENSITIVE_FIELDS) -> None:
        super().__init__()
        self._fields = fields

    def filter(self, record: logging.LogRecord) -> bool:
        for name in self._fields:
            if getattr(record, name, None):
                setattr(record, name, REDACTED)
        return True
