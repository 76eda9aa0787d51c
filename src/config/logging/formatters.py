"""Formatter JSON (python-json-logger) com campos obrigatórios."""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Ordem estável dos campos no output
REQUIRED_LOG_FIELDS: tuple[str, ...] = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)

FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Exemplo de output:
        {"asctime": "2026-10-19T10:30:00", "level": "INFO",
         "logger": "app.sessions.manager", "message": "session_transition",
         "correlation_id": "abc-123", "service": "vendor_bridge",
         "vendor_id": "v-1", "from_state": "pairing", "to_state": "connected"}
    """
    format_string = " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS)

    return JsonFormatter(
        format_string,
        rename_fields=FIELD_RENAME_MAP,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
