"""Logging estruturado do vendor bridge.

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="vendor_bridge")

    logger = get_logger(__name__)
    logger.info("session_transition", extra={"vendor_id": "v-1"})

Todo record carrega: asctime, level, logger, message, correlation_id, service.
Tokens, secrets e telefones nunca entram em `extra`.
"""

from config.logging.config import (
    DEFAULT_SERVICE_NAME,
    configure_logging,
    get_logger,
    log_fallback,
)
from config.logging.filters import CorrelationIdFilter, SensitiveFieldFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "DEFAULT_SERVICE_NAME",
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "CorrelationIdFilter",
    "SensitiveFieldFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
    "log_fallback",
]
