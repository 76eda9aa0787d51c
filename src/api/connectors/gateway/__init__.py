"""Conector do gateway WhatsApp: transporte, cliente e classificação de erros."""

from api.connectors.gateway.client import GatewayClient, normalize_remote_status
from api.connectors.gateway.errors import (
    classify_exception,
    classify_response,
    parse_retry_after,
)
from api.connectors.gateway.http_base import HttpClient, HttpClientConfig

__all__ = [
    "GatewayClient",
    "HttpClient",
    "HttpClientConfig",
    "classify_exception",
    "classify_response",
    "normalize_remote_status",
    "parse_retry_after",
]
