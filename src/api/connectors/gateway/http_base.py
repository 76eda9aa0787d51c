"""Transporte HTTP base (httpx) para o gateway.

Sem retry: a única repetição permitida é a de 401 feita pelo
GatewayClient. Retries de negócio ficam com dispatcher/coordinator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Métodos cujo payload vai na query string
QUERY_METHODS = frozenset({"GET", "DELETE"})


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP."""

    timeout_seconds: float = 30.0
    default_headers: dict[str, str] = field(
        default_factory=lambda: {"Content-Type": "application/json"}
    )
    verify_ssl: bool = True


class HttpClient:
    """Cliente HTTP assíncrono com um AsyncClient compartilhado.

    Args:
        config: Configuração de timeout/headers
        transport: Transporte httpx opcional (ex: httpx.MockTransport em testes)
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or HttpClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                verify=self._config.verify_ssl,
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        payload: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Executa uma requisição única.

        GET/DELETE enviam payload como query string; demais como JSON.

        Raises:
            httpx.TimeoutException: Timeout da requisição
            httpx.TransportError: Falha de conexão/transporte
        """
        method = method.upper()
        merged_headers = {**self._config.default_headers, **(headers or {})}
        kwargs: dict[str, Any] = {"headers": merged_headers}
        if payload:
            if method in QUERY_METHODS:
                kwargs["params"] = payload
            else:
                kwargs["json"] = payload
        return await self._get_client().request(method, url, **kwargs)

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("http_client_closed")
        self._client = None
