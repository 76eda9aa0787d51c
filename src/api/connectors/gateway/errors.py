"""Classificação de respostas e exceções do gateway.

Mapeia status HTTP e falhas de transporte para os erros de
utils.errors. Mensagens para o chamador são genéricas; o corpo bruto
só vai para log (truncado).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Any

import httpx

from app.domain.clock import utc_now
from utils.errors import (
    CredentialRejected,
    GatewayBridgeError,
    GatewayProtocolError,
    GatewayRateLimited,
    GatewayRejected,
    GatewayTimeout,
    NetworkUnavailable,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class GatewayApiError:
    """Erro informado no corpo de resposta do gateway."""

    status_code: int
    error_code: str
    message: str


def parse_gateway_error(status_code: int, body: Any) -> GatewayApiError:
    """Extrai `error`/`message`/`code` do corpo, quando houver.

    O gateway usa `{"error": "..."}` ou `{"message": "..."}`;
    `error` também pode ser um objeto com `code` e `message`.
    """
    error_code = ""
    message = ""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            error_code = str(error.get("code", ""))
            message = str(error.get("message", ""))
        elif error:
            message = str(error)
        if not message and body.get("message"):
            message = str(body["message"])
        if not error_code and body.get("code"):
            error_code = str(body["code"])
    return GatewayApiError(status_code=status_code, error_code=error_code, message=message)


def parse_retry_after(headers: Mapping[str, str], body: Any = None) -> float | None:
    """Lê Retry-After (segundos ou HTTP-date) do header ou `retry_after` do corpo."""
    raw = headers.get("retry-after") or headers.get("Retry-After")
    if raw:
        raw = raw.strip()
        try:
            return max(float(raw), 0.0)
        except ValueError:
            try:
                when = parsedate_to_datetime(raw)
            except (TypeError, ValueError):
                when = None
            if when is not None:
                return max((when - utc_now()).total_seconds(), 0.0)
    if isinstance(body, dict) and body.get("retry_after") is not None:
        try:
            return max(float(body["retry_after"]), 0.0)
        except (TypeError, ValueError):
            return None
    return None


def decode_body(response: httpx.Response) -> Any:
    """Decodifica JSON; None se vazio ou inválido."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def classify_response(response: httpx.Response) -> GatewayBridgeError | None:
    """Classifica resposta HTTP; None quando sucesso (2xx/3xx).

    - 401 → CredentialRejected
    - 429 → GatewayRateLimited (retry_after)
    - 5xx → NetworkUnavailable (transiente)
    - demais 4xx → GatewayRejected (permanente)
    """
    status = response.status_code
    if status < 400:
        return None

    body = decode_body(response)
    if status == 401:
        return CredentialRejected("Credenciais recusadas pelo gateway", status_code=status)
    if status == 429:
        return GatewayRateLimited(
            "Gateway limitou a taxa de requisições",
            retry_after=parse_retry_after(response.headers, body),
        )
    if status >= 500:
        return NetworkUnavailable("Gateway indisponível", status_code=status)
    return GatewayRejected("Requisição recusada pelo gateway", status_code=status)


def classify_exception(exc: Exception) -> GatewayBridgeError:
    """Classifica exceção de transporte httpx."""
    if isinstance(exc, GatewayBridgeError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return GatewayTimeout("Tempo esgotado aguardando o gateway")
    if isinstance(exc, httpx.TransportError):
        return NetworkUnavailable("Falha de conexão com o gateway")
    return NetworkUnavailable("Falha inesperada de comunicação com o gateway")


def parse_success_body(response: httpx.Response) -> dict[str, Any]:
    """Corpo de sucesso como dict.

    Corpo vazio vira {}; JSON inválido ou não-objeto é GatewayProtocolError.
    Listas são embrulhadas em {"items": [...]}.
    """
    if not response.content:
        return {}
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise GatewayProtocolError("Resposta inválida do gateway") from e
    if isinstance(data, dict):
        return data
    if isinstance(data, list):
        return {"items": data}
    raise GatewayProtocolError("Resposta inválida do gateway")
