"""Gateway Client: chamadas autenticadas ao gateway WhatsApp.

Anexa o bearer token do subject, aplica timeout e, em 401, invalida o
token e repete uma única vez com token novo. Nenhum outro retry aqui.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from api.connectors.gateway.errors import (
    classify_exception,
    classify_response,
    decode_body,
    parse_gateway_error,
    parse_success_body,
)
from api.connectors.gateway.gateway_logging import (
    log_auth_retry,
    log_gateway_error,
    log_success,
    truncate_body,
)
from api.connectors.gateway.http_base import HttpClient, HttpClientConfig
from app.domain.auth_token import SYSTEM_SUBJECT
from app.observability import record_latency
from app.protocols.gateway_client import RemoteSessionStatus
from app.protocols.lifecycle import LifecycleAware
from utils.errors import CredentialRejected, GatewayProtocolError

if TYPE_CHECKING:
    from app.protocols.gateway_client import TokenProviderProtocol
    from app.protocols.usage_tracker import UsageTrackerProtocol
    from config.settings import GatewaySettings
    from utils.errors import GatewayBridgeError

logger = logging.getLogger(__name__)

# Status crus do gateway → status normalizado
_REMOTE_STATUS_MAP: dict[str, RemoteSessionStatus] = {
    "ready": RemoteSessionStatus.ACTIVE,
    "authenticated": RemoteSessionStatus.ACTIVE,
    "active": RemoteSessionStatus.ACTIVE,
    "connected": RemoteSessionStatus.ACTIVE,
    "initializing": RemoteSessionStatus.PENDING,
    "qr_ready": RemoteSessionStatus.PENDING,
    "pending": RemoteSessionStatus.PENDING,
    "disconnected": RemoteSessionStatus.REVOKED,
    "failed": RemoteSessionStatus.REVOKED,
    "revoked": RemoteSessionStatus.REVOKED,
    "logged_out": RemoteSessionStatus.REVOKED,
}


def normalize_remote_status(raw: str | None) -> RemoteSessionStatus:
    """Normaliza status remoto; desconhecido conta como pending."""
    if not raw:
        return RemoteSessionStatus.PENDING
    return _REMOTE_STATUS_MAP.get(raw.strip().lower(), RemoteSessionStatus.PENDING)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _require(data: dict[str, Any], *keys: str) -> Any:
    """Primeiro valor não-vazio entre as chaves; senão GatewayProtocolError."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    raise GatewayProtocolError(f"Resposta do gateway sem campo {keys[0]}")


class GatewayClient(LifecycleAware):
    """Cliente autenticado do gateway.

    Args:
        settings: GatewaySettings (URL base, timeout, limites de log)
        token_provider: Fonte de tokens por subject (Auth Manager)
        http_client: Transporte HTTP (criado a partir das settings se None)
        usage_tracker: Rastreador opcional de uso da API
    """

    lifecycle_name = "gateway_client"

    def __init__(
        self,
        settings: GatewaySettings,
        token_provider: TokenProviderProtocol,
        http_client: HttpClient | None = None,
        usage_tracker: UsageTrackerProtocol | None = None,
    ) -> None:
        self._settings = settings
        self._tokens = token_provider
        self._http = http_client or HttpClient(
            HttpClientConfig(timeout_seconds=settings.request_timeout_seconds)
        )
        self._usage = usage_tracker

    # ──────────────────────────────────────────────────────────────
    # Chamada genérica
    # ──────────────────────────────────────────────────────────────

    async def call(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
        subject: str = SYSTEM_SUBJECT,
    ) -> dict[str, Any]:
        """Executa chamada autenticada.

        Args:
            method: Método HTTP
            endpoint: Caminho relativo à URL base
            payload: Query (GET/DELETE) ou corpo JSON (POST/PUT)
            subject: Subject do token (vendor_id ou "system")

        Returns:
            Corpo JSON da resposta (dict)

        Raises:
            AuthError: Falha ao obter token
            CredentialRejected: 401 mesmo após renovar o token
            GatewayBridgeError: Demais falhas classificadas
        """
        method = method.upper()
        token = await self._tokens.get_token(subject)
        response = await self._send(method, endpoint, payload, token)

        if response.status_code == 401:
            log_auth_retry(method, endpoint, subject)
            await self._tokens.invalidate(subject)
            token = await self._tokens.get_token(subject)
            response = await self._send(method, endpoint, payload, token)
            if response.status_code == 401:
                error = CredentialRejected(
                    "Credenciais recusadas pelo gateway após renovação",
                    status_code=401,
                )
                self._log_error(error, method, endpoint, response)
                raise error

        return self._handle_response(method, endpoint, response)

    async def _send(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None,
        token: str,
    ) -> httpx.Response:
        url = self._settings.build_url(endpoint)
        started = time.perf_counter()
        try:
            response = await self._http.request(
                method,
                url,
                payload=payload,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            error = classify_exception(exc)
            self._track(endpoint, method, None)
            log_gateway_error(error, method, endpoint)
            raise error from exc

        latency_ms = (time.perf_counter() - started) * 1000
        self._track(endpoint, method, response.status_code)
        record_latency("gateway_client", f"{method} {endpoint.split('?')[0]}", latency_ms)
        if response.status_code < 400:
            log_success(method, endpoint, response.status_code, latency_ms)
        return response

    def _handle_response(
        self,
        method: str,
        endpoint: str,
        response: httpx.Response,
    ) -> dict[str, Any]:
        error = classify_response(response)
        if error is not None:
            self._log_error(error, method, endpoint, response)
            raise error
        try:
            return parse_success_body(response)
        except GatewayProtocolError as exc:
            self._log_error(exc, method, endpoint, response)
            raise

    def _log_error(
        self,
        error: GatewayBridgeError,
        method: str,
        endpoint: str,
        response: httpx.Response,
    ) -> None:
        api_error = parse_gateway_error(response.status_code, decode_body(response))
        log_gateway_error(
            error,
            method,
            endpoint,
            truncate_body(response, self._settings.log_body_max_chars),
            gateway_error_code=api_error.error_code,
        )

    def _track(self, endpoint: str, method: str, status_code: int | None) -> None:
        if self._usage is not None:
            self._usage.record(endpoint.split("?")[0], method, status_code)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def on_deactivate(self) -> None:
        await self.aclose()

    # ──────────────────────────────────────────────────────────────
    # Sessões
    # ──────────────────────────────────────────────────────────────

    async def create_session(self, vendor_id: str, session_name: str) -> dict[str, Any]:
        """Inicia sessão/pareamento; retorna ao menos client_id e status."""
        data = await self.call(
            "POST",
            "/sessions",
            {"vendor_id": vendor_id, "session_name": session_name},
            subject=vendor_id,
        )
        data["client_id"] = str(_require(data, "client_id", "session_id"))
        data["remote_status"] = normalize_remote_status(data.get("status"))
        return data

    async def get_pairing_code(self, vendor_id: str, handle: str) -> dict[str, Any]:
        """Payload de QR/handshake do pareamento."""
        data = await self.call("GET", f"/sessions/{_segment(handle)}/qr", subject=vendor_id)
        _require(data, "qr_code", "qr")
        return data

    async def get_session_status(self, vendor_id: str, handle: str) -> dict[str, Any]:
        """Status remoto; adiciona `remote_status` normalizado."""
        data = await self.call(
            "GET", f"/sessions/{_segment(handle)}/status", subject=vendor_id
        )
        raw_status = _require(data, "status")
        data["remote_status"] = normalize_remote_status(str(raw_status))
        return data

    async def delete_session(self, vendor_id: str, handle: str) -> dict[str, Any]:
        return await self.call("DELETE", f"/sessions/{_segment(handle)}", subject=vendor_id)

    async def list_vendor_sessions(self, vendor_id: str) -> list[dict[str, Any]]:
        """Sessões conhecidas pelo gateway para o vendor."""
        data = await self.call(
            "GET", f"/vendor/{_segment(vendor_id)}/sessions", subject=vendor_id
        )
        sessions = data.get("sessions", data.get("items", []))
        if not isinstance(sessions, list):
            raise GatewayProtocolError("Resposta do gateway sem lista de sessões")
        return [s for s in sessions if isinstance(s, dict)]

    async def update_session_metadata(
        self, vendor_id: str, handle: str, metadata: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.call(
            "PUT",
            f"/sessions/{_segment(handle)}/metadata",
            {"metadata": metadata},
            subject=vendor_id,
        )

    # ──────────────────────────────────────────────────────────────
    # Mensagens e catálogo
    # ──────────────────────────────────────────────────────────────

    async def send_message(
        self,
        vendor_id: str,
        remote_session_id: str,
        recipient: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """Envia payload renderizado; retorna message_id do gateway."""
        data = await self.call(
            "POST",
            "/messages/send",
            {
                "session_id": remote_session_id,
                "recipient": recipient,
                "type": payload.get("type", "text"),
                "content": payload.get("content", {}),
            },
            subject=vendor_id,
        )
        data["message_id"] = str(_require(data, "message_id", "id"))
        return data

    async def sync_product(
        self,
        vendor_id: str,
        remote_session_id: str,
        product: dict[str, Any],
    ) -> dict[str, Any]:
        """Cria/atualiza produto no catálogo; retorna product_id do gateway."""
        data = await self.call(
            "POST",
            f"/sessions/{_segment(remote_session_id)}/products",
            product,
            subject=vendor_id,
        )
        data["product_id"] = str(_require(data, "product_id", "id"))
        return data

    async def test_connection(self) -> dict[str, Any]:
        """Verifica conectividade e credenciais com o gateway (GET /status)."""
        data = await self.call("GET", "/status")
        if str(data.get("status", "")).lower() != "ok":
            raise GatewayProtocolError("Gateway respondeu status inesperado")
        return data
