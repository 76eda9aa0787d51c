"""Gateway HTTP falso para httpx.MockTransport.

Simula as rotas usadas pelo GatewayClient e pelo AuthManager; permite
montar o container completo sem rede.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from app.bootstrap.container import AppContainer, build_container
from app.infra.stores import (
    MemoryCredentialStore,
    MemoryMessageJobStore,
    MemorySyncJobStore,
    MemoryVendorSessionStore,
)
from config.settings import (
    BaseSettings,
    DispatchSettings,
    GatewaySettings,
    SessionSettings,
)

BASE_URL = "https://gw.test/v1"
SIGNING_SECRET = "test-signing-secret-0123456789abcdef"


class FakeGatewayServer:
    """Estado em memória do gateway remoto."""

    def __init__(self) -> None:
        self.sessions: dict[str, dict[str, Any]] = {}
        self.messages: list[dict[str, Any]] = []
        self.products: list[dict[str, Any]] = []
        self.tokens_issued = 0
        self.requests: list[tuple[str, str]] = []
        self._counter = 0

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def activate(self, session_id: str) -> None:
        """Simula o vendor escaneando o QR."""
        self.sessions[session_id]["status"] = "connected"

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v1")
        parts = [p for p in path.split("/") if p]
        method = request.method
        self.requests.append((method, path))
        body: dict[str, Any] = json.loads(request.content) if request.content else {}

        if (method, parts) == ("POST", ["auth", "token"]):
            self.tokens_issued += 1
            return httpx.Response(
                200, json={"token": f"gw-token-{self.tokens_issued}", "expires_in": 3600}
            )
        if (method, parts) == ("GET", ["status"]):
            return httpx.Response(200, json={"status": "ok"})
        if (method, parts) == ("POST", ["sessions"]):
            session_id = self._next("sess")
            self.sessions[session_id] = {
                "session_id": session_id,
                "vendor_id": body["vendor_id"],
                "status": "qr_ready",
            }
            return httpx.Response(201, json=dict(self.sessions[session_id]))
        if (method, parts) == ("POST", ["messages", "send"]):
            message_id = self._next("wamid")
            self.messages.append({**body, "message_id": message_id})
            return httpx.Response(200, json={"message_id": message_id})
        if method == "GET" and len(parts) == 3 and parts[0] == "vendor":
            owned = [s for s in self.sessions.values() if s["vendor_id"] == parts[1]]
            return httpx.Response(200, json={"sessions": owned})
        if len(parts) >= 2 and parts[0] == "sessions":
            return self._session_route(method, parts[1], parts[2:], body)
        return httpx.Response(404, json={"error": {"code": "not_found", "message": path}})

    def _session_route(
        self, method: str, session_id: str, rest: list[str], body: dict[str, Any]
    ) -> httpx.Response:
        session = self.sessions.get(session_id)
        if session is None:
            return httpx.Response(404, json={"error": {"code": "session_not_found"}})
        if method == "DELETE" and not rest:
            del self.sessions[session_id]
            return httpx.Response(200, json={"deleted": True})
        if method == "GET" and rest == ["qr"]:
            return httpx.Response(200, json={"qr_code": f"data:image/png;base64,{session_id}"})
        if method == "GET" and rest == ["status"]:
            return httpx.Response(200, json=dict(session))
        if method == "PUT" and rest == ["metadata"]:
            session["metadata"] = body.get("metadata", {})
            return httpx.Response(200, json={"metadata": session["metadata"]})
        if method == "POST" and rest == ["products"]:
            product_id = self._next("catalog")
            self.products.append({"session_id": session_id, **body})
            return httpx.Response(200, json={"product_id": product_id})
        return httpx.Response(405, json={"error": "method_not_allowed"})


def build_test_container(
    server: FakeGatewayServer,
    *,
    gateway_settings: GatewaySettings | None = None,
    clock=None,
) -> AppContainer:
    """Container completo com stores em memória e transporte falso."""
    kwargs: dict[str, Any] = {}
    if clock is not None:
        kwargs["clock"] = clock
    return build_container(
        base_settings=BaseSettings(),
        gateway_settings=gateway_settings or GatewaySettings(api_base_url=BASE_URL),
        session_settings=SessionSettings(),
        dispatch_settings=DispatchSettings(),
        credential_store=MemoryCredentialStore(),
        session_store=MemoryVendorSessionStore(),
        message_store=MemoryMessageJobStore(),
        sync_store=MemorySyncJobStore(),
        gateway_transport=httpx.MockTransport(server.handler),
        seed_secret=SIGNING_SECRET,
        **kwargs,
    )
