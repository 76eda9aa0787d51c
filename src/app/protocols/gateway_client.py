"""Protocolos do gateway usados pelo app.

Evita dependência direta da camada api.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Protocol


class TokenProviderProtocol(Protocol):
    """Fornece bearer tokens por subject (implementado pelo Auth Manager)."""

    async def get_token(self, subject: str) -> str: ...

    async def invalidate(self, subject: str) -> None: ...


class GatewayClientProtocol(Protocol):
    """Contrato mínimo do Gateway Client consumido pelo core."""

    async def call(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
        subject: str = ...,
    ) -> dict[str, Any]: ...

    async def create_session(
        self, vendor_id: str, session_name: str
    ) -> dict[str, Any]: ...

    async def get_pairing_code(
        self, vendor_id: str, handle: str
    ) -> dict[str, Any]: ...

    async def get_session_status(
        self, vendor_id: str, handle: str
    ) -> dict[str, Any]: ...

    async def delete_session(self, vendor_id: str, handle: str) -> dict[str, Any]: ...

    async def list_vendor_sessions(self, vendor_id: str) -> list[dict[str, Any]]: ...

    async def update_session_metadata(
        self, vendor_id: str, handle: str, metadata: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def send_message(
        self, vendor_id: str, remote_session_id: str, recipient: str, payload: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def sync_product(
        self, vendor_id: str, remote_session_id: str, product: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def test_connection(self) -> dict[str, Any]: ...


class RemoteSessionStatus(StrEnum):
    """Status remoto normalizado de uma sessão no gateway."""

    ACTIVE = "active"
    PENDING = "pending"
    REVOKED = "revoked"
