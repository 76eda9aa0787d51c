"""Protocolo do Credential Store.

Guarda o signing secret, credenciais de API por vendor e o cache de
AuthTokens. Somente Auth Manager lê e grava tokens.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.auth_token import AuthToken


class CredentialStoreProtocol(ABC):
    """Contrato assíncrono do Credential Store."""

    @abstractmethod
    async def get_signing_secret_async(self) -> str | None: ...

    @abstractmethod
    async def set_signing_secret_async(self, secret: str) -> None: ...

    @abstractmethod
    async def get_vendor_credentials_async(self, vendor_id: str) -> dict[str, str] | None: ...

    @abstractmethod
    async def set_vendor_credentials_async(
        self, vendor_id: str, credentials: dict[str, str]
    ) -> None: ...

    @abstractmethod
    async def load_token_async(self, subject: str) -> AuthToken | None: ...

    @abstractmethod
    async def save_token_async(self, token: AuthToken) -> None: ...

    @abstractmethod
    async def delete_token_async(self, subject: str) -> bool: ...

    @abstractmethod
    async def clear_tokens_async(self) -> int:
        """Remove todos os tokens em cache; retorna quantos."""
        ...
