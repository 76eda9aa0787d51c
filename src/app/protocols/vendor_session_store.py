"""Protocolo de persistência de VendorSession."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.vendor_session import VendorSession


class VendorSessionStoreProtocol(ABC):
    """Contrato assíncrono para armazenamento de VendorSession.

    Métodos com sufixo _async, como nos demais stores do projeto.
    Uma chave por vendor; save substitui o registro inteiro.
    """

    @abstractmethod
    async def save_async(self, session: VendorSession) -> None: ...

    @abstractmethod
    async def load_async(self, vendor_id: str) -> VendorSession | None: ...

    @abstractmethod
    async def delete_async(self, vendor_id: str) -> bool: ...

    @abstractmethod
    async def list_async(self) -> list[VendorSession]: ...
