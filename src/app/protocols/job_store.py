"""Protocolos de persistência de MessageJob e SyncJob."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.jobs import MessageJob, SyncJob


class MessageJobStoreProtocol(ABC):
    """Contrato para jobs de mensagem."""

    @abstractmethod
    async def save_async(self, job: MessageJob) -> None: ...

    @abstractmethod
    async def load_async(self, job_id: str) -> MessageJob | None: ...

    @abstractmethod
    async def list_due_async(self, now: datetime, limit: int) -> list[MessageJob]:
        """Jobs pending com next_retry_at <= now, mais antigos primeiro."""
        ...

    @abstractmethod
    async def list_by_vendor_async(self, vendor_id: str) -> list[MessageJob]: ...


class SyncJobStoreProtocol(ABC):
    """Contrato para jobs de sincronização de produto."""

    @abstractmethod
    async def save_async(self, job: SyncJob) -> None: ...

    @abstractmethod
    async def load_async(self, job_id: str) -> SyncJob | None: ...

    @abstractmethod
    async def find_pending_async(
        self, vendor_id: str, product_id: str
    ) -> SyncJob | None:
        """Job pending do par (vendor, produto), se houver."""
        ...

    @abstractmethod
    async def list_due_async(self, now: datetime, limit: int) -> list[SyncJob]: ...

    @abstractmethod
    async def list_by_vendor_async(self, vendor_id: str) -> list[SyncJob]: ...
