"""Stores em memória, só para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
Registros guardados como JSON para isolar chamadores de mutações.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from app.domain.auth_token import AuthToken
from app.domain.jobs import MessageJob, MessageStatus, SyncJob, SyncStatus
from app.domain.vendor_session import VendorSession
from app.protocols.credential_store import CredentialStoreProtocol
from app.protocols.job_store import MessageJobStoreProtocol, SyncJobStoreProtocol
from app.protocols.vendor_session_store import VendorSessionStoreProtocol

if TYPE_CHECKING:
    from datetime import datetime


class MemoryVendorSessionStore(VendorSessionStoreProtocol):
    """Store de VendorSession em memória, apenas para dev/test."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}  # vendor_id -> json

    async def save_async(self, session: VendorSession) -> None:
        self._store[session.vendor_id] = json.dumps(session.to_dict())

    async def load_async(self, vendor_id: str) -> VendorSession | None:
        data = self._store.get(vendor_id)
        if data is None:
            return None
        return VendorSession.from_dict(json.loads(data))

    async def delete_async(self, vendor_id: str) -> bool:
        return self._store.pop(vendor_id, None) is not None

    async def list_async(self) -> list[VendorSession]:
        return [VendorSession.from_dict(json.loads(d)) for d in self._store.values()]


class MemoryMessageJobStore(MessageJobStoreProtocol):
    """Store de MessageJob em memória, apenas para dev/test."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}  # job_id -> json

    def _all(self) -> list[MessageJob]:
        return [MessageJob.from_dict(json.loads(d)) for d in self._store.values()]

    async def save_async(self, job: MessageJob) -> None:
        self._store[job.job_id] = json.dumps(job.to_dict())

    async def load_async(self, job_id: str) -> MessageJob | None:
        data = self._store.get(job_id)
        return MessageJob.from_dict(json.loads(data)) if data else None

    async def list_due_async(self, now: datetime, limit: int) -> list[MessageJob]:
        due = [j for j in self._all() if j.status == MessageStatus.PENDING and j.is_due(now)]
        due.sort(key=lambda j: j.next_retry_at or j.created_at)
        return due[:limit]

    async def list_by_vendor_async(self, vendor_id: str) -> list[MessageJob]:
        return [j for j in self._all() if j.vendor_id == vendor_id]


class MemorySyncJobStore(SyncJobStoreProtocol):
    """Store de SyncJob em memória, apenas para dev/test."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}  # job_id -> json

    def _all(self) -> list[SyncJob]:
        return [SyncJob.from_dict(json.loads(d)) for d in self._store.values()]

    async def save_async(self, job: SyncJob) -> None:
        self._store[job.job_id] = json.dumps(job.to_dict())

    async def load_async(self, job_id: str) -> SyncJob | None:
        data = self._store.get(job_id)
        return SyncJob.from_dict(json.loads(data)) if data else None

    async def find_pending_async(self, vendor_id: str, product_id: str) -> SyncJob | None:
        for job in self._all():
            if job.key == (vendor_id, product_id) and job.status == SyncStatus.PENDING:
                return job
        return None

    async def list_due_async(self, now: datetime, limit: int) -> list[SyncJob]:
        due = [j for j in self._all() if j.is_due(now)]
        due.sort(key=lambda j: j.next_retry_at or j.created_at)
        return due[:limit]

    async def list_by_vendor_async(self, vendor_id: str) -> list[SyncJob]:
        return [j for j in self._all() if j.vendor_id == vendor_id]


class MemoryCredentialStore(CredentialStoreProtocol):
    """Credential Store em memória, apenas para dev/test."""

    def __init__(self, signing_secret: str | None = None) -> None:
        self._signing_secret = signing_secret
        self._vendor_credentials: dict[str, dict[str, str]] = {}
        self._tokens: dict[str, AuthToken] = {}

    async def get_signing_secret_async(self) -> str | None:
        return self._signing_secret

    async def set_signing_secret_async(self, secret: str) -> None:
        self._signing_secret = secret

    async def get_vendor_credentials_async(self, vendor_id: str) -> dict[str, str] | None:
        creds = self._vendor_credentials.get(vendor_id)
        return dict(creds) if creds is not None else None

    async def set_vendor_credentials_async(
        self, vendor_id: str, credentials: dict[str, str]
    ) -> None:
        self._vendor_credentials[vendor_id] = dict(credentials)

    async def load_token_async(self, subject: str) -> AuthToken | None:
        return self._tokens.get(subject)

    async def save_token_async(self, token: AuthToken) -> None:
        # AuthToken é imutável: troca atômica do objeto inteiro
        self._tokens[token.subject] = token

    async def delete_token_async(self, subject: str) -> bool:
        return self._tokens.pop(subject, None) is not None

    async def clear_tokens_async(self) -> int:
        count = len(self._tokens)
        self._tokens.clear()
        return count
