"""Stores: implementações concretas de persistência.

Módulos disponíveis:
    - memory_stores: Stores em memória para desenvolvimento/testes
    - redis_session_store: VendorSession em Redis
    - redis_job_store: MessageJob/SyncJob em Redis
    - redis_credential_store: signing secret, credenciais e tokens em Redis
    - redis_errors: RedisError → RedisConnectionError
"""

from __future__ import annotations

from app.infra.stores.memory_stores import (
    MemoryCredentialStore,
    MemoryMessageJobStore,
    MemorySyncJobStore,
    MemoryVendorSessionStore,
)
from app.infra.stores.redis_credential_store import RedisCredentialStore
from app.infra.stores.redis_job_store import RedisMessageJobStore, RedisSyncJobStore
from app.infra.stores.redis_session_store import RedisVendorSessionStore

__all__ = [
    # Memory (dev/test)
    "MemoryCredentialStore",
    "MemoryMessageJobStore",
    "MemorySyncJobStore",
    "MemoryVendorSessionStore",
    # Redis
    "RedisCredentialStore",
    "RedisMessageJobStore",
    "RedisSyncJobStore",
    "RedisVendorSessionStore",
]
