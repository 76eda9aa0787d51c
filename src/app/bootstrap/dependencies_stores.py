"""Factories de stores baseadas no backend configurado."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.bootstrap.clients import create_async_redis_client
from app.infra.stores import (
    MemoryCredentialStore,
    MemoryMessageJobStore,
    MemorySyncJobStore,
    MemoryVendorSessionStore,
    RedisCredentialStore,
    RedisMessageJobStore,
    RedisSyncJobStore,
    RedisVendorSessionStore,
)

if TYPE_CHECKING:
    from app.protocols.credential_store import CredentialStoreProtocol
    from app.protocols.job_store import MessageJobStoreProtocol, SyncJobStoreProtocol
    from app.protocols.vendor_session_store import VendorSessionStoreProtocol
    from config.settings import BaseSettings

logger = logging.getLogger(__name__)


def _check_backend(settings: BaseSettings, env_name: str, backend: str) -> None:
    if backend not in ("memory", "redis"):
        msg = f"{env_name} inválido: {backend}"
        raise ValueError(msg)
    if backend == "memory" and not settings.is_development:
        logger.warning(
            "memory_store_in_non_dev",
            extra={"store": env_name, "environment": settings.environment},
        )


def create_session_store(settings: BaseSettings) -> VendorSessionStoreProtocol:
    """Cria store de VendorSession."""
    backend = settings.session_store_backend
    _check_backend(settings, "SESSION_STORE_BACKEND", backend)
    if backend == "redis":
        store: VendorSessionStoreProtocol = RedisVendorSessionStore(
            create_async_redis_client(settings.redis_url)
        )
    else:
        store = MemoryVendorSessionStore()
    logger.info("session_store_created", extra={"backend": backend})
    return store


def create_job_stores(
    settings: BaseSettings,
) -> tuple[MessageJobStoreProtocol, SyncJobStoreProtocol]:
    """Cria stores de MessageJob e SyncJob (mesmo backend)."""
    backend = settings.job_store_backend
    _check_backend(settings, "JOB_STORE_BACKEND", backend)
    if backend == "redis":
        client = create_async_redis_client(settings.redis_url)
        stores: tuple[MessageJobStoreProtocol, SyncJobStoreProtocol] = (
            RedisMessageJobStore(client),
            RedisSyncJobStore(client),
        )
    else:
        stores = (MemoryMessageJobStore(), MemorySyncJobStore())
    logger.info("job_stores_created", extra={"backend": backend})
    return stores


def create_credential_store(settings: BaseSettings) -> CredentialStoreProtocol:
    """Cria Credential Store (signing secret, credenciais e tokens)."""
    backend = settings.credential_store_backend
    _check_backend(settings, "CREDENTIAL_STORE_BACKEND", backend)
    if backend == "redis":
        store: CredentialStoreProtocol = RedisCredentialStore(
            create_async_redis_client(settings.redis_url)
        )
    else:
        store = MemoryCredentialStore()
    logger.info("credential_store_created", extra={"backend": backend})
    return store
