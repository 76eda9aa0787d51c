"""Testes das factories de stores."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.bootstrap import dependencies_stores
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
from config.settings import BaseSettings


def test_memory_backends_by_default() -> None:
    settings = BaseSettings()

    message_store, sync_store = dependencies_stores.create_job_stores(settings)

    assert isinstance(dependencies_stores.create_session_store(settings), MemoryVendorSessionStore)
    assert isinstance(message_store, MemoryMessageJobStore)
    assert isinstance(sync_store, MemorySyncJobStore)
    assert isinstance(dependencies_stores.create_credential_store(settings), MemoryCredentialStore)


def test_redis_backends_share_client(monkeypatch) -> None:
    client = MagicMock()
    factory = MagicMock(return_value=client)
    monkeypatch.setattr(dependencies_stores, "create_async_redis_client", factory)
    settings = BaseSettings(
        redis_url="redis://localhost:6379/0",
        session_store_backend="redis",
        job_store_backend="redis",
        credential_store_backend="redis",
    )

    session_store = dependencies_stores.create_session_store(settings)
    message_store, sync_store = dependencies_stores.create_job_stores(settings)
    credential_store = dependencies_stores.create_credential_store(settings)

    assert isinstance(session_store, RedisVendorSessionStore)
    assert isinstance(message_store, RedisMessageJobStore)
    assert isinstance(sync_store, RedisSyncJobStore)
    assert isinstance(credential_store, RedisCredentialStore)
    assert {call.args[0] for call in factory.call_args_list} == {"redis://localhost:6379/0"}


def test_invalid_backend_raises() -> None:
    settings = BaseSettings(session_store_backend="sqlite")  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="SESSION_STORE_BACKEND"):
        dependencies_stores.create_session_store(settings)


def test_redis_client_requires_url() -> None:
    with pytest.raises(ValueError, match="REDIS_URL"):
        create_async_redis_client("")
