"""Validação de settings no boot (strict em staging/production)."""

from __future__ import annotations

import logging

import httpx
import pytest

from app.bootstrap import build_container, collect_settings_errors, validate_runtime_settings
from app.infra.stores import (
    MemoryCredentialStore,
    MemoryMessageJobStore,
    MemorySyncJobStore,
    MemoryVendorSessionStore,
)
from config.settings import BaseSettings, DispatchSettings, GatewaySettings, SessionSettings
from tests.fakes.fake_gateway_http import BASE_URL, SIGNING_SECRET, FakeGatewayServer


def _container(environment: str, api_base_url: str = BASE_URL):
    return build_container(
        base_settings=BaseSettings(environment=environment),
        gateway_settings=GatewaySettings(api_base_url=api_base_url),
        session_settings=SessionSettings(),
        dispatch_settings=DispatchSettings(),
        credential_store=MemoryCredentialStore(),
        session_store=MemoryVendorSessionStore(),
        message_store=MemoryMessageJobStore(),
        sync_store=MemorySyncJobStore(),
        gateway_transport=httpx.MockTransport(FakeGatewayServer().handler),
        seed_secret=SIGNING_SECRET,
    )


def test_valid_development_settings_pass(caplog) -> None:
    container = _container("development")

    with caplog.at_level(logging.INFO, logger="app.bootstrap"):
        validate_runtime_settings(container)

    assert collect_settings_errors(container) == []
    assert "settings_validated" in [r.getMessage() for r in caplog.records]


def test_development_only_warns(caplog) -> None:
    container = _container("development", api_base_url="")

    with caplog.at_level(logging.WARNING, logger="app.bootstrap"):
        validate_runtime_settings(container)

    (record,) = [
        r
        for r in caplog.records
        if r.name == "app.bootstrap" and r.getMessage() == "settings_validation_failed"
    ]
    assert record.errors == ["gateway: GATEWAY_API_URL não configurado"]


def test_production_rejects_memory_backends() -> None:
    container = _container("production")

    with pytest.raises(RuntimeError, match="SESSION_STORE_BACKEND=memory"):
        validate_runtime_settings(container)
