"""Testes de ativação, desativação e ticks agendados."""

from __future__ import annotations

import pytest

from app.entrypoints import on_activate, on_deactivate, on_scheduled_tick
from app.entrypoints.lifecycle import collect_settings_errors
from config.settings import GatewaySettings
from tests.fakes.fake_gateway_http import FakeGatewayServer, build_test_container
from utils.errors import ConfigurationError


@pytest.mark.asyncio
async def test_activate_creates_secret_and_schedules_jobs() -> None:
    container = build_test_container(FakeGatewayServer())

    result = await on_activate(container)

    names = [job["name"] for job in result["scheduled_jobs"]]
    assert names == ["session-check", "session-reconcile", "product-sync", "message-retry"]
    assert await container.credential_store.get_signing_secret_async()
    assert container.scheduler.active is True


@pytest.mark.asyncio
async def test_activate_keeps_existing_secret() -> None:
    container = build_test_container(FakeGatewayServer())
    await container.credential_store.set_signing_secret_async("existing")

    await on_activate(container)

    assert await container.credential_store.get_signing_secret_async() == "existing"


@pytest.mark.asyncio
async def test_invalid_configuration_is_fatal() -> None:
    container = build_test_container(
        FakeGatewayServer(), gateway_settings=GatewaySettings(api_base_url="")
    )

    with pytest.raises(ConfigurationError, match="GATEWAY_API_URL"):
        await on_activate(container)

    assert container.scheduler.active is False
    assert collect_settings_errors(container) == ["gateway: GATEWAY_API_URL não configurado"]


@pytest.mark.asyncio
async def test_ticks_run_only_while_active() -> None:
    container = build_test_container(FakeGatewayServer())

    before = await on_scheduled_tick(container, "session-check")
    await on_activate(container)
    during = await on_scheduled_tick(container, "message-retry")
    await on_deactivate(container)
    after = await on_scheduled_tick(container, "product-sync")

    assert before.status == "inactive"
    assert during.status == "ok"
    assert during.result == {"processed": 0, "skipped": 0, "outcomes": {}, "errors": []}
    assert after.status == "inactive"


@pytest.mark.asyncio
async def test_unknown_tick_kind() -> None:
    container = build_test_container(FakeGatewayServer())
    await on_activate(container)

    with pytest.raises(ValueError):
        await on_scheduled_tick(container, "cleanup")
