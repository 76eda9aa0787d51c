"""Testes dos endpoints de health e readiness."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import Request

from api.routes.health.router import health_check, readiness_check


def _ready_request(**state: object) -> Request:
    app = SimpleNamespace(state=SimpleNamespace(**state))
    return Request({"type": "http", "method": "GET", "path": "/ready", "headers": [], "app": app})


def _container(active: bool) -> SimpleNamespace:
    return SimpleNamespace(scheduler=SimpleNamespace(active=active))


@pytest.mark.asyncio
async def test_health_check() -> None:
    response = await health_check()

    assert response.status == "healthy"
    assert response.service


@pytest.mark.asyncio
async def test_readiness_not_ready_without_container() -> None:
    request = _ready_request(redis_client=None)

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 503
    assert payload["status"] == "not_ready"
    assert payload["checks"]["redis"]["status"] == "skipped"
    assert payload["checks"]["scheduler"]["status"] == "failed"


@pytest.mark.asyncio
async def test_readiness_ready_with_redis_and_active_scheduler() -> None:
    redis_client = MagicMock()
    redis_client.ping = AsyncMock(return_value=True)
    request = _ready_request(redis_client=redis_client, container=_container(True))

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 200
    assert payload["status"] == "ready"
    assert payload["checks"]["redis"]["status"] == "ok"
    redis_client.ping.assert_awaited_once()


@pytest.mark.asyncio
async def test_readiness_fails_when_redis_errors() -> None:
    redis_client = MagicMock()
    redis_client.ping = AsyncMock(side_effect=ConnectionError("down"))
    request = _ready_request(redis_client=redis_client, container=_container(True))

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 503
    assert payload["checks"]["redis"] == {
        "status": "failed",
        "latency_ms": None,
        "error": "ConnectionError",
    }
