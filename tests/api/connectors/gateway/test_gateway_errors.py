"""Testes de classificação de erros do gateway."""

from __future__ import annotations

from datetime import timedelta
from email.utils import format_datetime

import httpx
import pytest

from api.connectors.gateway.errors import (
    classify_exception,
    classify_response,
    parse_gateway_error,
    parse_retry_after,
    parse_success_body,
)
from app.domain.clock import utc_now
from utils.errors import (
    CredentialRejected,
    GatewayProtocolError,
    GatewayRateLimited,
    GatewayRejected,
    GatewayTimeout,
    NetworkUnavailable,
)


def test_success_is_not_classified() -> None:
    assert classify_response(httpx.Response(204)) is None


def test_401_is_credential_rejected() -> None:
    assert isinstance(classify_response(httpx.Response(401)), CredentialRejected)


def test_429_reads_retry_after_from_body() -> None:
    error = classify_response(httpx.Response(429, json={"retry_after": 7}))

    assert isinstance(error, GatewayRateLimited)
    assert error.retry_after == 7.0


def test_4xx_is_permanent_and_5xx_transient() -> None:
    rejected = classify_response(httpx.Response(422, text="bad"))
    unavailable = classify_response(httpx.Response(502))

    assert isinstance(rejected, GatewayRejected)
    assert rejected.transient is False
    assert isinstance(unavailable, NetworkUnavailable)
    assert unavailable.transient is True


def test_retry_after_variants() -> None:
    assert parse_retry_after({"retry-after": "3.5"}) == 3.5
    assert parse_retry_after({"retry-after": "-4"}) == 0.0
    assert parse_retry_after({}) is None
    assert parse_retry_after({}, {"retry_after": "oops"}) is None

    future = format_datetime(utc_now() + timedelta(seconds=120), usegmt=True)
    parsed = parse_retry_after({"retry-after": future})
    assert parsed is not None
    assert 100 < parsed <= 120


def test_classify_exception() -> None:
    request = httpx.Request("GET", "https://gw.test")

    assert isinstance(classify_exception(httpx.ConnectTimeout("t", request=request)), GatewayTimeout)
    assert isinstance(
        classify_exception(httpx.RemoteProtocolError("p", request=request)), NetworkUnavailable
    )
    already = GatewayRejected("x")
    assert classify_exception(already) is already


def test_parse_gateway_error_shapes() -> None:
    nested = parse_gateway_error(400, {"error": {"code": "E1", "message": "m"}})
    flat = parse_gateway_error(400, {"message": "falhou", "code": "E2"})
    empty = parse_gateway_error(500, "texto")

    assert (nested.error_code, nested.message) == ("E1", "m")
    assert (flat.error_code, flat.message) == ("E2", "falhou")
    assert (empty.error_code, empty.message) == ("", "")


def test_parse_success_body() -> None:
    assert parse_success_body(httpx.Response(200)) == {}
    assert parse_success_body(httpx.Response(200, json=[1, 2])) == {"items": [1, 2]}

    with pytest.raises(GatewayProtocolError):
        parse_success_body(httpx.Response(200, json="texto"))
