"""Testes do MessageDispatcher (render, envio, retry com backoff)."""

from __future__ import annotations

import time

import pytest

from app.domain.jobs import MessageStatus
from app.domain.vendor_session import VendorSession
from app.infra.stores.memory_stores import MemoryMessageJobStore, MemoryVendorSessionStore
from app.protocols.gateway_client import RemoteSessionStatus
from app.services import BackoffPolicy, MessageDispatcher, format_phone_number
from app.sessions import SessionManager
from app.templates import TemplateCatalog, TemplateRenderer
from fsm.states import SessionState
from tests.fakes.fake_clock import FakeClock
from tests.fakes.fake_gateway import FakeGateway
from utils.errors import GatewayRateLimited, GatewayRejected, NetworkUnavailable

ORDER_VARS = {
    "customer_name": "Ana",
    "customer_phone": "+55 (11) 99999-0000",
    "order_number": "1042",
    "shop_name": "Loja Azul",
    "order_status": "shipped",
}


class Harness:
    def __init__(self) -> None:
        self.clock = FakeClock()
        self.gateway = FakeGateway()
        self.sessions_store = MemoryVendorSessionStore()
        self.jobs = MemoryMessageJobStore()
        self.sessions = SessionManager(self.sessions_store, self.gateway, clock=self.clock)
        self.dispatcher = MessageDispatcher(
            self.jobs,
            TemplateRenderer(TemplateCatalog()),
            self.sessions,
            self.gateway,
            clock=self.clock,
            backoff=BackoffPolicy(jitter_seconds=0.0, max_attempts=5),
        )

    async def connect(self, vendor_id: str = "v1") -> None:
        remote_id = f"remote-{vendor_id}"
        await self.sessions_store.save_async(
            VendorSession(
                vendor_id=vendor_id,
                state=SessionState.CONNECTED,
                remote_session_id=remote_id,
            )
        )
        self.gateway.remote_status[remote_id] = RemoteSessionStatus.ACTIVE


async def _connected_harness() -> Harness:
    h = Harness()
    await h.connect()
    return h


def test_format_phone_number() -> None:
    assert format_phone_number("+55 (11) 99999-0000") == "5511999990000"
    assert format_phone_number(None) == ""


class TestSend:
    @pytest.mark.asyncio
    async def test_success_marks_sent(self) -> None:
        harness = await _connected_harness()
        job = await harness.dispatcher.send("v1", "order_update", ORDER_VARS)

        assert job.status == MessageStatus.SENT
        assert job.attempts == 1
        assert job.gateway_message_id == "msg-1"
        sent = harness.gateway.sent[0]
        assert sent["session_id"] == "remote-v1"
        assert sent["recipient"] == "5511999990000"
        assert "Hello Ana" in sent["payload"]["content"]["text"]
        saved = await harness.jobs.load_async(job.job_id)
        assert saved is not None and saved.status == MessageStatus.SENT

    @pytest.mark.asyncio
    async def test_explicit_recipient_wins(self) -> None:
        harness = await _connected_harness()
        job = await harness.dispatcher.send("v1", "order_update", ORDER_VARS, recipient="+1 555")

        assert job.recipient == "1555"

    @pytest.mark.asyncio
    async def test_render_failure_is_terminal(self) -> None:
        harness = await _connected_harness()
        job = await harness.dispatcher.send("v1", "order_update", {"customer_phone": "1"})

        assert job.status == MessageStatus.FAILED
        assert job.attempts == 1
        assert job.error_kind == "MissingVariable"
        assert harness.gateway.sent == []

    @pytest.mark.asyncio
    async def test_unknown_template_is_terminal(self) -> None:
        harness = await _connected_harness()
        job = await harness.dispatcher.send("v1", "nope", ORDER_VARS)

        assert job.status == MessageStatus.FAILED
        assert job.error_kind == "TemplateNotFound"

    @pytest.mark.asyncio
    async def test_missing_recipient_is_terminal(self) -> None:
        harness = await _connected_harness()
        variables = {k: v for k, v in ORDER_VARS.items() if k != "customer_phone"}

        job = await harness.dispatcher.send("v1", "order_update", variables)

        assert job.status == MessageStatus.FAILED
        assert job.error_kind == "InvalidRequest"

    @pytest.mark.asyncio
    async def test_session_not_ready_is_terminal(self) -> None:
        harness = await _connected_harness()
        job = await harness.dispatcher.send("v2", "order_update", ORDER_VARS)

        assert job.status == MessageStatus.FAILED
        assert job.error_kind == "SessionNotReady"

    @pytest.mark.asyncio
    async def test_permanent_gateway_error_fails_after_one_attempt(self) -> None:
        harness = await _connected_harness()
        harness.gateway.fail_next("send_message", GatewayRejected("bad", status_code=400))

        job = await harness.dispatcher.send("v1", "order_update", ORDER_VARS)

        assert job.status == MessageStatus.FAILED
        assert job.attempts == 1
        assert job.next_retry_at is None

    @pytest.mark.asyncio
    async def test_rate_limit_honors_retry_after(self) -> None:
        harness = await _connected_harness()
        harness.gateway.fail_next("send_message", GatewayRateLimited("slow", retry_after=30.0))

        job = await harness.dispatcher.send("v1", "order_update", ORDER_VARS)

        assert job.status == MessageStatus.PENDING
        assert job.backoff_history == (30.0,)
        assert (job.next_retry_at - harness.clock.now).total_seconds() == 30.0


class TestRetries:
    @pytest.mark.asyncio
    async def test_transient_failures_end_abandoned(self) -> None:
        harness = await _connected_harness()
        harness.gateway.fail_next(
            "send_message", *(NetworkUnavailable("down") for _ in range(5))
        )

        job = await harness.dispatcher.send("v1", "order_update", ORDER_VARS)
        for _ in range(4):
            harness.clock.advance(1000)
            await harness.dispatcher.process_due()

        final = await harness.jobs.load_async(job.job_id)
        assert final is not None
        assert final.status == MessageStatus.ABANDONED
        assert final.attempts == 5
        assert final.backoff_history == (2.0, 4.0, 8.0, 16.0)
        assert list(final.backoff_history) == sorted(final.backoff_history)
        assert harness.gateway.sent == []

    @pytest.mark.asyncio
    async def test_process_due_sends_recovered_jobs(self) -> None:
        harness = await _connected_harness()
        harness.gateway.fail_next("send_message", NetworkUnavailable("down"))
        job = await harness.dispatcher.send("v1", "order_update", ORDER_VARS)

        early = await harness.dispatcher.process_due()
        harness.clock.advance(5)
        report = await harness.dispatcher.process_due()

        assert early.processed == 0
        assert report.outcomes == {"sent": 1}
        final = await harness.jobs.load_async(job.job_id)
        assert final is not None
        assert final.status == MessageStatus.SENT
        assert final.attempts == 2

    @pytest.mark.asyncio
    async def test_process_due_respects_deadline(self) -> None:
        harness = await _connected_harness()
        harness.gateway.fail_next("send_message", NetworkUnavailable("down"))
        await harness.dispatcher.send("v1", "order_update", ORDER_VARS)
        harness.clock.advance(5)

        report = await harness.dispatcher.process_due(deadline=time.monotonic() - 1)

        assert report.skipped == 1
        assert report.processed == 0

    @pytest.mark.asyncio
    async def test_list_jobs_by_vendor(self) -> None:
        harness = await _connected_harness()
        await harness.dispatcher.send("v1", "order_update", ORDER_VARS)
        await harness.dispatcher.send("v2", "order_update", ORDER_VARS)

        jobs = await harness.dispatcher.list_jobs("v1")

        assert [j.vendor_id for j in jobs] == ["v1"]
