"""Testes do SessionManager (pareamento, health check, reconciliação, revogação)."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import timedelta

import pytest

from app.domain.vendor_session import VendorSession
from app.infra.stores.memory_stores import MemoryVendorSessionStore
from app.protocols.gateway_client import RemoteSessionStatus
from app.sessions import SessionManager
from config.settings import SessionSettings
from fsm.states import SessionState
from tests.fakes.fake_clock import FakeClock
from tests.fakes.fake_gateway import FakeGateway
from utils.errors import (
    GatewayRejected,
    InvalidSessionTransition,
    NetworkUnavailable,
    SessionNotReady,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def store() -> MemoryVendorSessionStore:
    return MemoryVendorSessionStore()


@pytest.fixture
def manager(store, gateway, clock) -> SessionManager:
    return SessionManager(store, gateway, SessionSettings(), clock=clock, max_concurrent_checks=1)


class GatedGateway(FakeGateway):
    """Gateway cujo status fica bloqueado até `gate` abrir."""

    def __init__(self, blocked: set[str] | None = None) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.blocked = blocked
        self.events: list[tuple[str, str]] = []

    async def get_session_status(self, vendor_id: str, handle: str) -> dict:
        self.events.append(("start", vendor_id))
        if self.blocked is None or handle in self.blocked:
            await self.gate.wait()
        try:
            return await super().get_session_status(vendor_id, handle)
        finally:
            self.events.append(("end", vendor_id))


async def _connected(
    store: MemoryVendorSessionStore,
    gateway: FakeGateway,
    vendor_id: str = "v1",
    **fields,
) -> VendorSession:
    remote_id = f"remote-{vendor_id}"
    session = VendorSession(
        vendor_id=vendor_id,
        state=fields.pop("state", SessionState.CONNECTED),
        remote_session_id=remote_id,
        **fields,
    )
    await store.save_async(session)
    gateway.remote_status[remote_id] = RemoteSessionStatus.ACTIVE
    return session


class TestPairing:
    @pytest.mark.asyncio
    async def test_start_pairing_creates_session(self, manager, gateway, clock) -> None:
        session = await manager.start_pairing("v1")

        assert session.state == SessionState.PAIRING
        assert session.pairing_handle == "client-1"
        assert session.pairing_started_at == clock.now
        assert session.session_name == "vendor-v1"
        assert session.remote_session_id is None
        assert gateway.calls_to("create_session") == [("v1", "vendor-v1")]

    @pytest.mark.asyncio
    async def test_start_pairing_twice_is_rejected(self, manager, store) -> None:
        await manager.start_pairing("v1", "Loja")

        with pytest.raises(InvalidSessionTransition):
            await manager.start_pairing("v1", "Outra")

        saved = await store.load_async("v1")
        assert saved is not None
        assert saved.session_name == "Loja"

    @pytest.mark.asyncio
    async def test_start_pairing_rejected_when_connected(self, manager, store, gateway) -> None:
        await _connected(store, gateway)

        with pytest.raises(InvalidSessionTransition):
            await manager.start_pairing("v1")

    @pytest.mark.asyncio
    async def test_gateway_failure_keeps_state(self, manager, store, gateway) -> None:
        gateway.fail_next("create_session", NetworkUnavailable("down"))

        with pytest.raises(NetworkUnavailable):
            await manager.start_pairing("v1")

        assert await store.load_async("v1") is None

    @pytest.mark.asyncio
    async def test_pairing_code(self, manager, clock) -> None:
        await manager.start_pairing("v1")
        clock.advance(100)

        data = await manager.get_pairing_code("v1")

        assert data == {"qr_code": "qr:client-1", "expires_in": 200, "state": "pairing"}

    @pytest.mark.asyncio
    async def test_pairing_code_requires_pairing(self, manager, store, gateway) -> None:
        with pytest.raises(SessionNotReady):
            await manager.get_pairing_code("v1")

        await _connected(store, gateway)
        with pytest.raises(InvalidSessionTransition):
            await manager.get_pairing_code("v1")

    @pytest.mark.asyncio
    async def test_remote_active_connects(self, manager, gateway) -> None:
        await manager.start_pairing("v1")
        gateway.remote_status["client-1"] = RemoteSessionStatus.ACTIVE

        session = await manager.poll_status("v1")

        assert session.state == SessionState.CONNECTED
        assert session.remote_session_id == "client-1"
        assert session.pairing_handle is None
        assert session.consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_pairing_waits_then_expires_after_ttl(self, manager, clock) -> None:
        await manager.start_pairing("v1")

        clock.advance(120)
        waiting = await manager.check_session("v1")
        assert waiting.state == SessionState.PAIRING
        assert waiting.last_checked_at == clock.now

        clock.advance(181)
        expired = await manager.check_session("v1")
        assert expired.state == SessionState.EXPIRED
        assert expired.last_error == "pairing_timeout"
        assert expired.pairing_handle is None

    @pytest.mark.asyncio
    async def test_expired_can_pair_again(self, manager, clock) -> None:
        await manager.start_pairing("v1")
        clock.advance(400)
        await manager.check_session("v1")

        session = await manager.start_pairing("v1")

        assert session.state == SessionState.PAIRING
        assert session.pairing_handle == "client-2"


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_three_failures_degrade_then_expire(self, manager, store, gateway) -> None:
        await _connected(store, gateway)
        gateway.fail_next(
            "get_session_status",
            NetworkUnavailable("x"),
            NetworkUnavailable("x"),
            NetworkUnavailable("x"),
        )

        states = []
        for _ in range(3):
            session = await manager.check_session("v1")
            states.append((session.state, session.consecutive_failures))

        assert states == [
            (SessionState.DEGRADED, 1),
            (SessionState.DEGRADED, 2),
            (SessionState.EXPIRED, 3),
        ]
        assert session.remote_session_id is None
        assert session.last_error == "NetworkUnavailable"

    @pytest.mark.asyncio
    async def test_connected_degrades_first_even_with_threshold_one(
        self, store, gateway, clock
    ) -> None:
        manager = SessionManager(store, gateway, SessionSettings(failure_threshold=1), clock=clock)
        await _connected(store, gateway)
        gateway.fail_next("get_session_status", NetworkUnavailable("x"), NetworkUnavailable("x"))

        first = await manager.check_session("v1")
        second = await manager.check_session("v1")

        assert (first.state, first.consecutive_failures) == (SessionState.DEGRADED, 1)
        assert (second.state, second.consecutive_failures) == (SessionState.EXPIRED, 2)

    @pytest.mark.asyncio
    async def test_degraded_recovers(self, manager, store, gateway) -> None:
        await _connected(store, gateway, state=SessionState.DEGRADED, consecutive_failures=2)

        session = await manager.check_session("v1")

        assert session.state == SessionState.CONNECTED
        assert session.consecutive_failures == 0
        assert session.last_error is None

    @pytest.mark.asyncio
    async def test_remote_pending_counts_as_failure(self, manager, store, gateway) -> None:
        await _connected(store, gateway)
        gateway.remote_status["remote-v1"] = RemoteSessionStatus.PENDING

        session = await manager.check_session("v1")

        assert session.state == SessionState.DEGRADED
        assert session.last_error == "remote_pending"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("revoked_by", ["status", "missing"])
    async def test_revoked_remote_expires(self, manager, store, gateway, revoked_by) -> None:
        await _connected(store, gateway)
        if revoked_by == "status":
            gateway.remote_status["remote-v1"] = RemoteSessionStatus.REVOKED
        else:
            del gateway.remote_status["remote-v1"]

        session = await manager.check_session("v1")

        assert session.state == SessionState.EXPIRED
        assert session.last_error == "remote_revoked"

    @pytest.mark.asyncio
    async def test_permanent_error_counts_as_failure(self, manager, store, gateway) -> None:
        await _connected(store, gateway)
        gateway.fail_next("get_session_status", GatewayRejected("bad", status_code=400))

        session = await manager.check_session("v1")

        assert session.state == SessionState.DEGRADED
        assert session.last_error == "GatewayRejected"

    @pytest.mark.asyncio
    async def test_expired_session_is_not_checked(self, manager, store, gateway) -> None:
        await store.save_async(VendorSession(vendor_id="v1", state=SessionState.EXPIRED))

        session = await manager.check_session("v1")
        report = await manager.run_health_checks()

        assert session.state == SessionState.EXPIRED
        assert report.checked == 0
        assert gateway.calls_to("get_session_status") == []

    @pytest.mark.asyncio
    async def test_round_checks_oldest_first(self, manager, store, gateway, clock) -> None:
        await _connected(store, gateway, "recent", last_checked_at=clock.now)
        await _connected(store, gateway, "old", last_checked_at=clock.now - timedelta(hours=1))
        await _connected(store, gateway, "never")

        report = await manager.run_health_checks()

        handles = [args[1] for args in gateway.calls_to("get_session_status")]
        assert handles == ["remote-never", "remote-old", "remote-recent"]
        assert report.checked == 3
        assert report.transitions == {}

    @pytest.mark.asyncio
    async def test_round_past_deadline_carries_over(
        self, manager, store, gateway, caplog
    ) -> None:
        await _connected(store, gateway, "a")
        await _connected(store, gateway, "b")

        with caplog.at_level(logging.INFO, logger="app.sessions.manager"):
            report = await manager.run_health_checks(deadline=time.monotonic() - 1)

        assert report.skipped == 2
        assert report.checked == 0
        assert gateway.calls_to("get_session_status") == []
        (fallback,) = [r for r in caplog.records if r.getMessage() == "fallback_applied"]
        assert fallback.component == "session_check"
        assert fallback.reason == "deadline_reached"

    @pytest.mark.asyncio
    async def test_round_folds_unexpected_errors(self, manager, store, gateway) -> None:
        await _connected(store, gateway, "a")
        await _connected(store, gateway, "b", state=SessionState.DEGRADED, consecutive_failures=1)
        gateway.fail_next("get_session_status", RuntimeError("boom"))

        report = await manager.run_health_checks()

        assert report.errors == ["a"]
        assert report.checked == 1
        assert report.transitions == {"connected": 1}


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_checks_for_same_vendor_are_serialized(self, store, clock) -> None:
        gateway = GatedGateway()
        manager = SessionManager(store, gateway, SessionSettings(), clock=clock)
        await _connected(store, gateway)

        first = asyncio.create_task(manager.check_session("v1"))
        second = asyncio.create_task(manager.check_session("v1"))
        await asyncio.sleep(0.01)

        assert gateway.events == [("start", "v1")]
        gateway.gate.set()
        await asyncio.gather(first, second)
        assert gateway.events == [("start", "v1"), ("end", "v1")] * 2

    @pytest.mark.asyncio
    async def test_hanging_vendor_does_not_stall_round(self, store, clock) -> None:
        gateway = GatedGateway(blocked={"remote-slow"})
        manager = SessionManager(
            store, gateway, SessionSettings(), clock=clock, max_concurrent_checks=2
        )
        await _connected(store, gateway, "slow")
        await _connected(store, gateway, "fast")

        round_task = asyncio.create_task(manager.run_health_checks())
        for _ in range(100):
            if ("end", "fast") in gateway.events:
                break
            await asyncio.sleep(0.01)

        fast = await store.load_async("fast")
        assert fast is not None
        assert fast.last_checked_at == clock.now
        assert ("end", "slow") not in gateway.events
        assert not round_task.done()

        gateway.gate.set()
        report = await round_task
        assert report.checked == 2

class TestReconcile:
    @pytest.mark.asyncio
    async def test_missing_remote_and_stale_pairing_expire(
        self, manager, store, gateway, clock
    ) -> None:
        await _connected(store, gateway, "kept")
        await _connected(store, gateway, "gone")
        gateway.remote_sessions["kept"] = [{"session_id": "remote-kept"}]
        gateway.remote_sessions["gone"] = [{"id": "something-else"}]
        await manager.start_pairing("pairing")
        clock.advance(301)

        report = await manager.reconcile()

        kept = await store.load_async("kept")
        gone = await store.load_async("gone")
        pairing = await store.load_async("pairing")
        assert kept is not None and kept.state == SessionState.CONNECTED
        assert gone is not None and gone.state == SessionState.EXPIRED
        assert gone.last_error == "remote_missing"
        assert pairing is not None and pairing.state == SessionState.EXPIRED
        assert report.transitions == {"expired": 2}
        assert report.checked == 3

    @pytest.mark.asyncio
    async def test_gateway_failure_is_folded(self, manager, store, gateway) -> None:
        await _connected(store, gateway, "a")
        gateway.fail_next("list_vendor_sessions", NetworkUnavailable("down"))

        report = await manager.reconcile()

        assert report.errors == ["a"]
        saved = await store.load_async("a")
        assert saved is not None and saved.state == SessionState.CONNECTED


class TestRevokeAndRemove:
    @pytest.mark.asyncio
    async def test_revoke_deletes_remote_and_expires(self, manager, store, gateway) -> None:
        await _connected(store, gateway)

        session = await manager.revoke("v1")

        assert session.state == SessionState.EXPIRED
        assert gateway.calls_to("delete_session") == [("v1", "remote-v1")]

    @pytest.mark.asyncio
    async def test_revoke_ignores_remote_404(self, manager, store, gateway) -> None:
        await _connected(store, gateway)
        gateway.fail_next("delete_session", GatewayRejected("gone", status_code=404))

        session = await manager.revoke("v1")

        assert session.state == SessionState.EXPIRED

    @pytest.mark.asyncio
    async def test_revoke_propagates_other_errors(self, manager, store, gateway) -> None:
        await _connected(store, gateway)
        gateway.fail_next("delete_session", NetworkUnavailable("down"))

        with pytest.raises(NetworkUnavailable):
            await manager.revoke("v1")

        saved = await store.load_async("v1")
        assert saved is not None and saved.state == SessionState.CONNECTED

    @pytest.mark.asyncio
    async def test_revoke_requires_active_session(self, manager, store) -> None:
        await store.save_async(VendorSession(vendor_id="v1"))

        with pytest.raises(InvalidSessionTransition):
            await manager.revoke("v1")

    @pytest.mark.asyncio
    async def test_remove_vendor_is_best_effort_remotely(self, manager, store, gateway) -> None:
        await _connected(store, gateway)
        gateway.fail_next("delete_session", NetworkUnavailable("down"))

        assert await manager.remove_vendor("v1") is True
        assert await store.load_async("v1") is None
        assert await manager.remove_vendor("v1") is False


class TestQueries:
    @pytest.mark.asyncio
    async def test_require_ready(self, manager, store, gateway) -> None:
        with pytest.raises(SessionNotReady, match="missing"):
            await manager.require_ready("v1")

        await store.save_async(VendorSession(vendor_id="v2", state=SessionState.EXPIRED))
        with pytest.raises(SessionNotReady, match="expired"):
            await manager.require_ready("v2")

        await _connected(store, gateway, "v3", state=SessionState.DEGRADED)
        assert (await manager.require_ready("v3")).vendor_id == "v3"

    @pytest.mark.asyncio
    async def test_list_sessions_sorted(self, manager, store) -> None:
        for vendor_id in ("b", "c", "a"):
            await store.save_async(VendorSession(vendor_id=vendor_id))

        assert [s.vendor_id for s in await manager.list_sessions()] == ["a", "b", "c"]
        assert await manager.get_session("zzz") is None

    @pytest.mark.asyncio
    async def test_update_metadata_uses_remote_id(self, manager, store, gateway) -> None:
        await _connected(store, gateway)

        await manager.update_metadata("v1", {"store": "Loja"})

        assert gateway.metadata == {"remote-v1": {"store": "Loja"}}
