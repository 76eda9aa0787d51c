"""Session Manager: ciclo de vida das VendorSessions.

Única camada que altera VendorSession. Toda operação de um vendor roda
sob o lock desse vendor; transições passam pela FSM e são emitidas em
log como `session_transition`.

Tabela de health check:
    pairing   + remoto ativo              → connected (falhas = 0)
    pairing   + não ativo + TTL esgotado  → expired
    connected + falha                     → degraded (falhas = 1)
    degraded  + falha                     → degraded (falhas + 1) | expired no limiar
    degraded  + sucesso                   → connected (falhas = 0)
    connected|degraded + revogada/404     → expired
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.domain.clock import utc_now
from app.domain.vendor_session import VendorSession
from app.observability import record_session_health
from app.protocols.gateway_client import RemoteSessionStatus
from app.sessions.models import HealthCheckReport
from config.logging import log_fallback
from config.settings import SessionSettings
from fsm import (
    CHECKABLE_STATES,
    PAIRABLE_STATES,
    READY_STATES,
    SessionState,
    Trigger,
    create_fsm,
)
from utils.errors import (
    GatewayBridgeError,
    GatewayRejected,
    InvalidSessionTransition,
    SessionNotReady,
)

if TYPE_CHECKING:
    from app.domain.clock import Clock
    from app.protocols.gateway_client import GatewayClientProtocol
    from app.protocols.vendor_session_store import VendorSessionStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_CHECKS = 10


def _check_order(session: VendorSession) -> tuple[int, str]:
    """Mais antigo primeiro; nunca verificado antes de todos."""
    if session.last_checked_at is None:
        return (0, "")
    return (1, session.last_checked_at.isoformat())


def _is_missing_remote(exc: GatewayBridgeError) -> bool:
    return isinstance(exc, GatewayRejected) and exc.status_code == 404


class SessionManager:
    """Gerencia pareamento, health checks e revogação por vendor.

    Args:
        store: Store de VendorSession
        gateway: Gateway Client
        settings: SessionSettings (limiar, TTL de pareamento)
        clock: Relógio injetável (UTC)
        max_concurrent_checks: Checks simultâneos por rodada
    """

    def __init__(
        self,
        store: VendorSessionStoreProtocol,
        gateway: GatewayClientProtocol,
        settings: SessionSettings | None = None,
        clock: Clock = utc_now,
        max_concurrent_checks: int = DEFAULT_MAX_CONCURRENT_CHECKS,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._settings = settings or SessionSettings()
        self._clock = clock
        self._max_concurrent = max(1, max_concurrent_checks)
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, vendor_id: str) -> asyncio.Lock:
        lock = self._locks.get(vendor_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[vendor_id] = lock
        return lock

    # ──────────────────────────────────────────────────────────────
    # Transições
    # ──────────────────────────────────────────────────────────────

    def _apply(
        self,
        session: VendorSession,
        target: SessionState,
        trigger: Trigger,
        **changes: Any,
    ) -> VendorSession:
        """Aplica transição via FSM e devolve a nova VendorSession.

        Raises:
            InvalidSessionTransition: Aresta inexistente ou guard negou
        """
        machine = create_fsm(session.vendor_id, session.state)
        result = machine.transition(
            target,
            trigger,
            metadata={
                "consecutive_failures": changes.get(
                    "consecutive_failures", session.consecutive_failures
                ),
            },
        )
        if not result.success or result.transition is None:
            raise InvalidSessionTransition(result.error_reason or "Transição negada")

        if target not in READY_STATES:
            changes["remote_session_id"] = None
        if target == SessionState.EXPIRED:
            changes.update(pairing_handle=None, pairing_started_at=None)

        logger.info(
            "session_transition",
            extra={"vendor_id": session.vendor_id, **result.transition.to_log_dict()},
        )
        return session.evolve(state=target, **changes)

    async def _load_required(self, vendor_id: str) -> VendorSession:
        session = await self._store.load_async(vendor_id)
        if session is None:
            raise SessionNotReady(f"Vendor {vendor_id} não possui sessão")
        return session

    # ──────────────────────────────────────────────────────────────
    # Pareamento
    # ──────────────────────────────────────────────────────────────

    async def start_pairing(self, vendor_id: str, session_name: str = "") -> VendorSession:
        """Inicia pareamento (unpaired/expired → pairing).

        Raises:
            InvalidSessionTransition: Sessão já pareando ou pronta
            GatewayBridgeError: Falha ao criar sessão no gateway
        """
        async with self._lock_for(vendor_id):
            session = await self._store.load_async(vendor_id)
            if session is None:
                session = VendorSession(vendor_id=vendor_id)
            if session.state not in PAIRABLE_STATES:
                raise InvalidSessionTransition(
                    f"Pareamento não permitido em {session.state.value}"
                )

            name = session_name or session.session_name or f"vendor-{vendor_id}"
            data = await self._gateway.create_session(vendor_id, name)

            updated = self._apply(
                session,
                SessionState.PAIRING,
                Trigger.START_PAIRING,
                pairing_handle=data["client_id"],
                pairing_started_at=self._clock(),
                session_name=name,
                consecutive_failures=0,
                last_error=None,
            )
            await self._store.save_async(updated)
            return updated

    async def get_pairing_code(self, vendor_id: str) -> dict[str, Any]:
        """Payload de QR/handshake do pareamento corrente.

        Raises:
            SessionNotReady: Vendor sem sessão
            InvalidSessionTransition: Sessão fora de pairing
        """
        async with self._lock_for(vendor_id):
            session = await self._load_required(vendor_id)
            if session.state != SessionState.PAIRING or not session.pairing_handle:
                raise InvalidSessionTransition(
                    f"Sem pareamento em andamento ({session.state.value})"
                )
            data = await self._gateway.get_pairing_code(vendor_id, session.pairing_handle)

        remaining = self._settings.pairing_ttl_seconds - session.pairing_elapsed(self._clock())
        return {
            "qr_code": data.get("qr_code") or data.get("qr"),
            "expires_in": max(0, int(remaining)),
            "state": session.state.value,
        }

    # ──────────────────────────────────────────────────────────────
    # Health check
    # ──────────────────────────────────────────────────────────────

    async def check_session(self, vendor_id: str) -> VendorSession:
        """Check sob demanda; mesma tabela do tick.

        Sessões unpaired/expired são devolvidas sem consulta ao gateway.

        Raises:
            SessionNotReady: Vendor sem sessão
        """
        async with self._lock_for(vendor_id):
            session = await self._load_required(vendor_id)
            if session.state not in CHECKABLE_STATES:
                return session
            return await self._check_locked(session)

    poll_status = check_session

    async def _check_locked(self, session: VendorSession) -> VendorSession:
        now = self._clock()
        handle = session.gateway_handle or ""
        remote: RemoteSessionStatus | None = None
        remote_data: dict[str, Any] = {}
        error: GatewayBridgeError | None = None

        try:
            remote_data = await self._gateway.get_session_status(session.vendor_id, handle)
            remote = remote_data["remote_status"]
        except GatewayBridgeError as exc:
            if _is_missing_remote(exc):
                remote = RemoteSessionStatus.REVOKED
            else:
                error = exc

        if session.state == SessionState.PAIRING:
            updated = self._after_pairing_check(session, now, remote, remote_data, error)
        else:
            updated = self._after_ready_check(session, now, remote, error)

        await self._store.save_async(updated)
        record_session_health(
            updated.vendor_id, updated.state.value, updated.consecutive_failures
        )
        return updated

    def _after_pairing_check(
        self,
        session: VendorSession,
        now: datetime,
        remote: RemoteSessionStatus | None,
        remote_data: dict[str, Any],
        error: GatewayBridgeError | None,
    ) -> VendorSession:
        if remote == RemoteSessionStatus.ACTIVE:
            remote_id = str(
                remote_data.get("session_id") or remote_data.get("client_id")
                or session.pairing_handle
            )
            return self._apply(
                session,
                SessionState.CONNECTED,
                Trigger.REMOTE_ACTIVE,
                remote_session_id=remote_id,
                pairing_handle=None,
                pairing_started_at=None,
                consecutive_failures=0,
                last_error=None,
                last_checked_at=now,
            )

        last_error = error.kind if error is not None else session.last_error
        if session.pairing_elapsed(now) >= self._settings.pairing_ttl_seconds:
            return self._apply(
                session,
                SessionState.EXPIRED,
                Trigger.PAIRING_TIMEOUT,
                last_error="pairing_timeout",
                last_checked_at=now,
            )
        return session.evolve(last_checked_at=now, last_error=last_error)

    def _after_ready_check(
        self,
        session: VendorSession,
        now: datetime,
        remote: RemoteSessionStatus | None,
        error: GatewayBridgeError | None,
    ) -> VendorSession:
        if remote == RemoteSessionStatus.REVOKED:
            return self._apply(
                session,
                SessionState.EXPIRED,
                Trigger.REMOTE_REVOKED,
                last_error="remote_revoked",
                last_checked_at=now,
            )

        if remote == RemoteSessionStatus.ACTIVE:
            if session.state == SessionState.DEGRADED:
                return self._apply(
                    session,
                    SessionState.CONNECTED,
                    Trigger.CHECK_RECOVERED,
                    consecutive_failures=0,
                    last_error=None,
                    last_checked_at=now,
                )
            return session.evolve(
                consecutive_failures=0, last_error=None, last_checked_at=now
            )

        # Falha transitória, permanente (não-revogação) ou remoto ainda pendente
        failures = session.consecutive_failures + 1
        last_error = error.kind if error is not None else "remote_pending"
        # connected sempre passa por degraded antes de expirar
        if (
            session.state == SessionState.DEGRADED
            and failures >= self._settings.failure_threshold
        ):
            return self._apply(
                session,
                SessionState.EXPIRED,
                Trigger.FAILURE_THRESHOLD,
                consecutive_failures=failures,
                last_error=last_error,
                last_checked_at=now,
            )
        return self._apply(
            session,
            SessionState.DEGRADED,
            Trigger.CHECK_FAILED,
            consecutive_failures=failures,
            last_error=last_error,
            last_checked_at=now,
        )

    async def run_health_checks(self, deadline: float | None = None) -> HealthCheckReport:
        """Rodada de checks das sessões não-expiradas.

        Ordem: `last_checked_at` mais antigo primeiro. Vendors são
        independentes; nenhum check novo começa após `deadline`
        (`time.monotonic()`), o restante fica para o próximo tick.
        """
        sessions = [s for s in await self._store.list_async() if s.state in CHECKABLE_STATES]
        sessions.sort(key=_check_order)
        report = HealthCheckReport()
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _run(vendor_id: str) -> None:
            async with semaphore:
                if deadline is not None and time.monotonic() >= deadline:
                    report.skipped += 1
                    return
                async with self._lock_for(vendor_id):
                    current = await self._store.load_async(vendor_id)
                    if current is None or current.state not in CHECKABLE_STATES:
                        return
                    updated = await self._check_locked(current)
                report.checked += 1
                if updated.state != current.state:
                    report.count_transition(updated.state.value)

        results = await asyncio.gather(
            *(_run(s.vendor_id) for s in sessions), return_exceptions=True
        )
        for session, result in zip(sessions, results, strict=True):
            if isinstance(result, Exception):
                report.errors.append(session.vendor_id)
                logger.error(
                    "session_check_error",
                    extra={
                        "vendor_id": session.vendor_id,
                        "error_type": type(result).__name__,
                    },
                )

        if report.skipped:
            log_fallback(logger, "session_check", reason="deadline_reached")
        logger.info("session_check_round", extra=report.to_dict())
        return report

    async def reconcile(self, deadline: float | None = None) -> HealthCheckReport:
        """Reconciliação completa com o gateway.

        Sessões prontas cujo id remoto sumiu da lista do vendor no gateway
        vão para expired; pareamentos com TTL esgotado também.
        """
        sessions = [s for s in await self._store.list_async() if s.state in CHECKABLE_STATES]
        report = HealthCheckReport()

        async def _run(vendor_id: str) -> None:
            if deadline is not None and time.monotonic() >= deadline:
                report.skipped += 1
                return
            async with self._lock_for(vendor_id):
                current = await self._store.load_async(vendor_id)
                if current is None or current.state not in CHECKABLE_STATES:
                    return
                updated = await self._reconcile_locked(current)
            report.checked += 1
            if updated.state != current.state:
                report.count_transition(updated.state.value)

        results = await asyncio.gather(
            *(_run(s.vendor_id) for s in sessions), return_exceptions=True
        )
        for session, result in zip(sessions, results, strict=True):
            if isinstance(result, Exception):
                report.errors.append(session.vendor_id)
                logger.warning(
                    "session_reconcile_error",
                    extra={
                        "vendor_id": session.vendor_id,
                        "error_type": type(result).__name__,
                    },
                )

        if report.skipped:
            log_fallback(logger, "session_reconcile", reason="deadline_reached")
        logger.info("session_reconcile_round", extra=report.to_dict())
        return report

    async def _reconcile_locked(self, session: VendorSession) -> VendorSession:
        now = self._clock()
        if session.state == SessionState.PAIRING:
            if session.pairing_elapsed(now) < self._settings.pairing_ttl_seconds:
                return session
            updated = self._apply(
                session,
                SessionState.EXPIRED,
                Trigger.PAIRING_TIMEOUT,
                last_error="pairing_timeout",
            )
            await self._store.save_async(updated)
            return updated

        remote_sessions = await self._gateway.list_vendor_sessions(session.vendor_id)
        remote_ids = {
            str(item.get("session_id") or item.get("client_id") or item.get("id"))
            for item in remote_sessions
        }
        if session.remote_session_id in remote_ids:
            return session

        updated = self._apply(
            session,
            SessionState.EXPIRED,
            Trigger.RECONCILE_MISSING,
            last_error="remote_missing",
        )
        await self._store.save_async(updated)
        return updated

    # ──────────────────────────────────────────────────────────────
    # Revogação / remoção
    # ──────────────────────────────────────────────────────────────

    async def revoke(self, vendor_id: str) -> VendorSession:
        """Desconexão explícita: remove no gateway e marca expired.

        404 no gateway conta como já removida; demais falhas propagam
        e a sessão permanece como estava.

        Raises:
            SessionNotReady: Vendor sem sessão
            InvalidSessionTransition: Sessão unpaired/expired
        """
        async with self._lock_for(vendor_id):
            session = await self._load_required(vendor_id)
            if session.state not in CHECKABLE_STATES:
                raise InvalidSessionTransition(
                    f"Nada a desconectar em {session.state.value}"
                )
            handle = session.gateway_handle
            if handle:
                try:
                    await self._gateway.delete_session(vendor_id, handle)
                except GatewayRejected as exc:
                    if not _is_missing_remote(exc):
                        raise

            updated = self._apply(
                session,
                SessionState.EXPIRED,
                Trigger.EXPLICIT_REVOKE,
                last_error=None,
                last_checked_at=self._clock(),
            )
            await self._store.save_async(updated)
            return updated

    async def remove_vendor(self, vendor_id: str) -> bool:
        """Remove o registro do vendor (desativação).

        A remoção remota é best-effort; o registro local sai mesmo assim.
        """
        async with self._lock_for(vendor_id):
            session = await self._store.load_async(vendor_id)
            if session is None:
                return False
            handle = session.gateway_handle
            if handle and session.state in CHECKABLE_STATES:
                try:
                    await self._gateway.delete_session(vendor_id, handle)
                except GatewayBridgeError as exc:
                    logger.warning(
                        "vendor_remote_delete_failed",
                        extra={"vendor_id": vendor_id, "error_kind": exc.kind},
                    )
            deleted = await self._store.delete_async(vendor_id)

        self._locks.pop(vendor_id, None)
        logger.info("vendor_removed", extra={"vendor_id": vendor_id})
        return deleted

    # ──────────────────────────────────────────────────────────────
    # Consultas
    # ──────────────────────────────────────────────────────────────

    async def get_session(self, vendor_id: str) -> VendorSession | None:
        return await self._store.load_async(vendor_id)

    async def list_sessions(self) -> list[VendorSession]:
        sessions = await self._store.list_async()
        return sorted(sessions, key=lambda s: s.vendor_id)

    async def require_ready(self, vendor_id: str) -> VendorSession:
        """Sessão connected/degraded do vendor.

        Raises:
            SessionNotReady: Sem sessão ou fora de connected/degraded
        """
        session = await self._store.load_async(vendor_id)
        if session is None or not session.is_ready:
            state = session.state.value if session else "missing"
            raise SessionNotReady(f"Sessão do vendor {vendor_id} não está pronta ({state})")
        return session

    async def update_metadata(self, vendor_id: str, metadata: dict[str, Any]) -> dict[str, Any]:
        """Atualiza metadados da sessão remota (sessão pronta)."""
        session = await self.require_ready(vendor_id)
        return await self._gateway.update_session_metadata(
            vendor_id, session.remote_session_id or "", metadata
        )
