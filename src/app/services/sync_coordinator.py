"""Sync Coordinator: sincronização de produtos com o catálogo do gateway.

Um SyncJob pending por par (vendor, produto): reenfileirar atualiza os
dados do job existente em vez de criar outro.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from app.domain.clock import utc_now
from app.domain.jobs import SyncJob, SyncStatus
from app.observability import record_job_outcome
from app.services.backoff import BackoffPolicy
from app.services.job_report import JobRunReport
from config.logging import log_fallback
from config.settings import DispatchSettings
from utils.errors import GatewayBridgeError, InvalidRequest

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from app.domain.clock import Clock
    from app.protocols.gateway_client import GatewayClientProtocol
    from app.protocols.job_store import SyncJobStoreProtocol
    from app.sessions.manager import SessionManager

logger = logging.getLogger(__name__)


def _product_id(product: Mapping[str, Any]) -> str:
    value = product.get("id") or product.get("product_id")
    if value in (None, ""):
        raise InvalidRequest("Produto sem id")
    return str(value)


class SyncCoordinator:
    """Enfileira e processa SyncJobs.

    Args:
        store: Store de SyncJob
        sessions: Session Manager (gate de prontidão)
        gateway: Gateway Client
        settings: DispatchSettings (backoff, atraso inicial, limite por tick)
        clock: Relógio injetável
        backoff: Política de backoff (derivada das settings se None)
    """

    def __init__(
        self,
        store: SyncJobStoreProtocol,
        sessions: SessionManager,
        gateway: GatewayClientProtocol,
        settings: DispatchSettings | None = None,
        clock: Clock = utc_now,
        backoff: BackoffPolicy | None = None,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._gateway = gateway
        self._settings = settings or DispatchSettings()
        self._clock = clock
        self._backoff = backoff or BackoffPolicy.from_settings(self._settings)

    async def queue_product_sync(
        self,
        vendor_id: str,
        product_id: str,
        product_data: Mapping[str, Any],
    ) -> SyncJob:
        """Cria ou atualiza o SyncJob pending do produto."""
        next_run = self._clock() + timedelta(seconds=self._settings.sync_initial_delay_seconds)
        existing = await self._store.find_pending_async(vendor_id, str(product_id))
        if existing is not None:
            job = existing.evolve(product_data=dict(product_data))
        else:
            job = SyncJob(
                vendor_id=vendor_id,
                product_id=str(product_id),
                product_data=dict(product_data),
                next_retry_at=next_run,
            )
        await self._store.save_async(job)
        logger.info(
            "product_sync_queued",
            extra={
                "vendor_id": vendor_id,
                "product_id": job.product_id,
                "job_id": job.job_id,
                "refreshed": existing is not None,
            },
        )
        return job

    async def sync_vendor_catalog(
        self,
        vendor_id: str,
        products: Iterable[Mapping[str, Any]],
    ) -> dict[str, int]:
        """Enfileira todos os produtos do vendor.

        Produtos sem id são contados em `invalid` e ignorados.
        """
        queued = 0
        invalid = 0
        for product in products:
            try:
                product_id = _product_id(product)
            except InvalidRequest:
                invalid += 1
                continue
            await self.queue_product_sync(vendor_id, product_id, product)
            queued += 1
        return {"queued": queued, "invalid": invalid}

    async def process_due(self, deadline: float | None = None) -> JobRunReport:
        """Processa SyncJobs vencidos; um por (vendor, produto).

        Vendors independentes; um vendor travado não bloqueia os demais.
        """
        now = self._clock()
        due = await self._store.list_due_async(now, self._settings.max_jobs_per_tick)
        by_vendor: dict[str, dict[str, SyncJob]] = defaultdict(dict)
        for job in due:
            by_vendor[job.vendor_id].setdefault(job.product_id, job)

        report = JobRunReport()

        async def _run_vendor(jobs: list[SyncJob]) -> None:
            for job in jobs:
                if deadline is not None and time.monotonic() >= deadline:
                    report.skipped += 1
                    continue
                current = await self._store.load_async(job.job_id)
                if current is None or not current.is_due(self._clock()):
                    continue
                updated = await self._attempt(current)
                report.count(updated.status.value)

        results = await asyncio.gather(
            *(_run_vendor(list(jobs.values())) for jobs in by_vendor.values()),
            return_exceptions=True,
        )
        for vendor_id, result in zip(by_vendor, results, strict=True):
            if isinstance(result, Exception):
                report.errors.append(vendor_id)
                logger.error(
                    "product_sync_error",
                    extra={"vendor_id": vendor_id, "error_type": type(result).__name__},
                )

        if report.skipped:
            log_fallback(logger, "product_sync", reason="deadline_reached")
        logger.info("product_sync_round", extra=report.to_dict())
        return report

    async def _attempt(self, job: SyncJob) -> SyncJob:
        attempt = job.attempts + 1
        try:
            session = await self._sessions.require_ready(job.vendor_id)
            data = await self._gateway.sync_product(
                job.vendor_id, session.remote_session_id or "", job.product_data
            )
        except GatewayBridgeError as exc:
            updated = self._after_failure(job, exc, attempt)
        else:
            updated = job.evolve(
                status=SyncStatus.SYNCED,
                attempts=attempt,
                catalog_product_id=data["product_id"],
                next_retry_at=None,
                last_error=None,
                error_kind=None,
            )
            logger.info(
                "product_synced",
                extra={
                    "vendor_id": job.vendor_id,
                    "product_id": job.product_id,
                    "attempts": attempt,
                },
            )

        await self._store.save_async(updated)
        record_job_outcome("sync", updated.status.value, updated.attempts, updated.error_kind)
        return updated

    def _after_failure(self, job: SyncJob, error: GatewayBridgeError, attempt: int) -> SyncJob:
        decision = self._backoff.decide(error, attempt, job.backoff_history)
        if decision.retry and decision.delay is not None:
            return job.evolve(
                attempts=attempt,
                next_retry_at=self._clock() + timedelta(seconds=decision.delay),
                backoff_history=(*job.backoff_history, decision.delay),
                last_error=error.message,
                error_kind=error.kind,
            )

        status = SyncStatus.ABANDONED if decision.exhausted else SyncStatus.FAILED
        logger.warning(
            "product_sync_failed",
            extra={
                "vendor_id": job.vendor_id,
                "product_id": job.product_id,
                "status": status.value,
                "error_kind": error.kind,
            },
        )
        return job.evolve(
            status=status,
            attempts=attempt,
            next_retry_at=None,
            last_error=error.message,
            error_kind=error.kind,
        )

    async def sync_status(self, vendor_id: str) -> dict[str, int]:
        """Contagem de SyncJobs do vendor por status."""
        counts = {status.value: 0 for status in SyncStatus}
        for job in await self._store.list_by_vendor_async(vendor_id):
            counts[job.status.value] += 1
        counts["total"] = sum(counts.values())
        return counts
