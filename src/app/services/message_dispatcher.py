"""Message Dispatcher: envio de mensagens por template com retry.

Ciclo do MessageJob:
    render falhou / sessão não pronta / erro permanente → failed
    erro transitório → pending com next_retry_at (backoff)
    tentativas esgotadas → abandoned
    sucesso → sent
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections import defaultdict
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from app.domain.clock import utc_now
from app.domain.jobs import MessageJob, MessageStatus
from app.observability import record_job_outcome
from app.services.backoff import BackoffPolicy
from app.services.job_report import JobRunReport
from config.logging import log_fallback
from config.settings import DispatchSettings
from utils.errors import GatewayBridgeError, InvalidRequest

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.clock import Clock
    from app.protocols.gateway_client import GatewayClientProtocol
    from app.protocols.job_store import MessageJobStoreProtocol
    from app.sessions.manager import SessionManager
    from app.templates.renderer import TemplateRenderer

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D+")

# Variáveis de onde o destinatário é lido quando não informado
RECIPIENT_VARIABLES = ("customer_phone", "phone", "recipient")


def format_phone_number(phone: str | None) -> str:
    """Normaliza telefone para o gateway: apenas dígitos, sem `+`."""
    if not phone:
        return ""
    return _NON_DIGITS.sub("", str(phone))


class MessageDispatcher:
    """Cria, envia e reprocessa MessageJobs.

    Args:
        store: Store de MessageJob
        renderer: Template Renderer
        sessions: Session Manager (gate de prontidão)
        gateway: Gateway Client
        settings: DispatchSettings
        clock: Relógio injetável
        backoff: Política de backoff (derivada das settings se None)
    """

    def __init__(
        self,
        store: MessageJobStoreProtocol,
        renderer: TemplateRenderer,
        sessions: SessionManager,
        gateway: GatewayClientProtocol,
        settings: DispatchSettings | None = None,
        clock: Clock = utc_now,
        backoff: BackoffPolicy | None = None,
    ) -> None:
        self._store = store
        self._renderer = renderer
        self._sessions = sessions
        self._gateway = gateway
        self._settings = settings or DispatchSettings()
        self._clock = clock
        self._backoff = backoff or BackoffPolicy.from_settings(self._settings)

    async def send(
        self,
        vendor_id: str,
        template_name: str,
        variables: Mapping[str, Any],
        recipient: str | None = None,
    ) -> MessageJob:
        """Cria o job e faz a primeira tentativa.

        Nunca levanta por falha de envio; o desfecho fica no job.
        """
        raw_recipient = recipient or next(
            (variables[k] for k in RECIPIENT_VARIABLES if variables.get(k)), None
        )
        job = MessageJob(
            vendor_id=vendor_id,
            template_name=template_name,
            variables=dict(variables),
            recipient=format_phone_number(raw_recipient) or None,
        )

        try:
            payload = self._renderer.render(template_name, variables, vendor_id)
        except GatewayBridgeError as exc:
            return await self._finish(job, self._failed(job, exc, attempt=1))

        if not job.recipient:
            error = InvalidRequest("Destinatário ausente")
            return await self._finish(job, self._failed(job, error, attempt=1))

        job = job.evolve(payload=payload)
        return await self._attempt(job)

    async def _attempt(self, job: MessageJob) -> MessageJob:
        attempt = job.attempts + 1
        try:
            session = await self._sessions.require_ready(job.vendor_id)
            data = await self._gateway.send_message(
                job.vendor_id,
                session.remote_session_id or "",
                job.recipient or "",
                job.payload or {},
            )
        except GatewayBridgeError as exc:
            return await self._finish(job, self._after_failure(job, exc, attempt))

        updated = job.evolve(
            status=MessageStatus.SENT,
            attempts=attempt,
            gateway_message_id=data["message_id"],
            next_retry_at=None,
            last_error=None,
            error_kind=None,
        )
        logger.info(
            "message_sent",
            extra={
                "job_id": job.job_id,
                "vendor_id": job.vendor_id,
                "template": job.template_name,
                "attempts": attempt,
            },
        )
        return await self._finish(job, updated)

    def _after_failure(
        self, job: MessageJob, error: GatewayBridgeError, attempt: int
    ) -> MessageJob:
        decision = self._backoff.decide(error, attempt, job.backoff_history)
        if decision.retry and decision.delay is not None:
            logger.info(
                "message_retry_scheduled",
                extra={
                    "job_id": job.job_id,
                    "vendor_id": job.vendor_id,
                    "attempts": attempt,
                    "delay_seconds": decision.delay,
                    "error_kind": error.kind,
                },
            )
            return job.evolve(
                attempts=attempt,
                next_retry_at=self._clock() + timedelta(seconds=decision.delay),
                backoff_history=(*job.backoff_history, decision.delay),
                last_error=error.message,
                error_kind=error.kind,
            )
        if decision.exhausted:
            return job.evolve(
                status=MessageStatus.ABANDONED,
                attempts=attempt,
                next_retry_at=None,
                last_error=error.message,
                error_kind=error.kind,
            )
        return self._failed(job, error, attempt)

    @staticmethod
    def _failed(job: MessageJob, error: GatewayBridgeError, attempt: int) -> MessageJob:
        return job.evolve(
            status=MessageStatus.FAILED,
            attempts=attempt,
            next_retry_at=None,
            last_error=error.message,
            error_kind=error.kind,
        )

    async def _finish(self, previous: MessageJob, updated: MessageJob) -> MessageJob:
        await self._store.save_async(updated)
        record_job_outcome("message", updated.status.value, updated.attempts, updated.error_kind)
        if updated.status in (MessageStatus.FAILED, MessageStatus.ABANDONED):
            logger.warning(
                "message_not_sent",
                extra={
                    "job_id": previous.job_id,
                    "vendor_id": previous.vendor_id,
                    "status": updated.status.value,
                    "attempts": updated.attempts,
                    "error_kind": updated.error_kind,
                },
            )
        return updated

    async def process_due(self, deadline: float | None = None) -> JobRunReport:
        """Reprocessa jobs pending vencidos.

        Vendors rodam em paralelo; jobs de um vendor em sequência. Nenhuma
        tentativa nova começa após `deadline` (`time.monotonic()`).
        """
        now = self._clock()
        due = await self._store.list_due_async(now, self._settings.max_jobs_per_tick)
        by_vendor: dict[str, list[MessageJob]] = defaultdict(list)
        for job in due:
            by_vendor[job.vendor_id].append(job)

        report = JobRunReport()

        async def _run_vendor(jobs: list[MessageJob]) -> None:
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
            *(_run_vendor(jobs) for jobs in by_vendor.values()), return_exceptions=True
        )
        for vendor_id, result in zip(by_vendor, results, strict=True):
            if isinstance(result, Exception):
                report.errors.append(vendor_id)
                logger.error(
                    "message_retry_error",
                    extra={"vendor_id": vendor_id, "error_type": type(result).__name__},
                )

        if report.skipped:
            log_fallback(logger, "message_retry", reason="deadline_reached")
        logger.info("message_retry_round", extra=report.to_dict())
        return report

    async def list_jobs(self, vendor_id: str) -> list[MessageJob]:
        jobs = await self._store.list_by_vendor_async(vendor_id)
        return sorted(jobs, key=lambda j: j.created_at)
