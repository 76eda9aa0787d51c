"""Redis Job Stores: MessageJob e SyncJob.

Layout de chaves:
    message_job:{job_id}            JSON do job
    message_job:due                 ZSET job_id -> next_retry_at (epoch), só pending
    message_job:vendor:{vendor_id}  SET de job_ids
    sync_job:{job_id}               JSON do job
    sync_job:due                    ZSET job_id -> next_retry_at (epoch), só pending
    sync_job:vendor:{vendor_id}     SET de job_ids
    sync_job:pending:{vendor}:{product}  job_id pending do par
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from app.domain.jobs import MessageJob, MessageStatus, SyncJob, SyncStatus
from app.infra.stores.redis_errors import redis_errors
from app.protocols.job_store import MessageJobStoreProtocol, SyncJobStoreProtocol

if TYPE_CHECKING:
    from datetime import datetime

    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

MESSAGE_JOB_PREFIX = "message_job:"
SYNC_JOB_PREFIX = "sync_job:"


def _decode_str(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


def _due_score(job: MessageJob | SyncJob) -> float:
    return (job.next_retry_at or job.created_at).timestamp()


class _RedisJobStoreBase:
    """Operações comuns: JSON por job, ZSET de vencimento, SET por vendor."""

    prefix: str = ""

    def __init__(self, async_redis_client: AsyncRedis[bytes]) -> None:
        self._redis = async_redis_client

    def _key(self, job_id: str) -> str:
        return f"{self.prefix}{job_id}"

    @property
    def _due_key(self) -> str:
        return f"{self.prefix}due"

    def _vendor_key(self, vendor_id: str) -> str:
        return f"{self.prefix}vendor:{vendor_id}"

    async def _write(self, job: MessageJob | SyncJob, pending: bool) -> None:
        with redis_errors("salvar job"):
            await self._redis.set(self._key(job.job_id), json.dumps(job.to_dict()))
            await self._redis.sadd(self._vendor_key(job.vendor_id), job.job_id)
            if pending:
                await self._redis.zadd(self._due_key, {job.job_id: _due_score(job)})
            else:
                await self._redis.zrem(self._due_key, job.job_id)

    async def _read(self, job_id: str) -> dict[str, Any] | None:
        with redis_errors("carregar job"):
            data = await self._redis.get(self._key(job_id))
        if data is None:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            logger.warning("job_load_error", extra={"job_id": job_id, "prefix": self.prefix})
            return None

    async def _read_many(self, job_ids: list[str]) -> list[dict[str, Any]]:
        if not job_ids:
            return []
        with redis_errors("carregar jobs"):
            raw = await self._redis.mget([self._key(j) for j in job_ids])
        result: list[dict[str, Any]] = []
        for job_id, data in zip(job_ids, raw, strict=True):
            if data is None:
                continue
            try:
                result.append(json.loads(data))
            except json.JSONDecodeError:
                logger.warning("job_load_error", extra={"job_id": job_id, "prefix": self.prefix})
        return result

    async def _due_ids(self, now: datetime, limit: int) -> list[str]:
        with redis_errors("listar jobs vencidos"):
            members = await self._redis.zrangebyscore(
                self._due_key, "-inf", now.timestamp(), start=0, num=limit
            )
        return [_decode_str(m) for m in members]

    async def _vendor_ids(self, vendor_id: str) -> list[str]:
        with redis_errors("listar jobs do vendor"):
            members = await self._redis.smembers(self._vendor_key(vendor_id))
        return sorted(_decode_str(m) for m in members)


class RedisMessageJobStore(_RedisJobStoreBase, MessageJobStoreProtocol):
    """Store de MessageJob usando Redis."""

    prefix = MESSAGE_JOB_PREFIX

    async def save_async(self, job: MessageJob) -> None:
        await self._write(job, pending=job.status == MessageStatus.PENDING)

    async def load_async(self, job_id: str) -> MessageJob | None:
        data = await self._read(job_id)
        return MessageJob.from_dict(data) if data else None

    async def list_due_async(self, now: datetime, limit: int) -> list[MessageJob]:
        ids = await self._due_ids(now, limit)
        jobs = [MessageJob.from_dict(d) for d in await self._read_many(ids)]
        return [j for j in jobs if j.is_due(now)]

    async def list_by_vendor_async(self, vendor_id: str) -> list[MessageJob]:
        ids = await self._vendor_ids(vendor_id)
        return [MessageJob.from_dict(d) for d in await self._read_many(ids)]


class RedisSyncJobStore(_RedisJobStoreBase, SyncJobStoreProtocol):
    """Store de SyncJob usando Redis."""

    prefix = SYNC_JOB_PREFIX

    def _pending_key(self, vendor_id: str, product_id: str) -> str:
        return f"{self.prefix}pending:{vendor_id}:{product_id}"

    async def save_async(self, job: SyncJob) -> None:
        pending = job.status == SyncStatus.PENDING
        await self._write(job, pending=pending)
        pending_key = self._pending_key(job.vendor_id, job.product_id)
        with redis_errors("atualizar sync pendente"):
            if pending:
                await self._redis.set(pending_key, job.job_id)
            else:
                current = await self._redis.get(pending_key)
                if current is not None and _decode_str(current) == job.job_id:
                    await self._redis.delete(pending_key)

    async def load_async(self, job_id: str) -> SyncJob | None:
        data = await self._read(job_id)
        return SyncJob.from_dict(data) if data else None

    async def find_pending_async(self, vendor_id: str, product_id: str) -> SyncJob | None:
        with redis_errors("buscar sync pendente"):
            job_id = await self._redis.get(self._pending_key(vendor_id, product_id))
        if job_id is None:
            return None
        job = await self.load_async(_decode_str(job_id))
        if job is None or job.status != SyncStatus.PENDING:
            return None
        return job

    async def list_due_async(self, now: datetime, limit: int) -> list[SyncJob]:
        ids = await self._due_ids(now, limit)
        jobs = [SyncJob.from_dict(d) for d in await self._read_many(ids)]
        return [j for j in jobs if j.is_due(now)]

    async def list_by_vendor_async(self, vendor_id: str) -> list[SyncJob]:
        ids = await self._vendor_ids(vendor_id)
        return [SyncJob.from_dict(d) for d in await self._read_many(ids)]
