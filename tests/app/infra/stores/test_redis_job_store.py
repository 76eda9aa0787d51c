"""Testes dos Redis Job Stores com mock."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisClientConnectionError

from app.domain.jobs import MessageJob, MessageStatus, SyncJob, SyncStatus
from app.infra.stores.redis_job_store import RedisMessageJobStore, RedisSyncJobStore
from utils.errors import RedisConnectionError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestRedisMessageJobStore:
    @pytest.mark.asyncio
    async def test_pending_job_goes_to_due_zset(self) -> None:
        mock_redis = AsyncMock()
        store = RedisMessageJobStore(mock_redis)
        job = MessageJob(vendor_id="v1", template_name="t", next_retry_at=NOW)

        await store.save_async(job)

        mock_redis.set.assert_awaited_once()
        assert mock_redis.set.call_args[0][0] == f"message_job:{job.job_id}"
        mock_redis.sadd.assert_awaited_once_with("message_job:vendor:v1", job.job_id)
        mock_redis.zadd.assert_awaited_once_with(
            "message_job:due", {job.job_id: NOW.timestamp()}
        )

    @pytest.mark.asyncio
    async def test_terminal_job_leaves_due_zset(self) -> None:
        mock_redis = AsyncMock()
        store = RedisMessageJobStore(mock_redis)
        job = MessageJob(vendor_id="v1", template_name="t", status=MessageStatus.SENT)

        await store.save_async(job)

        mock_redis.zrem.assert_awaited_once_with("message_job:due", job.job_id)
        mock_redis.zadd.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_due_reads_zset_and_filters(self) -> None:
        due = MessageJob(vendor_id="v1", template_name="t", next_retry_at=NOW)
        stale = MessageJob(
            vendor_id="v1", template_name="t", status=MessageStatus.FAILED
        )
        mock_redis = AsyncMock()
        mock_redis.zrangebyscore.return_value = [due.job_id.encode(), stale.job_id]
        mock_redis.mget.return_value = [
            json.dumps(due.to_dict()),
            json.dumps(stale.to_dict()),
        ]
        store = RedisMessageJobStore(mock_redis)

        jobs = await store.list_due_async(NOW, 20)

        assert [j.job_id for j in jobs] == [due.job_id]
        mock_redis.zrangebyscore.assert_awaited_once_with(
            "message_job:due", "-inf", NOW.timestamp(), start=0, num=20
        )

    @pytest.mark.asyncio
    async def test_load_ignores_corrupt_json(self) -> None:
        mock_redis = AsyncMock()
        mock_redis.get.return_value = b"{broken"
        store = RedisMessageJobStore(mock_redis)

        assert await store.load_async("j1") is None


    @pytest.mark.asyncio
    async def test_redis_failures_are_wrapped(self) -> None:
        mock_redis = AsyncMock()
        mock_redis.set.side_effect = RedisClientConnectionError("down")
        mock_redis.zrangebyscore.side_effect = RedisClientConnectionError("down")
        store = RedisMessageJobStore(mock_redis)

        with pytest.raises(RedisConnectionError):
            await store.save_async(MessageJob(vendor_id="v1", template_name="t"))
        with pytest.raises(RedisConnectionError):
            await store.list_due_async(NOW, limit=10)

class TestRedisSyncJobStore:
    @pytest.mark.asyncio
    async def test_pending_save_sets_pending_pointer(self) -> None:
        mock_redis = AsyncMock()
        store = RedisSyncJobStore(mock_redis)
        job = SyncJob(vendor_id="v1", product_id="p1")

        await store.save_async(job)

        mock_redis.set.assert_any_await("sync_job:pending:v1:p1", job.job_id)

    @pytest.mark.asyncio
    async def test_terminal_save_clears_own_pending_pointer(self) -> None:
        mock_redis = AsyncMock()
        job = SyncJob(vendor_id="v1", product_id="p1", status=SyncStatus.SYNCED)
        mock_redis.get.return_value = job.job_id.encode()
        store = RedisSyncJobStore(mock_redis)

        await store.save_async(job)

        mock_redis.delete.assert_awaited_once_with("sync_job:pending:v1:p1")

    @pytest.mark.asyncio
    async def test_terminal_save_keeps_other_pending_pointer(self) -> None:
        mock_redis = AsyncMock()
        job = SyncJob(vendor_id="v1", product_id="p1", status=SyncStatus.FAILED)
        mock_redis.get.return_value = b"another-job"
        store = RedisSyncJobStore(mock_redis)

        await store.save_async(job)

        mock_redis.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_pending_follows_pointer(self) -> None:
        job = SyncJob(
            vendor_id="v1", product_id="p1", next_retry_at=NOW + timedelta(seconds=30)
        )
        mock_redis = AsyncMock()
        mock_redis.get.side_effect = [job.job_id.encode(), json.dumps(job.to_dict())]
        store = RedisSyncJobStore(mock_redis)

        found = await store.find_pending_async("v1", "p1")

        assert found is not None
        assert found.job_id == job.job_id

    @pytest.mark.asyncio
    async def test_find_pending_without_pointer(self) -> None:
        mock_redis = AsyncMock()
        mock_redis.get.return_value = None
        store = RedisSyncJobStore(mock_redis)

        assert await store.find_pending_async("v1", "p1") is None

    @pytest.mark.asyncio
    async def test_find_pending_wraps_redis_failure(self) -> None:
        mock_redis = AsyncMock()
        mock_redis.get.side_effect = RedisClientConnectionError("down")
        store = RedisSyncJobStore(mock_redis)

        with pytest.raises(RedisConnectionError):
            await store.find_pending_async("v1", "p1")
