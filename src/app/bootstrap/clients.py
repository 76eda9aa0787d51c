"""Factory do cliente Redis asyncio compartilhado pelos stores e pelo readiness."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)


def _require_url(redis_url: str) -> str:
    if not redis_url:
        msg = "REDIS_URL não configurado"
        raise ValueError(msg)
    return redis_url


@lru_cache(maxsize=1)
def create_async_redis_client(redis_url: str) -> AsyncRedis[bytes]:
    """Cria cliente Redis assíncrono (singleton por URL).

    Raises:
        ValueError: Se REDIS_URL não configurado
    """
    from redis.asyncio import Redis as AsyncRedis

    client: AsyncRedis[bytes] = AsyncRedis.from_url(
        _require_url(redis_url),
        decode_responses=False,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )

    logger.info("async_redis_client_created")
    return client
