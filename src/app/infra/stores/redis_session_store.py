"""Redis VendorSession Store.

Um JSON por vendor em `vendor_session:{vendor_id}` e um SET de índice
para listagem sem SCAN.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from app.domain.vendor_session import VendorSession
from app.protocols.vendor_session_store import VendorSessionStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

SESSION_PREFIX = "vendor_session:"
SESSION_INDEX_KEY = "vendor_session:index"


class RedisVendorSessionStore(VendorSessionStoreProtocol):
    """Store de VendorSession usando Redis.

    Sessões não expiram por TTL: o ciclo de vida é da FSM.

    Args:
        async_redis_client: Cliente Redis assíncrono
    """

    def __init__(self, async_redis_client: AsyncRedis[bytes]) -> None:
        self._redis = async_redis_client

    def _key(self, vendor_id: str) -> str:
        return f"{SESSION_PREFIX}{vendor_id}"

    def _decode(self, vendor_id: str, data: bytes | str) -> VendorSession | None:
        try:
            return VendorSession.from_dict(json.loads(data))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning(
                "vendor_session_load_error",
                extra={"vendor_id": vendor_id, "error": type(e).__name__},
            )
            return None

    async def save_async(self, session: VendorSession) -> None:
        data = json.dumps(session.to_dict())
        try:
            await self._redis.set(self._key(session.vendor_id), data)
            await self._redis.sadd(SESSION_INDEX_KEY, session.vendor_id)
        except RedisError as exc:
            raise RedisConnectionError("Falha ao salvar VendorSession no Redis") from exc
        logger.debug(
            "vendor_session_saved",
            extra={"vendor_id": session.vendor_id, "state": session.state.value},
        )

    async def load_async(self, vendor_id: str) -> VendorSession | None:
        try:
            data = await self._redis.get(self._key(vendor_id))
        except RedisError as exc:
            raise RedisConnectionError("Falha ao carregar VendorSession do Redis") from exc
        if data is None:
            return None
        return self._decode(vendor_id, data)

    async def delete_async(self, vendor_id: str) -> bool:
        try:
            deleted = await self._redis.delete(self._key(vendor_id))
            await self._redis.srem(SESSION_INDEX_KEY, vendor_id)
        except RedisError as exc:
            raise RedisConnectionError("Falha ao remover VendorSession do Redis") from exc
        return bool(deleted)

    async def list_async(self) -> list[VendorSession]:
        try:
            members = await self._redis.smembers(SESSION_INDEX_KEY)
        except RedisError as exc:
            raise RedisConnectionError("Falha ao listar VendorSessions no Redis") from exc
        vendor_ids = sorted(
            m.decode() if isinstance(m, bytes) else m for m in members
        )
        if not vendor_ids:
            return []
        try:
            raw = await self._redis.mget([self._key(v) for v in vendor_ids])
        except RedisError as exc:
            raise RedisConnectionError("Falha ao listar VendorSessions no Redis") from exc
        sessions: list[VendorSession] = []
        for vendor_id, data in zip(vendor_ids, raw, strict=True):
            if data is None:
                continue
            session = self._decode(vendor_id, data)
            if session is not None:
                sessions.append(session)
        return sessions
