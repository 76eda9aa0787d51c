"""Redis Credential Store.

Tokens expiram no Redis junto com o próprio AuthToken (SETEX).
"""

from __future__ import annotations

import json
import logging
import math
from typing import TYPE_CHECKING

from app.domain.auth_token import AuthToken
from app.domain.clock import utc_now
from app.infra.stores.redis_errors import redis_errors
from app.protocols.credential_store import CredentialStoreProtocol

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

SIGNING_SECRET_KEY = "credentials:signing_secret"
VENDOR_CREDENTIALS_PREFIX = "credentials:vendor:"
TOKEN_PREFIX = "auth_token:"


class RedisCredentialStore(CredentialStoreProtocol):
    """Credential Store usando Redis.

    Args:
        async_redis_client: Cliente Redis assíncrono
    """

    def __init__(self, async_redis_client: AsyncRedis[bytes]) -> None:
        self._redis = async_redis_client

    async def get_signing_secret_async(self) -> str | None:
        with redis_errors("ler signing secret"):
            value = await self._redis.get(SIGNING_SECRET_KEY)
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else value

    async def set_signing_secret_async(self, secret: str) -> None:
        with redis_errors("gravar signing secret"):
            await self._redis.set(SIGNING_SECRET_KEY, secret)
        logger.info("signing_secret_stored")

    async def get_vendor_credentials_async(self, vendor_id: str) -> dict[str, str] | None:
        with redis_errors("ler credenciais do vendor"):
            data = await self._redis.get(f"{VENDOR_CREDENTIALS_PREFIX}{vendor_id}")
        if data is None:
            return None
        return json.loads(data)

    async def set_vendor_credentials_async(
        self, vendor_id: str, credentials: dict[str, str]
    ) -> None:
        with redis_errors("gravar credenciais do vendor"):
            await self._redis.set(
                f"{VENDOR_CREDENTIALS_PREFIX}{vendor_id}", json.dumps(credentials)
            )

    async def load_token_async(self, subject: str) -> AuthToken | None:
        with redis_errors("ler token"):
            data = await self._redis.get(f"{TOKEN_PREFIX}{subject}")
        if data is None:
            return None
        try:
            return AuthToken.from_dict(json.loads(data))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning(
                "auth_token_load_error",
                extra={"subject": subject, "error": type(e).__name__},
            )
            return None

    async def save_token_async(self, token: AuthToken) -> None:
        ttl = math.ceil((token.expires_at - utc_now()).total_seconds())
        if ttl <= 0:
            return
        with redis_errors("gravar token"):
            await self._redis.setex(
                f"{TOKEN_PREFIX}{token.subject}", ttl, json.dumps(token.to_dict())
            )

    async def delete_token_async(self, subject: str) -> bool:
        with redis_errors("remover token"):
            return bool(await self._redis.delete(f"{TOKEN_PREFIX}{subject}"))

    async def clear_tokens_async(self) -> int:
        with redis_errors("limpar tokens"):
            keys = [key async for key in self._redis.scan_iter(match=f"{TOKEN_PREFIX}*")]
            if not keys:
                return 0
            return int(await self._redis.delete(*keys))
