"""Tradução de RedisError para RedisConnectionError nos stores Redis."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from collections.abc import Iterator


@contextmanager
def redis_errors(action: str) -> Iterator[None]:
    """Converte falhas do cliente Redis em RedisConnectionError.

    Args:
        action: Descrição curta da operação, usada na mensagem
    """
    try:
        yield
    except RedisError as exc:
        raise RedisConnectionError(f"Falha no Redis ao {action}") from exc
