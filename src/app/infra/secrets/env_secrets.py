"""Secrets lidos do ambiente do processo.

Só semeia o signing secret na primeira ativação; depois disso a fonte
de verdade é o Credential Store (rotação não volta para a env).
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

# Secrets HS256 mais curtos que isso são recusados como semente
MIN_SIGNING_SECRET_LENGTH = 32

SIGNING_SECRET_KEY = "gateway-signing-secret"


class EnvSecretProvider:
    """Lê secrets por nome lógico (`gateway-signing-secret` → GATEWAY_SIGNING_SECRET)."""

    def __init__(self, prefix: str = "") -> None:
        self._prefix = f"{prefix.upper().rstrip('_')}_" if prefix else ""

    def env_name(self, key: str) -> str:
        return self._prefix + key.upper().replace("-", "_")

    def get(self, key: str, default: str | None = None) -> str | None:
        value = os.getenv(self.env_name(key))
        if value is None:
            logger.debug("env_secret_missing", extra={"env_name": self.env_name(key)})
            return default
        return value

    def require(self, key: str) -> str:
        """Como `get`, mas ausência é erro de configuração (ValueError)."""
        value = self.get(key)
        if value is None:
            raise ValueError(
                f"Variável de ambiente obrigatória não definida: {self.env_name(key)}"
            )
        return value

    @property
    def gateway_signing_secret(self) -> str | None:
        """Semente do signing secret; None se ausente ou curta demais."""
        value = self.get(SIGNING_SECRET_KEY)
        if value is None or len(value) >= MIN_SIGNING_SECRET_LENGTH:
            return value
        logger.warning(
            "env_signing_secret_too_short",
            extra={"min_length": MIN_SIGNING_SECRET_LENGTH, "length": len(value)},
        )
        return None
