"""Secrets: provedor via variáveis de ambiente."""

from __future__ import annotations

from app.infra.secrets.env_secrets import MIN_SIGNING_SECRET_LENGTH, EnvSecretProvider

__all__ = [
    "MIN_SIGNING_SECRET_LENGTH",
    "EnvSecretProvider",
]
