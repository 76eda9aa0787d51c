"""Settings base do vendor bridge.

Configurações comuns a todos os componentes do serviço.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

Environment = Literal["development", "staging", "production"]
StoreBackend = Literal["memory", "redis"]

VALID_STORE_BACKENDS = frozenset({"memory", "redis"})


@dataclass(frozen=True)
class BaseSettings:
    """Configurações base do sistema.

    Attributes:
        environment: Ambiente de execução (development|staging|production)
        service_name: Nome do serviço para logs
        debug: Modo debug ativo (loga payloads truncados do gateway)
        redis_url: URL de conexão Redis
        session_store_backend: Backend das VendorSessions
        job_store_backend: Backend de MessageJob/SyncJob
        credential_store_backend: Backend do secret e cache de tokens
        allow_usage_tracking: Habilita rastreamento de uso da API do gateway
    """

    # Ambiente
    environment: Environment = "development"
    service_name: str = "vendor-bridge"
    debug: bool = False

    # Redis
    redis_url: str = ""

    # Backends de persistência
    session_store_backend: StoreBackend = "memory"
    job_store_backend: StoreBackend = "memory"
    credential_store_backend: StoreBackend = "memory"

    # Integrações opcionais
    allow_usage_tracking: bool = False

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment == "development"

    def validate(self) -> list[str]:
        """Valida configurações base.

        Returns:
            Lista de erros (vazia = OK).
        """
        errors: list[str] = []

        valid_envs = {"development", "staging", "production"}
        if self.environment not in valid_envs:
            errors.append(f"ENVIRONMENT inválido: {self.environment}")

        if not self.service_name:
            errors.append("SERVICE_NAME não pode ser vazio")

        backends = {
            "SESSION_STORE_BACKEND": self.session_store_backend,
            "JOB_STORE_BACKEND": self.job_store_backend,
            "CREDENTIAL_STORE_BACKEND": self.credential_store_backend,
        }
        for env_name, backend in backends.items():
            if backend not in VALID_STORE_BACKENDS:
                errors.append(f"{env_name} inválido: {backend}")
            elif backend == "memory" and not self.is_development:
                errors.append(f"{env_name}=memory proibido em staging/production")
            elif backend == "redis" and not self.redis_url:
                errors.append(f"{env_name}=redis exige REDIS_URL")

        return errors


def _parse_environment(env_str: str) -> Environment:
    """Converte string de ambiente para tipo Environment."""
    env_lower = env_str.lower()
    if env_lower in ("production", "prod"):
        return "production"
    if env_lower in ("staging", "stage"):
        return "staging"
    return "development"


def _parse_backend(name: str, default: str) -> StoreBackend:
    value = os.getenv(name, default).lower()
    return value if value in VALID_STORE_BACKENDS else default  # type: ignore[return-value]


def _load_base_from_env() -> BaseSettings:
    """Carrega BaseSettings de variáveis de ambiente."""
    environment = _parse_environment(os.getenv("ENVIRONMENT", "development"))
    default_backend = "memory" if environment == "development" else "redis"
    return BaseSettings(
        environment=environment,
        service_name=os.getenv("SERVICE_NAME", "vendor-bridge"),
        debug=os.getenv("DEBUG", "").lower() in ("true", "1", "yes"),
        redis_url=os.getenv("REDIS_URL", ""),
        session_store_backend=_parse_backend("SESSION_STORE_BACKEND", default_backend),
        job_store_backend=_parse_backend("JOB_STORE_BACKEND", default_backend),
        credential_store_backend=_parse_backend("CREDENTIAL_STORE_BACKEND", default_backend),
        allow_usage_tracking=os.getenv("ALLOW_USAGE_TRACKING", "").lower()
        in ("true", "1", "yes"),
    )


@lru_cache(maxsize=1)
def get_base_settings() -> BaseSettings:
    """Retorna instância cacheada de BaseSettings."""
    return _load_base_from_env()
