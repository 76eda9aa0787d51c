"""Settings do gateway WhatsApp externo.

URL base, endpoints, timeouts e parâmetros de emissão de token.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_TOKEN_ENDPOINT = "/auth/token"
DEFAULT_JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class GatewaySettings:
    """Configurações do gateway.

    Attributes:
        api_base_url: URL base da API do gateway
        token_endpoint: Endpoint de emissão de token (relativo à base)
        issuer: Valor `iss` das asserções assinadas (URL da loja)
        signing_secret: Secret inicial (opcional; gerado na ativação se ausente)
        jwt_algorithm: Algoritmo de assinatura das asserções
        assertion_ttl_seconds: Validade das asserções enviadas ao gateway
        token_safety_margin_seconds: Margem antes da expiração para renovar
        request_timeout_seconds: Timeout para requisições HTTP
        log_body_max_chars: Limite de caracteres de corpo bruto nos logs
    """

    api_base_url: str = ""
    token_endpoint: str = DEFAULT_TOKEN_ENDPOINT
    issuer: str = ""
    signing_secret: str = ""
    jwt_algorithm: str = DEFAULT_JWT_ALGORITHM

    # Tokens
    assertion_ttl_seconds: int = 3600
    token_safety_margin_seconds: int = 60

    # Timeouts
    request_timeout_seconds: float = 30.0

    # Logging
    log_body_max_chars: int = 500

    def build_url(self, endpoint: str) -> str:
        """Concatena endpoint à URL base sem barras duplicadas."""
        return f"{self.api_base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def validate(self) -> list[str]:
        """Valida configurações mínimas do gateway.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not self.api_base_url:
            errors.append("GATEWAY_API_URL não configurado")
        elif not self.api_base_url.startswith(("http://", "https://")):
            errors.append("GATEWAY_API_URL deve começar com http:// ou https://")

        if self.jwt_algorithm not in ("HS256", "HS384", "HS512"):
            errors.append("GATEWAY_JWT_ALGORITHM deve ser HS256, HS384 ou HS512")

        if self.request_timeout_seconds <= 0:
            errors.append("GATEWAY_REQUEST_TIMEOUT_SECONDS deve ser > 0")

        if self.token_safety_margin_seconds < 0:
            errors.append("GATEWAY_TOKEN_SAFETY_MARGIN_SECONDS deve ser >= 0")

        if self.assertion_ttl_seconds <= self.token_safety_margin_seconds:
            errors.append(
                "GATEWAY_ASSERTION_TTL_SECONDS deve ser maior que a margem de renovação"
            )

        return errors


def _load_from_env() -> GatewaySettings:
    """Carrega GatewaySettings a partir de variáveis de ambiente."""
    return GatewaySettings(
        api_base_url=os.getenv("GATEWAY_API_URL", ""),
        token_endpoint=os.getenv("GATEWAY_TOKEN_ENDPOINT", DEFAULT_TOKEN_ENDPOINT),
        issuer=os.getenv("GATEWAY_ISSUER", ""),
        signing_secret=os.getenv("GATEWAY_SIGNING_SECRET", ""),
        jwt_algorithm=os.getenv("GATEWAY_JWT_ALGORITHM", DEFAULT_JWT_ALGORITHM).upper(),
        assertion_ttl_seconds=int(os.getenv("GATEWAY_ASSERTION_TTL_SECONDS", "3600")),
        token_safety_margin_seconds=int(
            os.getenv("GATEWAY_TOKEN_SAFETY_MARGIN_SECONDS", "60")
        ),
        request_timeout_seconds=float(
            os.getenv("GATEWAY_REQUEST_TIMEOUT_SECONDS", "30")
        ),
        log_body_max_chars=int(os.getenv("GATEWAY_LOG_BODY_MAX_CHARS", "500")),
    )


@lru_cache(maxsize=1)
def get_gateway_settings() -> GatewaySettings:
    """Retorna instância cacheada de GatewaySettings.

    A cache garante singleton para múltiplas injeções.
    """
    return _load_from_env()
