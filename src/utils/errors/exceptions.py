"""Exceções de domínio compartilhadas por todas as camadas.

Cada erro carrega um `kind` estável (renderizado pela camada de plataforma)
e a classificação `transient`, usada por Message Dispatcher e
Sync Coordinator para decidir entre retry e estado terminal.
"""

from __future__ import annotations


class GatewayBridgeError(Exception):
    """Base de erros tipados do core."""

    kind: str = "InternalError"
    transient: bool = False

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind
        self.status_code = status_code

    def to_dict(self) -> dict[str, object]:
        """Representação segura para logs e respostas."""
        return {
            "error_kind": self.kind,
            "message": self.message,
            "transient": self.transient,
        }


# ──────────────────────────────────────────────────────────────────────────────
# Autenticação
# ──────────────────────────────────────────────────────────────────────────────


class AuthError(GatewayBridgeError):
    """Falha ao emitir ou renovar token do gateway."""

    kind = "AuthError"


class CredentialRejected(AuthError):
    """Secret ausente/inválido ou token recusado após renovação."""

    kind = "CredentialRejected"


# ──────────────────────────────────────────────────────────────────────────────
# Transporte / gateway
# ──────────────────────────────────────────────────────────────────────────────


class NetworkUnavailable(GatewayBridgeError):
    """Gateway inacessível ou erro 5xx."""

    kind = "NetworkUnavailable"
    transient = True


class TokenRefreshUnavailable(NetworkUnavailable, AuthError):
    """Endpoint de emissão de token inacessível durante refresh."""

    kind = "NetworkUnavailable"
    transient = True


class GatewayTimeout(GatewayBridgeError):
    """Chamada ao gateway excedeu o timeout."""

    kind = "Timeout"
    transient = True


class GatewayRateLimited(GatewayBridgeError):
    """Gateway respondeu 429; respeitar retry_after quando informado."""

    kind = "GatewayRateLimited"
    transient = True

    def __init__(
        self,
        message: str = "",
        *,
        retry_after: float | None = None,
        status_code: int | None = 429,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class GatewayRejected(GatewayBridgeError):
    """Requisição recusada pelo gateway (4xx não-auth)."""

    kind = "GatewayRejected"


class GatewayProtocolError(GatewayBridgeError):
    """Resposta do gateway fora do contrato (JSON inválido, campos ausentes)."""

    kind = "GatewayProtocolError"


# ──────────────────────────────────────────────────────────────────────────────
# Sessão / templates / entrada
# ──────────────────────────────────────────────────────────────────────────────


class SessionNotReady(GatewayBridgeError):
    """Sessão do vendor não está connected/degraded."""

    kind = "SessionNotReady"


class InvalidSessionTransition(GatewayBridgeError):
    """Operação pedida não é permitida no estado atual da sessão."""

    kind = "InvalidSessionTransition"


class TemplateNotFound(GatewayBridgeError):
    """Nome de template desconhecido."""

    kind = "TemplateNotFound"

    def __init__(self, template_name: str) -> None:
        super().__init__(f"Template não encontrado: {template_name}")
        self.template_name = template_name


class MissingVariable(GatewayBridgeError):
    """Slot obrigatório do template sem variável correspondente."""

    kind = "MissingVariable"

    def __init__(self, template_name: str, missing: list[str]) -> None:
        super().__init__(
            f"Variáveis ausentes para {template_name}: {', '.join(missing)}"
        )
        self.template_name = template_name
        self.missing = list(missing)


class UnknownAction(GatewayBridgeError):
    """Ação de request não mapeada para operação do core."""

    kind = "UnknownAction"


class InvalidRequest(GatewayBridgeError):
    """Payload de request sem campos obrigatórios."""

    kind = "InvalidRequest"


class ConfigurationError(GatewayBridgeError):
    """Erro de configuração/programação; fatal na ativação."""

    kind = "ConfigurationError"


# ──────────────────────────────────────────────────────────────────────────────
# Infraestrutura
# ──────────────────────────────────────────────────────────────────────────────


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""
