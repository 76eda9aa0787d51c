"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    AuthError,
    ConfigurationError,
    CredentialRejected,
    GatewayBridgeError,
    GatewayProtocolError,
    GatewayRateLimited,
    GatewayRejected,
    GatewayTimeout,
    InfrastructureError,
    InvalidRequest,
    InvalidSessionTransition,
    MissingVariable,
    NetworkUnavailable,
    RedisConnectionError,
    SessionNotReady,
    TemplateNotFound,
    TokenRefreshUnavailable,
    UnknownAction,
)

__all__ = [
    "AuthError",
    "ConfigurationError",
    "CredentialRejected",
    "GatewayBridgeError",
    "GatewayProtocolError",
    "GatewayRateLimited",
    "GatewayRejected",
    "GatewayTimeout",
    "InfrastructureError",
    "InvalidRequest",
    "InvalidSessionTransition",
    "MissingVariable",
    "NetworkUnavailable",
    "RedisConnectionError",
    "SessionNotReady",
    "TemplateNotFound",
    "TokenRefreshUnavailable",
    "UnknownAction",
]
