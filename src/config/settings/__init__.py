"""Agregador de settings do vendor bridge.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    SessionSettings,
    StoreBackend,
    get_base_settings,
    get_session_settings,
)

# Dispatch settings
from config.settings.dispatch import (
    DispatchSettings,
    get_dispatch_settings,
)

# Gateway settings
from config.settings.gateway import (
    DEFAULT_JWT_ALGORITHM,
    DEFAULT_TOKEN_ENDPOINT,
    GatewaySettings,
    get_gateway_settings,
)

__all__ = [
    # Constants
    "DEFAULT_JWT_ALGORITHM",
    "DEFAULT_TOKEN_ENDPOINT",
    # Base
    "BaseSettings",
    # Dispatch
    "DispatchSettings",
    "Environment",
    # Gateway
    "GatewaySettings",
    "SessionSettings",
    "StoreBackend",
    "get_base_settings",
    "get_dispatch_settings",
    "get_gateway_settings",
    "get_session_settings",
]
