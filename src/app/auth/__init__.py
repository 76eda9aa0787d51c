"""Autenticação no gateway: emissão e renovação de tokens."""

from app.auth.manager import AuthManager, generate_signing_secret

__all__ = ["AuthManager", "generate_signing_secret"]
