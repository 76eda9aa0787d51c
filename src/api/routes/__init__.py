"""Rotas HTTP da API: adapters de entrada da plataforma.

Estrutura:
- routes/health/: health checks e readiness
- routes/lifecycle/: ticks agendados
- routes/actions/: ações de admin e de vendor

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
