"""Agregador de rotas: registra todos os routers.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.actions.router import router as actions_router
from api.routes.health.router import router as health_router
from api.routes.lifecycle.router import router as lifecycle_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados."""
    api_router = APIRouter()

    # Health checks (sem prefixo para /health e /ready na raiz)
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(lifecycle_router, tags=["lifecycle"])
    api_router.include_router(actions_router, tags=["actions"])

    return api_router
