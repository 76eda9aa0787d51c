"""Aplicação ASGI do vendor bridge.

    uvicorn app.app:app --host 0.0.0.0 --port 8080

No startup o container do processo é montado (ou o injetado via
`create_app(container)` é usado) e o bridge é ativado; no shutdown os
jobs agendados são desligados e o cliente Redis é fechado.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from app.bootstrap import get_container, initialize_app, validate_runtime_settings
from app.bootstrap.clients import create_async_redis_client
from app.entrypoints import on_activate, on_deactivate
from config.logging import DEFAULT_SERVICE_NAME, get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from app.bootstrap import AppContainer

# Logging JSON precisa estar ativo antes do primeiro logger.info
initialize_app()

logger = get_logger(__name__)

APP_VERSION = "1.0.0"


def _redis_client_for(container: AppContainer):
    base = container.base_settings
    backends = {
        base.session_store_backend,
        base.job_store_backend,
        base.credential_store_backend,
    }
    if "redis" not in backends:
        return None
    return create_async_redis_client(base.redis_url)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    container: AppContainer | None = getattr(app.state, "container", None)
    if container is None:
        container = get_container()
        validate_runtime_settings(container)
        app.state.container = container
    app.state.redis_client = _redis_client_for(container)

    activation = await on_activate(container)
    logger.info(
        "app_started",
        extra={"service": DEFAULT_SERVICE_NAME, "scheduled_jobs": len(activation["scheduled_jobs"])},
    )
    try:
        yield
    finally:
        logger.info("app_stopping", extra={"service": DEFAULT_SERVICE_NAME})
        await on_deactivate(container)
        if app.state.redis_client is not None:
            await app.state.redis_client.aclose()


def create_app(container: AppContainer | None = None) -> FastAPI:
    """FastAPI com as rotas de health, ações e ticks.

    Testes passam um container pronto; em produção ele é montado no
    startup a partir do ambiente.
    """
    fastapi_app = FastAPI(
        title="Vendor WhatsApp Bridge",
        description="Sessões de vendor, tokens e mensagens via gateway WhatsApp",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    if container is not None:
        fastapi_app.state.container = container
    fastapi_app.include_router(create_api_router())
    return fastapi_app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run("app.app:app", host="0.0.0.0", port=8080, reload=True)


if __name__ == "__main__":
    main()
