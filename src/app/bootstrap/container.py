"""Composition root: monta todos os componentes do bridge.

Sem objeto global de plugin: quem precisa dos componentes recebe o
AppContainer (entrypoints, rotas FastAPI, testes).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from api.connectors.gateway import GatewayClient, HttpClient, HttpClientConfig
from app.auth import AuthManager
from app.bootstrap.dependencies_stores import (
    create_credential_store,
    create_job_stores,
    create_session_store,
)
from app.domain.clock import utc_now
from app.infra.secrets import EnvSecretProvider
from app.scheduling import (
    MESSAGE_RETRY,
    PRODUCT_SYNC,
    SESSION_CHECK,
    SESSION_RECONCILE,
    SchedulerConfig,
    TickRunner,
)
from app.services import (
    MessageDispatcher,
    OrderStatusNotifier,
    SyncCoordinator,
    build_usage_tracker,
)
from app.sessions import SessionManager
from app.templates import AutoMessageTable, TemplateCatalog, TemplateRenderer
from config.settings import (
    get_base_settings,
    get_dispatch_settings,
    get_gateway_settings,
    get_session_settings,
)

if TYPE_CHECKING:
    from app.domain.clock import Clock
    from app.protocols.credential_store import CredentialStoreProtocol
    from app.protocols.job_store import MessageJobStoreProtocol, SyncJobStoreProtocol
    from app.protocols.lifecycle import LifecycleAware
    from app.protocols.vendor_session_store import VendorSessionStoreProtocol
    from app.services.usage import LoggingUsageTracker, NullUsageTracker
    from config.settings import (
        BaseSettings,
        DispatchSettings,
        GatewaySettings,
        SessionSettings,
    )

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Componentes montados do bridge."""

    base_settings: BaseSettings
    gateway_settings: GatewaySettings
    session_settings: SessionSettings
    dispatch_settings: DispatchSettings
    credential_store: CredentialStoreProtocol
    session_store: VendorSessionStoreProtocol
    message_store: MessageJobStoreProtocol
    sync_store: SyncJobStoreProtocol
    auth: AuthManager
    gateway: GatewayClient
    sessions: SessionManager
    catalog: TemplateCatalog
    renderer: TemplateRenderer
    dispatcher: MessageDispatcher
    order_notifier: OrderStatusNotifier
    sync: SyncCoordinator
    usage_tracker: LoggingUsageTracker | NullUsageTracker
    scheduler: SchedulerConfig
    runner: TickRunner
    lifecycle_components: list[LifecycleAware] = field(default_factory=list)


def _auto_message_table(dispatch_cfg: DispatchSettings) -> AutoMessageTable:
    try:
        return AutoMessageTable.from_pairs(dispatch_cfg.auto_message_pairs())
    except ValueError:
        # validate_runtime_settings reporta a entrada inválida
        logger.warning("auto_messages_config_ignored")
        return AutoMessageTable()


def _register_jobs(container: AppContainer) -> None:
    """Registra os ticks periódicos no SchedulerConfig."""
    sessions = container.sessions
    session_settings = container.session_settings
    dispatch_settings = container.dispatch_settings

    async def _session_check(deadline: float | None) -> dict:
        return (await sessions.run_health_checks(deadline)).to_dict()

    async def _session_reconcile(deadline: float | None) -> dict:
        return (await sessions.reconcile(deadline)).to_dict()

    async def _product_sync(deadline: float | None) -> dict:
        return (await container.sync.process_due(deadline)).to_dict()

    async def _message_retry(deadline: float | None) -> dict:
        return (await container.dispatcher.process_due(deadline)).to_dict()

    scheduler = container.scheduler
    scheduler.register(SESSION_CHECK, session_settings.check_interval_seconds, _session_check)
    scheduler.register(
        SESSION_RECONCILE, session_settings.reconcile_interval_seconds, _session_reconcile
    )
    scheduler.register(PRODUCT_SYNC, dispatch_settings.sync_interval_seconds, _product_sync)
    scheduler.register(MESSAGE_RETRY, dispatch_settings.retry_interval_seconds, _message_retry)


def build_container(
    *,
    base_settings: BaseSettings | None = None,
    gateway_settings: GatewaySettings | None = None,
    session_settings: SessionSettings | None = None,
    dispatch_settings: DispatchSettings | None = None,
    credential_store: CredentialStoreProtocol | None = None,
    session_store: VendorSessionStoreProtocol | None = None,
    message_store: MessageJobStoreProtocol | None = None,
    sync_store: SyncJobStoreProtocol | None = None,
    gateway_transport: httpx.AsyncBaseTransport | None = None,
    clock: Clock = utc_now,
    seed_secret: str | None = None,
) -> AppContainer:
    """Monta o container.

    Args:
        base_settings: BaseSettings (env se None)
        gateway_settings: GatewaySettings (env se None)
        session_settings: SessionSettings (env se None)
        dispatch_settings: DispatchSettings (env se None)
        credential_store: Store de credenciais (backend configurado se None)
        session_store: Store de VendorSession (backend configurado se None)
        message_store: Store de MessageJob (backend configurado se None)
        sync_store: Store de SyncJob (backend configurado se None)
        gateway_transport: Transporte httpx compartilhado (MockTransport em testes)
        clock: Relógio UTC
        seed_secret: Signing secret inicial (env/settings se None)
    """
    base = base_settings or get_base_settings()
    gateway_cfg = gateway_settings or get_gateway_settings()
    session_cfg = session_settings or get_session_settings()
    dispatch_cfg = dispatch_settings or get_dispatch_settings()

    credentials = credential_store or create_credential_store(base)
    sessions_store = session_store or create_session_store(base)
    if message_store is None or sync_store is None:
        default_message_store, default_sync_store = create_job_stores(base)
        message_store = message_store or default_message_store
        sync_store = sync_store or default_sync_store

    seed = seed_secret or gateway_cfg.signing_secret or EnvSecretProvider().gateway_signing_secret
    auth_http = (
        httpx.AsyncClient(
            timeout=gateway_cfg.request_timeout_seconds, transport=gateway_transport
        )
        if gateway_transport is not None
        else None
    )
    auth = AuthManager(
        gateway_cfg, credentials, http_client=auth_http, clock=clock, seed_secret=seed
    )

    usage_tracker = build_usage_tracker(base.allow_usage_tracking)
    gateway = GatewayClient(
        gateway_cfg,
        auth,
        http_client=HttpClient(
            HttpClientConfig(timeout_seconds=gateway_cfg.request_timeout_seconds),
            transport=gateway_transport,
        ),
        usage_tracker=usage_tracker,
    )

    sessions = SessionManager(sessions_store, gateway, session_cfg, clock=clock)
    catalog = TemplateCatalog()
    renderer = TemplateRenderer(catalog)
    dispatcher = MessageDispatcher(
        message_store, renderer, sessions, gateway, dispatch_cfg, clock=clock
    )
    sync = SyncCoordinator(sync_store, sessions, gateway, dispatch_cfg, clock=clock)
    order_notifier = OrderStatusNotifier(_auto_message_table(dispatch_cfg), dispatcher)

    scheduler = SchedulerConfig()
    container = AppContainer(
        base_settings=base,
        gateway_settings=gateway_cfg,
        session_settings=session_cfg,
        dispatch_settings=dispatch_cfg,
        credential_store=credentials,
        session_store=sessions_store,
        message_store=message_store,
        sync_store=sync_store,
        auth=auth,
        gateway=gateway,
        sessions=sessions,
        catalog=catalog,
        renderer=renderer,
        dispatcher=dispatcher,
        order_notifier=order_notifier,
        sync=sync,
        usage_tracker=usage_tracker,
        scheduler=scheduler,
        runner=TickRunner(scheduler, session_cfg.tick_budget_seconds),
        lifecycle_components=[auth, gateway],
    )
    _register_jobs(container)

    logger.info(
        "container_built",
        extra={
            "environment": base.environment,
            "usage_tracking": base.allow_usage_tracking,
            "scheduled_jobs": scheduler.names,
        },
    )
    return container
