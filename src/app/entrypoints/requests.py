"""Ações de admin e de vendor (frontend) mapeadas para o core.

Toda falha tipada vira RequestResult com `error_kind` e mensagem
genérica; corpos crus do gateway nunca chegam aqui. Falhas de
armazenamento viram `StorageUnavailable`.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from app.entrypoints.models import (
    ActionPayload,
    AutoMessagePayload,
    OrderStatusPayload,
    RequestResult,
    SaveTemplatePayload,
    SendMessagePayload,
    SendTestMessagePayload,
    SessionMetadataPayload,
    StartPairingPayload,
    SyncProductsPayload,
    TemplateIdPayload,
    VendorPayload,
)
from app.templates import MessageTemplate
from utils.errors import GatewayBridgeError, InfrastructureError, InvalidRequest, UnknownAction

if TYPE_CHECKING:
    from app.bootstrap.container import AppContainer

logger = logging.getLogger(__name__)

ActionHandler = Callable[["AppContainer", dict[str, Any]], Awaitable[dict[str, Any]]]

TEST_MESSAGE_TEMPLATE = "test_message"

P = TypeVar("P", bound=ActionPayload)


def _parse(model: type[P], payload: dict[str, Any]) -> P:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise InvalidRequest(f"Campos inválidos: {', '.join(fields)}") from exc


# ──────────────────────────────────────────────────────────────────────────────
# Compartilhadas
# ──────────────────────────────────────────────────────────────────────────────


async def _sync_products(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(SyncProductsPayload, payload)
    return await container.sync.sync_vendor_catalog(data.vendor_id, data.products)


async def _sync_status(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(VendorPayload, payload)
    return {"counts": await container.sync.sync_status(data.vendor_id)}


# ──────────────────────────────────────────────────────────────────────────────
# Admin
# ──────────────────────────────────────────────────────────────────────────────


async def _test_connection(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = await container.gateway.test_connection()
    return {"connected": True, "gateway_status": data.get("status")}


async def _rotate_signing_secret(
    container: AppContainer, payload: dict[str, Any]
) -> dict[str, Any]:
    return await container.auth.rotate_signing_secret()


async def _get_sessions(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    sessions = await container.sessions.list_sessions()
    return {"sessions": [s.to_public_dict() for s in sessions]}


async def _refresh_session(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(VendorPayload, payload)
    session = await container.sessions.check_session(data.vendor_id)
    return {"session": session.to_public_dict()}


async def _delete_session(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(VendorPayload, payload)
    return {"deleted": await container.sessions.remove_vendor(data.vendor_id)}


async def _get_auto_messages(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    rules = container.order_notifier.table.list_rules()
    return {"auto_messages": [r.to_dict() for r in rules]}


async def _set_auto_message(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(AutoMessagePayload, payload)
    # Template precisa existir no catálogo global
    container.catalog.get(data.template_id)
    rule = container.order_notifier.table.set_rule(data.status, data.template_id, data.enabled)
    return {"auto_message": rule.to_dict()}


async def _order_status_changed(
    container: AppContainer, payload: dict[str, Any]
) -> dict[str, Any]:
    data = _parse(OrderStatusPayload, payload)
    job = await container.order_notifier.notify(
        data.vendor_id, data.order_number, data.new_status, data.variables, data.recipient
    )
    return {"job": job.to_public_dict() if job is not None else None}


ADMIN_ACTIONS: dict[str, ActionHandler] = {
    "test_connection": _test_connection,
    "rotate_signing_secret": _rotate_signing_secret,
    "get_sessions": _get_sessions,
    "refresh_session": _refresh_session,
    "delete_session": _delete_session,
    "sync_products": _sync_products,
    "sync_status": _sync_status,
    "get_auto_messages": _get_auto_messages,
    "set_auto_message": _set_auto_message,
    "order_status_changed": _order_status_changed,
}


# ──────────────────────────────────────────────────────────────────────────────
# Frontend (vendor)
# ──────────────────────────────────────────────────────────────────────────────


async def _start_pairing(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(StartPairingPayload, payload)
    session = await container.sessions.start_pairing(data.vendor_id, data.session_name)
    return {"session": session.to_public_dict()}


async def _get_pairing_code(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(VendorPayload, payload)
    return await container.sessions.get_pairing_code(data.vendor_id)


async def _disconnect_session(
    container: AppContainer, payload: dict[str, Any]
) -> dict[str, Any]:
    data = _parse(VendorPayload, payload)
    session = await container.sessions.revoke(data.vendor_id)
    return {"session": session.to_public_dict()}


async def _update_session_metadata(
    container: AppContainer, payload: dict[str, Any]
) -> dict[str, Any]:
    data = _parse(SessionMetadataPayload, payload)
    result = await container.sessions.update_metadata(data.vendor_id, data.metadata)
    return {"metadata": result.get("metadata", data.metadata)}


async def _send_message(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(SendMessagePayload, payload)
    job = await container.dispatcher.send(
        data.vendor_id, data.template_name, data.variables, data.recipient
    )
    return {"job": job.to_public_dict()}


async def _send_test_message(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(SendTestMessagePayload, payload)
    job = await container.dispatcher.send(
        data.vendor_id, TEST_MESSAGE_TEMPLATE, {"message": data.message}, data.recipient
    )
    return {"job": job.to_public_dict()}


async def _get_templates(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(VendorPayload, payload)
    templates = container.catalog.list_for_vendor(data.vendor_id)
    return {"templates": [t.to_dict() for t in templates]}


async def _save_template(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(SaveTemplatePayload, payload)
    template_id = data.template_id or f"vendor_{data.vendor_id}_{uuid.uuid4().hex[:12]}"
    container.catalog.set_vendor_template(
        data.vendor_id,
        MessageTemplate(
            template_id=template_id,
            name=data.template_name,
            content=data.template_content,
        ),
    )
    return {"template_id": template_id}


async def _delete_template(container: AppContainer, payload: dict[str, Any]) -> dict[str, Any]:
    data = _parse(TemplateIdPayload, payload)
    outcome = container.catalog.delete_for_vendor(data.vendor_id, data.template_id)
    return {"template_id": data.template_id, "outcome": outcome}


FRONTEND_ACTIONS: dict[str, ActionHandler] = {
    "start_pairing": _start_pairing,
    "get_pairing_code": _get_pairing_code,
    "check_session": _refresh_session,
    "disconnect_session": _disconnect_session,
    "update_session_metadata": _update_session_metadata,
    "send_message": _send_message,
    "send_test_message": _send_test_message,
    "get_templates": _get_templates,
    "save_template": _save_template,
    "delete_template": _delete_template,
    "sync_products": _sync_products,
    "sync_status": _sync_status,
}


async def _dispatch(
    actions: dict[str, ActionHandler],
    scope: str,
    container: AppContainer,
    action: str,
    payload: dict[str, Any] | None,
) -> RequestResult:
    try:
        handler = actions.get(action)
        if handler is None:
            raise UnknownAction(f"Ação desconhecida: {action}")
        data = await handler(container, payload or {})
    except GatewayBridgeError as exc:
        logger.info(
            "request_failed",
            extra={"scope": scope, "action": action, "error_kind": exc.kind},
        )
        return RequestResult.fail(exc)
    except InfrastructureError as exc:
        logger.warning(
            "request_storage_unavailable",
            extra={"scope": scope, "action": action, "error_type": type(exc).__name__},
        )
        return RequestResult.storage_unavailable()

    logger.info("request_completed", extra={"scope": scope, "action": action})
    return RequestResult.ok(data)


async def handle_admin_request(
    container: AppContainer, action: str, payload: dict[str, Any] | None = None
) -> RequestResult:
    """Executa ação administrativa."""
    return await _dispatch(ADMIN_ACTIONS, "admin", container, action, payload)


async def handle_frontend_request(
    container: AppContainer, action: str, payload: dict[str, Any] | None = None
) -> RequestResult:
    """Executa ação do vendor."""
    return await _dispatch(FRONTEND_ACTIONS, "frontend", container, action, payload)
