"""Endpoints das ações de admin e de vendor."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from api.routes.actions.auth import require_admin, require_vendor
from app.entrypoints import RequestResult, handle_admin_request, handle_frontend_request

router = APIRouter()

# Erros de entrada viram 4xx, armazenamento fora vira 503; falhas de domínio
# seguem 200 com success=false
_STATUS_BY_ERROR_KIND = {
    "UnknownAction": 404,
    "InvalidRequest": 400,
    "StorageUnavailable": 503,
}


def _to_response(result: RequestResult) -> JSONResponse:
    status_code = 200
    if not result.success and result.error_kind:
        status_code = _STATUS_BY_ERROR_KIND.get(result.error_kind, 200)
    return JSONResponse(content=result.to_dict(), status_code=status_code)


@router.post("/admin/actions/{action}")
async def admin_action(
    action: str,
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    _claims: dict[str, Any] = Depends(require_admin),
) -> JSONResponse:
    result = await handle_admin_request(request.app.state.container, action, payload)
    return _to_response(result)


@router.post("/vendor/actions/{action}")
async def vendor_action(
    action: str,
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    vendor_id: str = Depends(require_vendor),
) -> JSONResponse:
    body = {**(payload or {}), "vendor_id": vendor_id}
    result = await handle_frontend_request(request.app.state.container, action, body)
    return _to_response(result)
