"""Autenticação das rotas de ação via bearer token assinado.

Tokens são validados com o signing secret do Auth Manager. Rotas admin
exigem `role=admin`; rotas de vendor exigem a claim `vendor_id`.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Header, HTTPException, Request

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


async def _claims_from_header(request: Request, authorization: str | None) -> dict[str, Any]:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="missing_bearer_token")
    token = authorization[7:].strip()
    claims = await request.app.state.container.auth.validate_token(token)
    if claims is None:
        raise HTTPException(status_code=401, detail="invalid_token")
    return claims


async def require_admin(
    request: Request,
    authorization: str | None = Header(default=None),
) -> dict[str, Any]:
    """Claims de um token com papel admin."""
    claims = await _claims_from_header(request, authorization)
    if claims.get("role") != ADMIN_ROLE:
        logger.warning("admin_access_denied", extra={"subject": claims.get("sub")})
        raise HTTPException(status_code=403, detail="forbidden")
    return claims


async def require_vendor(
    request: Request,
    authorization: str | None = Header(default=None),
) -> str:
    """vendor_id do token; o vendor só age sobre a própria sessão."""
    claims = await _claims_from_header(request, authorization)
    vendor_id = claims.get("vendor_id")
    if not vendor_id:
        raise HTTPException(status_code=403, detail="forbidden")
    return str(vendor_id)
