"""Endpoint de ticks agendados (disparados pelo scheduler da plataforma)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from app.entrypoints import on_scheduled_tick

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ticks/{tick_kind}")
async def run_tick(tick_kind: str, request: Request) -> dict:
    """Executa um tick; tipo desconhecido → 404."""
    container = request.app.state.container
    try:
        report = await on_scheduled_tick(container, tick_kind)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="unknown_tick_kind") from exc
    return report.to_dict()
