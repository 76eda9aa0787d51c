"""Pontos de entrada chamados pela plataforma."""

from app.entrypoints.lifecycle import on_activate, on_deactivate, on_scheduled_tick
from app.entrypoints.models import RequestResult
from app.entrypoints.requests import (
    ADMIN_ACTIONS,
    FRONTEND_ACTIONS,
    handle_admin_request,
    handle_frontend_request,
)

__all__ = [
    "ADMIN_ACTIONS",
    "FRONTEND_ACTIONS",
    "RequestResult",
    "handle_admin_request",
    "handle_frontend_request",
    "on_activate",
    "on_deactivate",
    "on_scheduled_tick",
]
