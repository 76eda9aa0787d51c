"""Sessões de vendor no gateway WhatsApp."""

from app.sessions.manager import SessionManager
from app.sessions.models import HealthCheckReport

__all__ = ["HealthCheckReport", "SessionManager"]
