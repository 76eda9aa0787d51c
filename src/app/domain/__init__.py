"""Entidades de domínio do vendor bridge."""

from app.domain.auth_token import SYSTEM_SUBJECT, AuthToken
from app.domain.clock import Clock, utc_now
from app.domain.jobs import (
    TERMINAL_MESSAGE_STATUSES,
    TERMINAL_SYNC_STATUSES,
    MessageJob,
    MessageStatus,
    SyncJob,
    SyncStatus,
)
from app.domain.vendor_session import VendorSession

__all__ = [
    "SYSTEM_SUBJECT",
    "TERMINAL_MESSAGE_STATUSES",
    "TERMINAL_SYNC_STATUSES",
    "AuthToken",
    "Clock",
    "MessageJob",
    "MessageStatus",
    "SyncJob",
    "SyncStatus",
    "VendorSession",
    "utc_now",
]
