"""Agenda de jobs periódicos e execução de ticks."""

from app.scheduling.config import (
    MESSAGE_RETRY,
    PRODUCT_SYNC,
    SESSION_CHECK,
    SESSION_RECONCILE,
    TICK_KINDS,
    ScheduledJob,
    SchedulerConfig,
)
from app.scheduling.runner import TickReport, TickRunner

__all__ = [
    "MESSAGE_RETRY",
    "PRODUCT_SYNC",
    "SESSION_CHECK",
    "SESSION_RECONCILE",
    "TICK_KINDS",
    "ScheduledJob",
    "SchedulerConfig",
    "TickReport",
    "TickRunner",
]
