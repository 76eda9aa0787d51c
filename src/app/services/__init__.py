"""Serviços do core: backoff, despacho de mensagens, sync de produtos, uso da API."""

from app.services.backoff import BackoffPolicy, RetryDecision
from app.services.job_report import JobRunReport
from app.services.message_dispatcher import MessageDispatcher, format_phone_number
from app.services.order_notifier import OrderStatusNotifier
from app.services.sync_coordinator import SyncCoordinator
from app.services.usage import LoggingUsageTracker, NullUsageTracker, build_usage_tracker

__all__ = [
    "BackoffPolicy",
    "JobRunReport",
    "LoggingUsageTracker",
    "MessageDispatcher",
    "NullUsageTracker",
    "OrderStatusNotifier",
    "RetryDecision",
    "SyncCoordinator",
    "build_usage_tracker",
    "format_phone_number",
]
